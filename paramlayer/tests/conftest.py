import pytest

from paramlayer import VarStore, set_seed

@pytest.fixture(autouse=True)
def seeded():
    set_seed(0)

@pytest.fixture
def vs():
    return VarStore(seed=0)
