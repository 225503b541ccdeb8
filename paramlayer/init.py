import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from paramlayer.errors import ShapeError

'''Collection of parameters initializations'''

@dataclass(frozen=True)
class Zeros:
    pass

@dataclass(frozen=True)
class Ones:
    pass

class Uniform(NamedTuple):
    low: float
    high: float

@dataclass(frozen=True)
class Normal:
    stdev: float
    mean: float = 0.0

def leaky_relu_gain(negative_slope):
    # bool is an int subclass, it is not a slope
    if isinstance(negative_slope, bool) or not isinstance(negative_slope, (int, float)):
        raise ValueError(f"negative_slope {negative_slope} not a valid number")

    return math.sqrt(2.0 / (1 + negative_slope**2))

def fan_in(shape):
    '''Linear weights are stored as (input_dim, output_dim), conv weights as (output, input, *kernel)'''
    shape = tuple(shape)
    if len(shape) < 2:
        raise ShapeError(f"Fan in can not be computed for shape {list(shape)} with fewer than 2 dimensions")
    if len(shape) == 2: return shape[0]

    return shape[1] * math.prod(shape[2:])

def kaiming_uniform(shape, a=0):
    fan = fan_in(shape)
    if fan <= 0:
        raise ShapeError(f"Can not compute fan in for shape {list(shape)}")

    bound = math.sqrt(3.0) * leaky_relu_gain(a) / math.sqrt(fan)

    return Uniform(-bound, bound)

def linear_bias(input_dim):
    bound = 1 / math.sqrt(input_dim) if input_dim > 0 else 0

    return Uniform(-bound, bound)

def sample(init, shape, rng: np.random.Generator) -> np.ndarray:
    '''Draw the initial values of a parameter, always as float32'''
    shape = tuple(shape)
    if isinstance(init, Zeros):
        values = np.zeros(shape)
    elif isinstance(init, Ones):
        values = np.ones(shape)
    elif isinstance(init, Uniform):
        values = rng.uniform(init.low, init.high, size=shape)
    elif isinstance(init, Normal):
        values = rng.normal(loc=init.mean, scale=init.stdev, size=shape)
    else:
        raise ValueError(f"Unsupported initializer {init!r}")

    return values.astype(np.float32)
