from loguru import logger

from paramlayer.errors import ShapeError
from paramlayer.init import Zeros, Ones, Uniform, Normal
from paramlayer.var_store import VarStore, Parameter
from paramlayer.activations import Activation
from paramlayer.nn import (
    Layer, LayerWithTraining,
    linear, conv2d, conv2d_, conv_transpose2d, conv_transpose2d_, batch_norm2d,
    apply, identity, fold, with_training, fold_with_training,
)
from paramlayer.lstm import Lstm
from paramlayer.utils import set_seed

# Library logging stays silent until the application calls logger.enable("paramlayer")
logger.disable("paramlayer")

__all__ = [
    'ShapeError',
    'Zeros', 'Ones', 'Uniform', 'Normal',
    'VarStore', 'Parameter',
    'Activation',
    'Layer', 'LayerWithTraining',
    'linear', 'conv2d', 'conv2d_', 'conv_transpose2d', 'conv_transpose2d_', 'batch_norm2d',
    'apply', 'identity', 'fold', 'with_training', 'fold_with_training',
    'Lstm',
    'set_seed',
]
