import enum

import paramlayer.ops as ops

class Activation(enum.Enum):
    RELU = 'relu'
    SOFTMAX = 'softmax'
    LOG_SOFTMAX = 'log_softmax'
    TANH = 'tanh'
    LEAKY_RELU = 'leaky_relu'
    SIGMOID = 'sigmoid'

_ACTIVATION_OPS = {
    Activation.RELU: ops.relu,
    Activation.SOFTMAX: ops.softmax,
    Activation.LOG_SOFTMAX: ops.log_softmax,
    Activation.TANH: ops.tanh,
    Activation.LEAKY_RELU: ops.leaky_relu,
    Activation.SIGMOID: ops.sigmoid,
}

def resolve(activation):
    '''Accept an Activation, its string value or None'''
    if activation is None or isinstance(activation, Activation): return activation

    try:
        return Activation(activation)
    except ValueError:
        valid = [each.value for each in Activation]
        raise ValueError(f'Unsupported activation {activation!r}, please use one of {valid}') from None

def apply(xs, activation=None):
    activation = resolve(activation)
    if activation is None: return xs

    return _ACTIVATION_OPS[activation](xs)
