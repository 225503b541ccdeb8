'''Layer builders: each one pulls freshly initialized parameters from a VarStore and returns a forward closure'''
import math
import numbers

from loguru import logger

import paramlayer.ops as ops
import paramlayer.init as init
import paramlayer.activations as act

class Layer:
    def __init__(self, apply):
        self.apply = apply

    def __call__(self, xs):
        return self.apply(xs)

class LayerWithTraining:
    """A layer whose forward pass depends on a training flag given at call time.

    Batch normalization is the only builder returning one: batch vs running
    statistics, and whether the running statistics get updated, are decided per
    call rather than at construction.
    """
    def __init__(self, apply_with_training):
        self.apply_with_training = apply_with_training

    def __call__(self, xs, is_training):
        return self.apply_with_training(xs, is_training)

def kaiming_uniform(vs, name, shape, a):
    return vs.new_var(shape, init.kaiming_uniform(shape, a=a), name)

def _pair(value):
    if isinstance(value, numbers.Integral) and not isinstance(value, bool): return (int(value), int(value))

    return tuple(value)

'''Neural Network operations'''
def linear(vs, input_dim, output_dim, activation=None, use_bias=True):
    activation = act.resolve(activation)
    weight = kaiming_uniform(vs, 'weight', [input_dim, output_dim], a=math.sqrt(5))

    if use_bias:
        bias = vs.new_var([output_dim], init.linear_bias(input_dim), 'bias')

        def forward(xs):
            return act.apply(ops.add(ops.matmul(xs, weight), bias), activation)
    else:
        def forward(xs):
            return act.apply(ops.matmul(xs, weight), activation)

    logger.debug(f'linear {input_dim}->{output_dim} activation={activation} use_bias={use_bias}')

    return Layer(forward)

def conv2d(vs, ksize, stride, input_dim, output_dim, activation=None, use_bias=True, padding=(0, 0)):
    activation = act.resolve(activation)
    k1, k2 = ksize
    stride, padding = tuple(stride), tuple(padding)
    weight = kaiming_uniform(vs, 'weight', [output_dim, input_dim, k1, k2], a=math.sqrt(5))

    if use_bias: bias = vs.new_var([output_dim], init.Zeros(), 'bias')
    # Not registered in the store, the primitive still takes a bias argument
    else: bias = ops.zeros([output_dim], device=vs.device, dtype=vs.dtype)

    def forward(xs):
        return act.apply(ops.conv2d(xs, weight, bias, stride=stride, padding=padding), activation)

    logger.debug(f'conv2d {input_dim}->{output_dim} ksize={ksize} stride={stride} padding={padding}')

    return Layer(forward)

def conv2d_(vs, ksize, stride, input_dim, output_dim, activation=None, use_bias=True, padding=0):
    return conv2d(vs, _pair(ksize), _pair(stride), input_dim, output_dim, activation=activation, use_bias=use_bias, padding=_pair(padding))

def conv_transpose2d(vs, ksize, stride, input_dim, output_dim, activation=None, padding=(0, 0), output_padding=(0, 0)):
    activation = act.resolve(activation)
    k1, k2 = ksize
    stride, padding, output_padding = tuple(stride), tuple(padding), tuple(output_padding)
    weight = vs.new_var([input_dim, output_dim, k1, k2], init.Normal(stdev=0.1), 'weight')
    bias = vs.new_var([output_dim], init.Zeros(), 'bias')

    def forward(xs):
        ys = ops.conv_transpose2d(xs, weight, bias, stride=stride, padding=padding, output_padding=output_padding)
        return act.apply(ys, activation)

    logger.debug(f'conv_transpose2d {input_dim}->{output_dim} ksize={ksize} stride={stride} padding={padding} output_padding={output_padding}')

    return Layer(forward)

def conv_transpose2d_(vs, ksize, stride, input_dim, output_dim, activation=None, padding=0, output_padding=0):
    return conv_transpose2d(vs, _pair(ksize), _pair(stride), input_dim, output_dim, activation=activation, padding=_pair(padding), output_padding=_pair(output_padding))

def batch_norm2d(vs, output_dim, eps=1e-5, momentum=0.1):
    weight = vs.new_var([output_dim], init.Uniform(0.0, 1.0), 'weight')
    bias = vs.new_var([output_dim], init.Zeros(), 'bias')
    running_mean = vs.new_var([output_dim], init.Zeros(), 'running_mean', trainable=False)
    running_var = vs.new_var([output_dim], init.Ones(), 'running_var', trainable=False)

    # Running statistics are mutated by the primitive when is_training is set
    def forward(xs, is_training):
        return ops.batch_norm(xs, weight, bias, running_mean, running_var, training=is_training, momentum=momentum, eps=eps)

    logger.debug(f'batch_norm2d {output_dim} eps={eps} momentum={momentum}')

    return LayerWithTraining(forward)

'''Composition'''
def apply(layer, xs):
    return layer.apply(xs)

identity = Layer(lambda xs: xs)

def fold(layers):
    layers = list(layers)

    def forward(xs):
        for layer in layers: xs = layer.apply(xs)
        return xs

    return Layer(forward)

def with_training(layer):
    if isinstance(layer, LayerWithTraining): return layer

    return LayerWithTraining(lambda xs, is_training: layer.apply(xs))

def fold_with_training(layers):
    layers = [with_training(layer) for layer in layers]

    def forward(xs, is_training):
        for layer in layers: xs = layer.apply_with_training(xs, is_training)
        return xs

    return LayerWithTraining(forward)
