'''Tensor engine primitives used by the layers, backed by torch'''
import torch
import torch.nn.functional as F

def _same_device(x1, x2):
    assert x1.device == x2.device, f'x1 and x2 has to be same device: {x1.device}, {x2.device}'

def zeros(shape, device='cpu', dtype=torch.float32):
    return torch.zeros(tuple(shape), device=device, dtype=dtype)

def shape(xs):
    return list(xs.shape)

def reshape(xs, shape):
    return xs.reshape(tuple(shape))

def matmul(x1, x2):
    _same_device(x1, x2)
    return torch.matmul(x1, x2)

def add(x1, x2):
    _same_device(x1, x2)
    return x1 + x2

'''Activations'''
def relu(xs):
    return torch.relu(xs)

def softmax(xs, dim=-1):
    return torch.softmax(xs, dim=dim)

def log_softmax(xs, dim=-1):
    return torch.log_softmax(xs, dim=dim)

def tanh(xs):
    return torch.tanh(xs)

def leaky_relu(xs, negative_slope=0.01):
    return F.leaky_relu(xs, negative_slope)

def sigmoid(xs):
    return torch.sigmoid(xs)

'''Convolutions and normalization'''
def conv2d(xs, weight, bias, stride=(1, 1), padding=(0, 0)):
    return F.conv2d(xs, weight, bias, stride=tuple(stride), padding=tuple(padding))

def conv_transpose2d(xs, weight, bias, stride=(1, 1), padding=(0, 0), output_padding=(0, 0)):
    return F.conv_transpose2d(xs, weight, bias, stride=tuple(stride), padding=tuple(padding), output_padding=tuple(output_padding))

def batch_norm(xs, weight, bias, running_mean, running_var, training, momentum, eps):
    # NOTE: in training mode running_mean and running_var are updated in place
    return F.batch_norm(xs, running_mean, running_var, weight=weight, bias=bias, training=training, momentum=momentum, eps=eps)

'''Fused recurrent primitives, gates are laid out as (input, forget, cell, output)'''
def lstm_cell(xs, hx, w_ih, w_hh, b_ih=None, b_hh=None):
    h, c = torch.lstm_cell(xs, list(hx), w_ih, w_hh, b_ih, b_hh)
    return h, c

def lstm(xs, hx, params, has_biases=True, num_layers=1, dropout=0.0, train=False, bidirectional=False, batch_first=True):
    output, h, c = torch.lstm(xs, list(hx), list(params), has_biases, num_layers, dropout, train, bidirectional, batch_first)
    return output, h, c
