import math

import numpy as np
import pytest
import torch
import torch.nn.functional as F

import paramlayer.nn as nn
from paramlayer import VarStore

def test_linear_without_bias_on_zero_input(vs):
    layer = nn.linear(vs, input_dim=4, output_dim=3, use_bias=False)
    ys = layer(torch.zeros(5, 4))

    assert ys.shape == (5, 3)
    assert torch.equal(ys, torch.zeros(5, 3))
    assert list(vs.all_vars()) == ['weight']

def test_linear_is_x_times_weight_plus_bias(vs):
    layer = nn.linear(vs, 4, 3)
    weight, bias = vs['weight'], vs['bias']
    xs = torch.randn(2, 4)

    assert weight.shape == (4, 3) and bias.shape == (3,)
    assert torch.allclose(nn.apply(layer, xs), xs @ weight + bias)

def test_linear_initial_bounds():
    vs = VarStore(seed=3)
    nn.linear(vs, 100, 50)
    weight_bound = math.sqrt(3.0) * math.sqrt(2.0 / (6 * 100))

    assert vs['weight'].abs().max().item() <= weight_bound + 1e-6
    assert vs['bias'].abs().max().item() <= 1 / math.sqrt(100) + 1e-6

def test_linear_applies_activation(vs):
    layer = nn.linear(vs, 6, 8, activation='relu')
    assert torch.all(layer(torch.randn(10, 6)) >= 0)

def test_forward_errors_propagate(vs):
    layer = nn.linear(vs, 4, 3)
    with pytest.raises(RuntimeError):
        layer(torch.randn(2, 5))

def test_conv2d_matches_engine_convolution(vs):
    layer = nn.conv2d(vs, ksize=(3, 2), stride=(2, 1), input_dim=3, output_dim=6, padding=(1, 0))
    weight, bias = vs['weight'], vs['bias']
    xs = torch.randn(2, 3, 9, 9)

    assert weight.shape == (6, 3, 3, 2)
    assert torch.equal(bias, torch.zeros(6)) and bias.requires_grad
    assert torch.allclose(layer(xs), F.conv2d(xs, weight, bias, stride=(2, 1), padding=(1, 0)))

def test_conv2d_without_bias_registers_only_the_weight(vs):
    layer = nn.conv2d(vs, (3, 3), (1, 1), 2, 4, use_bias=False)
    xs = torch.randn(1, 2, 6, 6)

    assert list(vs.all_vars()) == ['weight']
    assert torch.allclose(layer(xs), F.conv2d(xs, vs['weight']))

def test_conv2d_scalar_variant(vs):
    layer = nn.conv2d_(vs / 'conv', ksize=3, stride=2, input_dim=1, output_dim=4, padding=1, activation='tanh')
    ys = layer(torch.randn(2, 1, 8, 8))

    assert vs['conv.weight'].shape == (4, 1, 3, 3)
    assert ys.shape == (2, 4, 4, 4)
    assert torch.all(ys.abs() <= 1)

def test_conv_transpose2d_shapes(vs):
    layer = nn.conv_transpose2d(vs, ksize=(3, 3), stride=(2, 2), input_dim=4, output_dim=2, padding=(1, 1), output_padding=(1, 1))
    ys = layer(torch.randn(2, 4, 5, 5))

    assert vs['weight'].shape == (4, 2, 3, 3)
    assert vs['bias'].requires_grad
    assert ys.shape == (2, 2, 10, 10)

def test_conv_transpose2d_scalar_variant(vs):
    layer = nn.conv_transpose2d_(vs, ksize=4, stride=2, input_dim=3, output_dim=3, padding=1, activation='sigmoid')
    xs = torch.randn(1, 3, 4, 4)
    expected = torch.sigmoid(F.conv_transpose2d(xs, vs['weight'], vs['bias'], stride=2, padding=1))

    assert torch.allclose(layer(xs), expected)

def test_conv_transpose2d_weight_statistics():
    vs = VarStore(seed=11)
    nn.conv_transpose2d_(vs, ksize=5, stride=1, input_dim=64, output_dim=64)
    weight = vs['weight'].detach()

    assert weight.numel() == 102400
    assert abs(weight.mean().item()) < 0.005
    assert abs(weight.std().item() - 0.1) < 0.005

def test_batch_norm2d_parameters(vs):
    nn.batch_norm2d(vs, 8)
    assert list(vs.all_vars()) == ['weight', 'bias', 'running_mean', 'running_var']
    weight, bias = vs.trainable_vars()
    assert weight is vs['weight'] and bias is vs['bias']
    assert torch.all(vs['weight'] >= 0) and torch.all(vs['weight'] <= 1)

def test_batch_norm2d_training_flag_controls_running_statistics(vs):
    layer = nn.batch_norm2d(vs, output_dim=8)
    running_mean, running_var = vs['running_mean'], vs['running_var']
    xs = torch.randn(4, 8, 5, 5) * 3 + 2

    layer(xs, is_training=False)
    assert torch.equal(running_mean, torch.zeros(8))
    assert torch.equal(running_var, torch.ones(8))

    layer(xs, is_training=True)
    assert not torch.equal(running_mean, torch.zeros(8))
    assert not torch.equal(running_var, torch.ones(8))

    mean_after, var_after = running_mean.clone(), running_var.clone()
    layer(xs, is_training=False)
    assert torch.equal(running_mean, mean_after) and torch.equal(running_var, var_after)

def test_batch_norm2d_inference_uses_running_statistics(vs):
    layer = nn.batch_norm2d(vs, 3, eps=1e-5)
    xs = torch.randn(2, 3, 4, 4)
    weight, bias = vs['weight'].view(1, 3, 1, 1), vs['bias'].view(1, 3, 1, 1)

    assert torch.allclose(layer(xs, False), xs / math.sqrt(1 + 1e-5) * weight + bias, atol=1e-6)

def test_batch_norm2d_momentum(vs):
    layer = nn.batch_norm2d(vs, 2, momentum=0.5)
    xs = torch.randn(6, 2, 3, 3) + 4
    layer(xs, is_training=True)

    assert torch.allclose(vs['running_mean'], 0.5 * xs.mean(dim=(0, 2, 3)), atol=1e-5)

def test_identity():
    xs = torch.randn(3, 3)
    assert nn.identity(xs) is xs
    assert nn.apply(nn.identity, xs) is xs

def test_fold_threads_layers_left_to_right(vs):
    layer_a = nn.linear(vs / 'a', 5, 7, activation='relu')
    layer_b = nn.linear(vs / 'b', 7, 2)
    xs = torch.randn(4, 5)

    assert torch.equal(nn.fold([layer_a, layer_b])(xs), layer_b.apply(layer_a.apply(xs)))
    assert nn.fold([])(xs) is xs

def test_fold_with_training(vs):
    conv = nn.conv2d_(vs / 'conv', 3, 1, 1, 4, padding=1)
    bn = nn.batch_norm2d(vs / 'bn', 4)
    model = nn.fold_with_training([conv, bn, nn.Layer(torch.relu)])
    xs = torch.randn(2, 1, 6, 6)

    ys = model(xs, is_training=True)
    assert ys.shape == (2, 4, 6, 6)
    assert not torch.equal(vs['bn.running_mean'], torch.zeros(4))
    assert torch.equal(model(xs, is_training=False), torch.relu(bn(conv(xs), False)))
    assert nn.with_training(bn) is bn

def test_scalar_variants_accept_numpy_integers(vs):
    conv = nn.conv2d_(vs / 'conv', np.int64(3), np.int32(1), 1, 2, padding=np.int64(1))
    deconv = nn.conv_transpose2d_(vs / 'deconv', np.int64(2), np.int64(2), 2, 1)
    ys = deconv(conv(torch.randn(1, 1, 4, 4)))

    assert vs['conv.weight'].shape == (2, 1, 3, 3)
    assert ys.shape == (1, 1, 8, 8)
