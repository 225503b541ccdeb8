import math

from loguru import logger

import paramlayer.ops as ops
import paramlayer.init as init
from paramlayer.nn import kaiming_uniform

class Lstm:
    """Single layer LSTM over the fused cell and sequence primitives of the engine.

    The four parameters follow the engine's layout: w_ih is (4*hidden_size, input_dim),
    w_hh is (4*hidden_size, hidden_size) and both biases are (4*hidden_size,), with the
    gates concatenated as (input, forget, cell, output) along the first axis.

    A state is a (hidden, cell) pair. step() works on (batch_size, hidden_size) states,
    seq() returns its final state as (1, batch_size, hidden_size), the leading axis
    being the single layer. to_seq_state() and to_step_state() convert between both.
    The LSTM never keeps a state, callers thread it through step().
    """
    def __init__(self, w_ih, w_hh, b_ih, b_hh, hidden_size, device):
        self.w_ih = w_ih
        self.w_hh = w_hh
        self.b_ih = b_ih
        self.b_hh = b_hh
        self.hidden_size = hidden_size
        self.device = device

    @classmethod
    def create(cls, vs, input_dim, hidden_size):
        gate_size = 4 * hidden_size
        w_ih = kaiming_uniform(vs, 'w_ih', [gate_size, input_dim], a=math.sqrt(5))
        w_hh = kaiming_uniform(vs, 'w_hh', [gate_size, hidden_size], a=math.sqrt(5))
        b_ih = vs.new_var([gate_size], init.Zeros(), 'b_ih')
        b_hh = vs.new_var([gate_size], init.Zeros(), 'b_hh')
        logger.debug(f'lstm input_dim={input_dim} hidden_size={hidden_size} on {vs.device}')

        return cls(w_ih, w_hh, b_ih, b_hh, hidden_size, vs.device)

    @property
    def gate_size(self):
        return 4 * self.hidden_size

    @property
    def dtype(self):
        return self.w_ih.dtype

    def zero_state(self, batch_size):
        shape = [batch_size, self.hidden_size]
        return ops.zeros(shape, self.device, self.dtype), ops.zeros(shape, self.device, self.dtype)

    def step(self, state, xs):
        h, c = state
        return ops.lstm_cell(xs, (h, c), self.w_ih, self.w_hh, self.b_ih, self.b_hh)

    def seq(self, xs):
        '''xs is batch first: (batch_size, seq_len, input_dim)'''
        batch_size = ops.shape(xs)[0]
        shape = [1, batch_size, self.hidden_size]
        h = ops.zeros(shape, self.device, self.dtype)
        c = ops.zeros(shape, self.device, self.dtype)

        output, h, c = ops.lstm(
            xs, (h, c), (self.w_ih, self.w_hh, self.b_ih, self.b_hh),
            has_biases=True, num_layers=1, dropout=0.0, train=False, bidirectional=False, batch_first=True)

        return output, (h, c)

    def to_seq_state(self, state):
        return tuple(ops.reshape(each, [1, *ops.shape(each)]) for each in state)

    def to_step_state(self, state):
        return tuple(ops.reshape(each, ops.shape(each)[1:]) for each in state)
