'''Named, shaped and initialized parameters that layers pull their tensors from'''
import numbers
from collections import OrderedDict

import numpy as np
import torch
from loguru import logger

from paramlayer.init import sample as sample_init
from paramlayer.errors import ShapeError

class Parameter:
    def __init__(self, name, tensor, trainable=True):
        self.name = name
        self.tensor = tensor
        self.trainable = trainable

    def __repr__(self):
        return f'Parameter(name={self.name!r}, shape={list(self.tensor.shape)}, trainable={self.trainable})'

class _Registry:
    '''State shared by a store and all of its sub stores'''
    def __init__(self, device, dtype, seed):
        self.device = torch.device(device)
        self.dtype = dtype
        # Without an explicit seed draw one from numpy global state, so set_seed also covers stores
        if seed is None: seed = int(np.random.randint(2**32, dtype=np.uint64))
        self.rng = np.random.default_rng(seed)
        self.parameters = OrderedDict()
        self.frozen = False

    def first_free_name(self, name):
        if name not in self.parameters: return name

        suffix = 1
        while f'{name}__{suffix}' in self.parameters: suffix += 1

        return f'{name}__{suffix}'

class VarStore:
    def __init__(self, device='cpu', dtype=torch.float32, seed=None, name=None, _registry=None):
        if _registry is None:
            if name is not None: _check_name(name)
            _registry = _Registry(device, dtype, seed)
        self._registry = _registry
        self._prefix = name

    @property
    def device(self):
        return self._registry.device

    @property
    def dtype(self):
        return self._registry.dtype

    @property
    def name(self):
        return self._prefix

    def sub(self, name):
        _check_name(name)
        prefix = name if self._prefix is None else f'{self._prefix}.{name}'

        return VarStore(name=prefix, _registry=self._registry)

    def __truediv__(self, name):
        return self.sub(name)

    def _full_name(self, name):
        return name if self._prefix is None else f'{self._prefix}.{name}'

    def new_var(self, shape, init, name, trainable=True):
        """Allocate a tensor of the given shape filled by `init` and register it under `name`.

        Returns the tensor itself, which layers capture by reference. Trainable
        tensors require grad unless the store is frozen.
        """
        _check_name(name)
        if any(not isinstance(dim, numbers.Integral) or isinstance(dim, bool) or dim <= 0 for dim in shape):
            raise ShapeError(f'Parameter {name} needs positive integer dimensions, got {list(shape)}')
        shape = [int(dim) for dim in shape]

        registry = self._registry
        values = sample_init(init, shape, registry.rng)
        requires_grad = trainable and not registry.frozen
        tensor = torch.from_numpy(values).to(device=registry.device, dtype=registry.dtype).requires_grad_(requires_grad)

        full_name = registry.first_free_name(self._full_name(name))
        registry.parameters[full_name] = Parameter(full_name, tensor, trainable)
        logger.debug(f'new var {full_name} shape={shape} init={init} trainable={trainable}')

        return tensor

    def all_vars(self):
        return OrderedDict((name, param.tensor) for name, param in self._scoped())

    def trainable_vars(self):
        return [param.tensor for _, param in self._scoped() if param.trainable]

    def num_trainable_vars(self):
        return sum(param.tensor.numel() for _, param in self._scoped() if param.trainable)

    def parameters(self):
        return [param for _, param in self._scoped()]

    def freeze(self):
        self._set_frozen(True)

    def unfreeze(self):
        self._set_frozen(False)

    def _set_frozen(self, frozen):
        self._registry.frozen = frozen
        for param in self._registry.parameters.values():
            if param.trainable: param.tensor.requires_grad_(not frozen)
        logger.info(f'{"froze" if frozen else "unfroze"} {len(self._registry.parameters)} vars on {self.device}')

    def _scoped(self):
        items = self._registry.parameters.items()
        if self._prefix is None: return list(items)

        return [(name, param) for name, param in items if name.startswith(self._prefix + '.')]

    def __getitem__(self, name):
        return self._registry.parameters[self._full_name(name)].tensor

    def __contains__(self, name):
        return self._full_name(name) in self._registry.parameters

    def __len__(self):
        return len(self._scoped())

    def __repr__(self):
        return f'VarStore(name={self._prefix!r}, device={self.device}, vars={len(self)})'

def _check_name(name):
    if not isinstance(name, str) or not name:
        raise ValueError(f'Variable name must be a non empty string, got {name!r}')
    if '.' in name:
        raise ValueError(f'Variable name {name} can not contain "."')
