# eelsurrogate/num/torch_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Torch numerical backend for eelsurrogate.

Device arrays are float64 tensors living on ``config.device``. The
device is resolved at each allocation, so ``set_device`` may be called
after import.
"""

from eelsurrogate.config import get_config, init_backend, get_logger

_backend_: str = init_backend()
_config = get_config()
_logger = get_logger()
_logger.info("Using backend: %s", _backend_)


# -----------------------------------------------------
#
#                      TORCH
#
# -----------------------------------------------------

import torch
import numpy

_torch_dtype = torch.float64

from torch import (
    where,
    abs,
    exp,
    maximum,
    logical_and,
)

_torch_oom_error = (
    (torch.cuda.OutOfMemoryError,) if hasattr(torch.cuda, "OutOfMemoryError") else tuple()
)

# Exceptions a device call may raise, grouped by failure kind.
allocation_errors = (MemoryError,) + _torch_oom_error
launch_errors = (RuntimeError, IndexError, ValueError, TypeError, FloatingPointError)


def _device():
    return torch.device(_config.device)


def device_name():
    dev = _device()
    if dev.type == "cuda" and torch.cuda.is_available():
        return f"{dev} ({torch.cuda.get_device_name(dev)})"
    return f"{dev} (torch)"


# ..................................................


def asarray(x):
    """Copy host data into a fresh float64 tensor on the configured device."""
    if isinstance(x, numpy.ndarray):
        t = torch.from_numpy(numpy.ascontiguousarray(x, dtype=numpy.float64))
    else:
        t = torch.as_tensor(x, dtype=_torch_dtype)
    return t.reshape(-1).to(device=_device(), dtype=_torch_dtype, copy=True)


def zeros(n):
    return torch.zeros(n, dtype=_torch_dtype, device=_device())


def ones(n):
    return torch.ones(n, dtype=_torch_dtype, device=_device())


def zeros_like(x):
    return torch.zeros_like(x)


def arange(start, stop=None):
    """Integer index range on the device."""
    if stop is None:
        return torch.arange(start, dtype=torch.long, device=_device())
    return torch.arange(start, stop, dtype=torch.long, device=_device())


def to_np(x):
    if torch.is_tensor(x):
        return numpy.array(x.detach().cpu().numpy(), dtype=numpy.float64, copy=True)
    return numpy.array(x, dtype=numpy.float64, copy=True)


def to_scalar(x):
    return x.item()


def synchronize():
    if _device().type == "cuda":
        torch.cuda.synchronize(_device())
