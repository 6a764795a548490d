# eelsurrogate/num/numpy_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""NumPy numerical backend for eelsurrogate.

Device memory is host memory: kernels run as vectorised NumPy
expressions and synchronization is a no-op.
"""

from eelsurrogate.config import get_config, init_backend, get_logger

_backend_: str = init_backend()
_config = get_config()
_logger = get_logger()
_logger.info("Using backend: %s", _backend_)


# -----------------------------------------------------
#
#                      NUMPY
#
# -----------------------------------------------------

import numpy

_np_dtype = numpy.float64

from numpy import (
    where,
    abs,
    exp,
    maximum,
    logical_and,
)

# Exceptions a device call may raise, grouped by failure kind.
allocation_errors = (MemoryError,)
launch_errors = (RuntimeError, IndexError, ValueError, TypeError, FloatingPointError)


def _check_device():
    if str(_config.device) != "cpu":
        raise RuntimeError(
            f"numpy backend cannot use device '{_config.device}'; "
            "set EELSURROGATE_BACKEND=torch"
        )


def device_name():
    return "cpu (numpy)"


# ..................................................


def asarray(x):
    """Copy host data into a fresh float64 device array."""
    _check_device()
    return numpy.array(x, dtype=_np_dtype).reshape(-1)


def zeros(n):
    _check_device()
    return numpy.zeros(n, dtype=_np_dtype)


def ones(n):
    return numpy.ones(n, dtype=_np_dtype)


def zeros_like(x):
    return numpy.zeros_like(x)


def arange(start, stop=None):
    """Integer index range on the device."""
    if stop is None:
        return numpy.arange(start, dtype=numpy.int64)
    return numpy.arange(start, stop, dtype=numpy.int64)


def to_np(x):
    return numpy.array(x, dtype=_np_dtype, copy=True)


def to_scalar(x):
    return x.item()


def synchronize():
    pass
