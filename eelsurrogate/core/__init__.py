# eelsurrogate/core/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------

"""
Core components of the eelsurrogate package.

This subpackage contains the host-side operations that wrap the device
kernels, the ordinary kriging pipeline built on them, and a batch
runner.

Public API
----------
estimate, estimate_from_buffers : functions
    One kriging prediction.
KrigingSurrogate : class
    Surrogate bound to design data, with optional covariance caching.
run_batch, BatchResult
    Many predictions with a per-run log.
operations : module
    Individual device operations (distances, covariance, extension,
    inversion, products).
"""

from . import operations
from .surrogate import estimate, estimate_from_buffers, KrigingSurrogate
from .batch import run_batch, BatchResult

__all__ = [
    "operations",
    "estimate",
    "estimate_from_buffers",
    "KrigingSurrogate",
    "run_batch",
    "BatchResult",
]
