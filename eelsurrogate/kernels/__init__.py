# eelsurrogate/kernels/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Device kernels.

Modules
-------
elementwise
    Independent per-element kernels (distances, Gaussian correlation,
    normalization, identity, extension, dense product).
gauss_jordan
    Multi-launch Gauss-Jordan inversion and its host driver.
"""

from . import elementwise
from . import gauss_jordan
from .gauss_jordan import invert_in_place

__all__ = ["elementwise", "gauss_jordan", "invert_in_place"]
