# eelsurrogate/core/utils.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Small utilities used across `eelsurrogate.core` modules.

This file hosts:
- Shape/type validation & conversion helpers for (sites, values, test_site)
- Hyperparameter validation
"""
import math

import numpy as np

from eelsurrogate.errors import ShapeError, ParameterError
from eelsurrogate.matrix import Matrix, as_matrix, as_vector


def ensure_design_data(sites=None, values=None, test_site=None):
    """Validate and convert design data.

    Parameters
    ----------
    sites : Matrix or array_like, optional
        Design sites (n, d), one site per row. A 1-D array is read as n
        sites in dimension 1.
    values : Vector or array_like, optional
        Observed values (n,) or (n, 1).
    test_site : Vector or array_like, optional
        Query point (d,). A scalar is accepted when d == 1.

    Returns
    -------
    tuple
        (sites, values, test_site) as Matrix, Vector, Vector (None where
        not given).

    Notes
    -----
    Checks enforced:
        * values has one entry per site
        * test_site has one entry per site coordinate
        * all entries are finite
    """
    if sites is not None:
        sites = as_matrix(sites)
        _check_finite(sites, "sites")
    if values is not None:
        values = as_vector(values)
        _check_finite(values, "values")
    if test_site is not None:
        test_site = as_vector(test_site)
        _check_finite(test_site, "test_site")

    if sites is not None and values is not None and sites.rows != values.rows:
        raise ShapeError(
            f"{sites.rows} design sites but {values.rows} values", operation="estimate"
        )
    if sites is not None and test_site is not None and sites.cols != test_site.rows:
        raise ShapeError(
            f"design sites have {sites.cols} coordinates, test site has {test_site.rows}",
            operation="estimate",
        )
    return sites, values, test_site


def _check_finite(m, name):
    if not np.all(np.isfinite(m.data)):
        raise ParameterError(f"{name} contains non-finite entries")


def check_hyperparameters(theta, variance, nugget, operation=None):
    """Validate the Gaussian covariance parameters.

    Requires finite values with ``theta > 0``, ``nugget >= 0`` and
    ``variance >= nugget``. Returns them as floats.
    """
    try:
        theta, variance, nugget = float(theta), float(variance), float(nugget)
    except (TypeError, ValueError) as exc:
        raise ParameterError(f"hyperparameters must be real numbers: {exc}", operation) from exc
    if not all(math.isfinite(v) for v in (theta, variance, nugget)):
        raise ParameterError("hyperparameters must be finite", operation)
    if theta <= 0.0:
        raise ParameterError(f"theta must be positive, got {theta}", operation)
    if nugget < 0.0:
        raise ParameterError(f"nugget must be non-negative, got {nugget}", operation)
    if variance < nugget:
        raise ParameterError(
            f"variance ({variance}) must not be smaller than nugget ({nugget})", operation
        )
    return theta, variance, nugget


def check_square(m, name, operation=None):
    if not isinstance(m, Matrix) or not m.is_square:
        shape = getattr(m, "shape", None)
        raise ShapeError(f"{name} must be a square matrix, got shape {shape}", operation)
    return m


def check_output(out, rows, cols, operation=None):
    """Validate a caller-supplied output matrix before any device work."""
    if out is None:
        return
    if not isinstance(out, Matrix) or out.shape != (rows, cols):
        shape = getattr(out, "shape", None)
        raise ShapeError(f"output must be {rows}x{cols}, got shape {shape}", operation)
