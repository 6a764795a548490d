# eelsurrogate/core/surrogate.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Ordinary kriging estimate from device operations.

The estimate at a test site t solves the bordered system

    [ K   1 ] [ w  ]   [ k(t) ]
    [ 1^T 0 ] [ mu ] = [  1   ]

where K is the Gaussian covariance of the design sites and k(t) the
covariance between t and each site. The first block row is the usual
covariance matching; the last row forces the weights to sum to one
(unbiasedness), mu being the Lagrange multiplier. The estimate is
w^T z for observed values z.

Functions
---------
estimate(sites, values, test_site, theta, variance, nugget)
    One prediction, recomputing every matrix.
estimate_from_buffers(dimension, sites, values, test_site, ...)
    Same, from flat column-major dimension x dimension buffers.

Classes
-------
KrigingSurrogate
    Binds design data and hyperparameters; optionally caches the
    inverted extended covariance matrix across predictions.
"""
import hashlib

import numpy as np

from eelsurrogate.config import get_config, get_backend, get_logger
from eelsurrogate.errors import SurrogateError, EstimateError, ShapeError
from eelsurrogate.matrix import Matrix, as_matrix, first_column
from . import operations as ops
from .utils import ensure_design_data, check_hyperparameters

_logger = get_logger()

_CACHE_NAME = "covariance"
_CACHE_SIZE = 32


def _step(name, func, *args):
    """Run one pipeline step, turning its failure into an EstimateError."""
    try:
        return func(*args)
    except SurrogateError as exc:
        _logger.error("estimate: step '%s' failed with status %s: %s", name, exc.status, exc)
        raise EstimateError(
            f"step '{name}' failed: {exc}", step=name, cause_status=exc.status
        ) from exc


def _extended_inverse(sites, theta, variance, nugget):
    n = sites.rows
    paired = _step("identity", ops.identity, n + 1)
    distance = _step("pairwise_squared_distance", ops.pairwise_squared_distance, sites)
    covariance = _step(
        "gaussian_correlation", ops.gaussian_correlation, distance, theta, variance, nugget
    )
    extended = _step("extend", ops.extend, covariance)
    return _step("invert", ops.invert, extended, paired)


def _weights(inverse, sites, test_site, theta, variance, nugget):
    distance = _step("site_squared_distance", ops.site_squared_distance, sites, test_site)
    covariance = _step(
        "gaussian_correlation", ops.gaussian_correlation, distance, theta, variance, nugget
    )
    extended = _step("extend_vector", ops.extend_vector, covariance)
    return _step("weight_vector", ops.weight_vector, inverse, extended)


# --------------------------------------------------------------------------
# Public entry points
# --------------------------------------------------------------------------
def estimate(sites, values, test_site, theta, variance, nugget=0.0):
    """Ordinary kriging estimate at one test site.

    Parameters
    ----------
    sites : Matrix or array_like, shape (n, d)
        Design sites, one per row.
    values : Vector or array_like, shape (n,)
        Observed values at the design sites.
    test_site : Vector or array_like, shape (d,)
        Query point.
    theta : float
        Correlation decay rate, > 0.
    variance : float
        Process variance, >= nugget.
    nugget : float, optional
        Subtracted from the variance in the covariance amplitude, >= 0.

    Returns
    -------
    float
        The kriging estimate.

    Raises
    ------
    InvalidInputError
        Shapes or hyperparameters rejected before any device work.
    EstimateError
        A pipeline step failed; the step's error is chained as
        ``__cause__`` and its status is in ``cause_status``.
    """
    try:
        sites, values, test_site = ensure_design_data(sites, values, test_site)
        theta, variance, nugget = check_hyperparameters(theta, variance, nugget, "estimate")
    except SurrogateError as exc:
        _logger.error("estimate: invalid input (%s): %s", exc.status, exc)
        raise

    inverse = _extended_inverse(sites, theta, variance, nugget)
    weights = _weights(inverse, sites, test_site, theta, variance, nugget)
    return _step("dot", ops.dot, weights, values)


def estimate_from_buffers(dimension, sites, values, test_site, theta, variance, nugget=0.0):
    """Estimate from flat column-major ``dimension x dimension`` buffers.

    Legacy calling convention of the engine: the design
    sites fill a square matrix, the values and the test site occupy the
    first column of square matrices whose other entries are ignored.
    Every buffer must hold exactly ``dimension**2`` doubles.
    """
    if isinstance(dimension, bool) or int(dimension) != dimension or dimension < 1:
        raise ShapeError(f"dimension must be a positive integer, got {dimension!r}", "estimate")
    n = int(dimension)
    buffers = {}
    for name, buf in (("sites", sites), ("values", values), ("test_site", test_site)):
        flat = np.asarray(buf, dtype=np.float64).reshape(-1)
        if flat.size != n * n:
            raise ShapeError(
                f"{name} buffer holds {flat.size} doubles, expected {n * n}", "estimate"
            )
        buffers[name] = Matrix(flat, n, n)
    return estimate(
        buffers["sites"],
        first_column(buffers["values"]),
        first_column(buffers["test_site"]),
        theta,
        variance,
        nugget,
    )


# --------------------------------------------------------------------------
# Surrogate object
# --------------------------------------------------------------------------
class KrigingSurrogate:
    """Ordinary kriging surrogate with Gaussian covariance.

    Parameters
    ----------
    sites : Matrix or array_like, shape (n, d)
    values : Vector or array_like, shape (n,)
    theta, variance, nugget : float
        Covariance parameters, see :func:`estimate`.
    use_cache : bool, optional
        Keep the inverted extended covariance matrix in
        ``config.caches["covariance"]``, keyed by a digest of the design
        data, the parameters and the inversion settings, so that other
        surrogates built on the same data reuse it. Default False.

    Examples
    --------
    >>> s = KrigingSurrogate([[0.0], [2.0]], [1.0, 3.0], theta=1.0, variance=1.0)
    >>> round(s.predict([1.0]), 12)
    2.0
    """

    def __init__(self, sites, values, theta, variance, nugget=0.0, use_cache=False):
        self.sites, self.values, _ = ensure_design_data(sites, values)
        self.theta, self.variance, self.nugget = check_hyperparameters(
            theta, variance, nugget, "KrigingSurrogate"
        )
        self.use_cache = use_cache
        self._inverse = None
        self._inverse_key = None

    def __repr__(self):
        return (
            f"KrigingSurrogate(n={self.sites.rows}, d={self.sites.cols}, "
            f"theta={self.theta}, variance={self.variance}, nugget={self.nugget})"
        )

    @property
    def n(self):
        return self.sites.rows

    @property
    def dim(self):
        return self.sites.cols

    # ..................................................
    def _cache_key(self):
        config = get_config()
        h = hashlib.sha1()
        h.update(np.asarray(self.sites.shape, dtype=np.int64).tobytes())
        h.update(self.sites.data.tobytes())
        h.update(np.asarray([self.theta, self.variance, self.nugget]).tobytes())
        # settings the inversion depends on
        h.update(np.asarray([config.pivot_tolerance]).tobytes())
        h.update(f"{get_backend()}:{config.device}".encode())
        return h.hexdigest()

    def inverse(self):
        """Inverse of the extended covariance matrix, (n+1) x (n+1).

        Recomputed when the pivot tolerance, backend or device changed
        since the last call.
        """
        key = self._cache_key()
        if self._inverse is not None and self._inverse_key == key:
            return self._inverse

        if self.use_cache:
            cache = get_config().caches.setdefault(_CACHE_NAME, {})
            inverse = cache.get(key)
            if inverse is None:
                inverse = _extended_inverse(self.sites, self.theta, self.variance, self.nugget)
                if len(cache) >= _CACHE_SIZE:
                    cache.pop(next(iter(cache)))
                cache[key] = inverse
            else:
                _logger.debug("KrigingSurrogate: covariance cache hit %s", key[:8])
        else:
            inverse = _extended_inverse(self.sites, self.theta, self.variance, self.nugget)
        self._inverse, self._inverse_key = inverse, key
        return inverse

    def covariance_matrix(self):
        """Gaussian covariance between the design sites, n x n."""
        distance = _step("pairwise_squared_distance", ops.pairwise_squared_distance, self.sites)
        return _step(
            "gaussian_correlation",
            ops.gaussian_correlation,
            distance,
            self.theta,
            self.variance,
            self.nugget,
        )

    def correlation_matrix(self):
        """Covariance matrix divided by its amplitude ``variance - nugget``."""
        return _step(
            "normalize", ops.normalize, self.covariance_matrix(), self.variance - self.nugget
        )

    def weights(self, test_site):
        """Kriging weights at ``test_site`` followed by the Lagrange multiplier."""
        _, _, test_site = ensure_design_data(self.sites, test_site=test_site)
        return _weights(
            self.inverse(), self.sites, test_site, self.theta, self.variance, self.nugget
        )

    def predict(self, test_site):
        """Kriging estimate at one test site."""
        return _step("dot", ops.dot, self.weights(test_site), self.values)

    def predict_many(self, test_sites):
        """Estimates at each row of ``test_sites`` (m, d), as a numpy array."""
        test_sites = as_matrix(test_sites)
        if test_sites.cols != self.dim:
            raise ShapeError(
                f"test sites must have {self.dim} columns, got shape {test_sites.shape}",
                "predict_many",
            )
        return np.array([self.predict(test_sites.row(i)) for i in range(test_sites.rows)])
