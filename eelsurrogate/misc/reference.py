# eelsurrogate/misc/reference.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Host-side reference solution of the ordinary kriging system.

Builds the same bordered system as the device pipeline with SciPy and
solves it with LAPACK. Used to cross-check the kernels.
"""
import numpy as np
from scipy.linalg import solve
from scipy.spatial.distance import cdist


def gaussian_covariance(x, y, theta, variance, nugget=0.0):
    """(variance - nugget) * exp(-theta * |x - y|^2) for all pairs of rows."""
    d2 = cdist(np.atleast_2d(x), np.atleast_2d(y), "sqeuclidean")
    return (variance - nugget) * np.exp(-theta * d2)


def ordinary_kriging(sites, values, test_sites, theta, variance, nugget=0.0, return_weights=False):
    """Ordinary kriging estimates at each row of ``test_sites``.

    Parameters
    ----------
    sites : array_like, shape (n, d)
    values : array_like, shape (n,)
    test_sites : array_like, shape (m, d)
    theta, variance, nugget : float
    return_weights : bool, optional
        Also return the (n+1, m) solution [weights; multipliers].

    Returns
    -------
    zt : numpy.ndarray, shape (m,)
    lambdamu : numpy.ndarray, shape (n+1, m), only if return_weights
    """
    xi = np.asarray(sites, dtype=float)
    if xi.ndim == 1:
        xi = xi.reshape(-1, 1)
    xt = np.asarray(test_sites, dtype=float).reshape(-1, xi.shape[1])
    zi = np.asarray(values, dtype=float).reshape(-1)
    n = xi.shape[0]

    K = gaussian_covariance(xi, xi, theta, variance, nugget)
    LHS = np.vstack((np.hstack((K, np.ones((n, 1)))), np.hstack((np.ones((1, n)), np.zeros((1, 1))))))
    RHS = np.vstack((gaussian_covariance(xi, xt, theta, variance, nugget), np.ones((1, xt.shape[0]))))

    lambdamu = solve(LHS, RHS, assume_a="sym")
    zt = lambdamu[:n, :].T @ zi
    if return_weights:
        return zt, lambdamu
    return zt
