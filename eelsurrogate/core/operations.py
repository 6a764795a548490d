# eelsurrogate/core/operations.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Host-side matrix operations.

Every function validates its arguments, opens a DeviceSession, copies
its inputs to the device, launches the kernel(s), copies the result back
and releases the device buffers. Results are returned as new host
matrices; when ``out`` is given it is overwritten only after the result
has been copied back successfully.

Functions
---------
identity(n)
squared_distance(a, b)
pairwise_squared_distance(sites)
site_squared_distance(sites, point)
gaussian_correlation(distance, theta, variance, nugget)
normalize(a, value)
extend(a), extend_vector(c)
invert(a, paired=None)
multiply(a, b), weight_vector(inverse, c_ext), dot(w, v)
"""
import math

from eelsurrogate.device import DeviceSession
from eelsurrogate.errors import ShapeError, ParameterError
from eelsurrogate.kernels import elementwise as ek
from eelsurrogate.kernels.gauss_jordan import invert_in_place
from eelsurrogate.matrix import Matrix, Vector, as_matrix, as_vector
from .utils import check_hyperparameters, check_square, check_output


def _deliver(result, out):
    if out is None:
        return result
    out.data[:] = result.data
    return out


def _check_order(n, operation):
    if isinstance(n, bool) or int(n) != n or n < 1:
        raise ShapeError(f"order must be a positive integer, got {n!r}", operation)
    return int(n)


# --------------------------------------------------------------------------
# Elementwise operations
# --------------------------------------------------------------------------
def identity(n, out=None):
    """Return the n x n identity matrix, built on the device."""
    n = _check_order(n, "identity")
    check_output(out, n, n, "identity")
    with DeviceSession("identity") as session:
        d_out = session.alloc(n * n, "identity")
        session.launch(ek.identity, n, n, d_out, n)
        result = session.to_host(d_out, n, n)
    return _deliver(result, out)


def squared_distance(a, b, out=None):
    """Elementwise squared difference ``(a - b)**2`` of two same-shape matrices."""
    a, b = as_matrix(a), as_matrix(b)
    if a.shape != b.shape:
        raise ShapeError(f"shape mismatch {a.shape} vs {b.shape}", "squared_distance")
    check_output(out, a.rows, a.cols, "squared_distance")
    with DeviceSession("squared_distance") as session:
        d_a = session.to_device(a, "a")
        d_b = session.to_device(b, "b")
        d_out = session.alloc(a.size, "squared distance")
        session.launch(ek.squared_difference, a.cols, a.rows, d_out, d_a, d_b)
        result = session.to_host(d_out, a.rows, a.cols, vector=isinstance(a, Vector))
    return _deliver(result, out)


def pairwise_squared_distance(sites, out=None):
    """n x n matrix of squared Euclidean distances between the rows of ``sites``."""
    sites = as_matrix(sites)
    n, d = sites.shape
    check_output(out, n, n, "pairwise_squared_distance")
    with DeviceSession("pairwise_squared_distance") as session:
        d_sites = session.to_device(sites, "design sites")
        d_out = session.alloc(n * n, "squared distance matrix")
        session.launch(ek.pairwise_squared_distance, n, n, d_out, d_sites, n, d)
        result = session.to_host(d_out, n, n)
    return _deliver(result, out)


def site_squared_distance(sites, point, out=None):
    """Vector of squared Euclidean distances from each row of ``sites`` to ``point``."""
    sites = as_matrix(sites)
    point = as_vector(point)
    n, d = sites.shape
    if point.rows != d:
        raise ShapeError(
            f"point has {point.rows} coordinates, sites have {d}", "site_squared_distance"
        )
    check_output(out, n, 1, "site_squared_distance")
    with DeviceSession("site_squared_distance") as session:
        d_sites = session.to_device(sites, "design sites")
        d_point = session.to_device(point, "test site")
        d_out = session.alloc(n, "squared distance vector")
        session.launch(ek.site_squared_distance, 1, n, d_out, d_sites, d_point, n, d)
        result = session.to_host(d_out, n, vector=True)
    return _deliver(result, out)


def gaussian_correlation(distance, theta, variance, nugget, out=None):
    """Apply ``(variance - nugget) * exp(-theta * distance)`` elementwise."""
    theta, variance, nugget = check_hyperparameters(
        theta, variance, nugget, "gaussian_correlation"
    )
    distance = as_matrix(distance)
    check_output(out, distance.rows, distance.cols, "gaussian_correlation")
    with DeviceSession("gaussian_correlation") as session:
        d_dist = session.to_device(distance, "squared distances")
        d_out = session.alloc(distance.size, "covariance")
        session.launch(
            ek.gaussian_correlation,
            distance.cols,
            distance.rows,
            d_out,
            d_dist,
            theta,
            variance,
            nugget,
        )
        result = session.to_host(
            d_out, distance.rows, distance.cols, vector=isinstance(distance, Vector)
        )
    return _deliver(result, out)


def normalize(a, value, out=None):
    """Divide every entry of ``a`` by the scalar ``value``."""
    a = as_matrix(a)
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ParameterError(f"normalizing value must be a real number: {exc}", "normalize") from exc
    if value == 0.0 or not math.isfinite(value):
        raise ParameterError(f"cannot normalize by {value}", "normalize")
    check_output(out, a.rows, a.cols, "normalize")
    with DeviceSession("normalize") as session:
        d_a = session.to_device(a, "input")
        d_out = session.alloc(a.size, "normalized")
        session.launch(ek.normalize, a.cols, a.rows, d_out, d_a, value)
        result = session.to_host(d_out, a.rows, a.cols, vector=isinstance(a, Vector))
    return _deliver(result, out)


# --------------------------------------------------------------------------
# Lagrange augmentation
# --------------------------------------------------------------------------
def extend(a, out=None):
    """Border an n x n matrix with the ordinary kriging constraint row and column.

    Returns the (n+1) x (n+1) matrix ``[[a, 1], [1^T, 0]]``.
    """
    a = check_square(as_matrix(a), "matrix", "extend")
    n = a.rows
    m = n + 1
    check_output(out, m, m, "extend")
    with DeviceSession("extend") as session:
        d_a = session.to_device(a, "covariance matrix")
        d_out = session.alloc(m * m, "extended covariance matrix")
        session.launch(ek.extend_matrix, m, m, d_out, d_a, n)
        result = session.to_host(d_out, m, m)
    return _deliver(result, out)


def extend_vector(c, out=None):
    """Append the constraint entry 1 to an n-vector."""
    c = as_vector(c)
    n = c.rows
    check_output(out, n + 1, 1, "extend_vector")
    with DeviceSession("extend_vector") as session:
        d_c = session.to_device(c, "covariance vector")
        d_out = session.alloc(n + 1, "extended covariance vector")
        session.launch(ek.extend_vector, 1, n + 1, d_out, d_c, n)
        result = session.to_host(d_out, n + 1, vector=True)
    return _deliver(result, out)


# --------------------------------------------------------------------------
# Inversion and products
# --------------------------------------------------------------------------
def invert(a, paired=None, out=None):
    """Invert a square matrix by Gauss-Jordan elimination on the device.

    Parameters
    ----------
    a : Matrix or array_like, shape (n, n)
        Matrix to invert. Not modified.
    paired : Matrix, optional
        Starting value of the paired matrix. Must be the n x n identity
        for the result to be the inverse; built on the device when None.
    out : Matrix, optional

    Returns
    -------
    Matrix
        The inverse of ``a``.

    Raises
    ------
    SingularMatrixError
        If a pivot is zero or negligible (no row exchanges are made).
    """
    a = check_square(as_matrix(a), "matrix", "invert")
    n = a.rows
    if paired is not None:
        paired = as_matrix(paired)
        if paired.shape != (n, n):
            raise ShapeError(f"paired matrix must be {n}x{n}, got {paired.shape}", "invert")
    check_output(out, n, n, "invert")
    with DeviceSession("invert") as session:
        d_a = session.to_device(a, "working matrix")
        if paired is None:
            d_p = session.alloc(n * n, "paired matrix")
            session.launch(ek.identity, n, n, d_p, n)
        else:
            d_p = session.to_device(paired, "paired matrix")
        invert_in_place(session, d_a, d_p, n)
        result = session.to_host(d_p, n, n)
    return _deliver(result, out)


def multiply(a, b, out=None):
    """Dense product ``a @ b``, one thread per output entry."""
    a, b = as_matrix(a), as_matrix(b)
    if a.cols != b.rows:
        raise ShapeError(f"cannot multiply {a.shape} by {b.shape}", "multiply")
    rows, inner, cols = a.rows, a.cols, b.cols
    check_output(out, rows, cols, "multiply")
    with DeviceSession("multiply") as session:
        d_a = session.to_device(a, "left operand")
        d_b = session.to_device(b, "right operand")
        d_out = session.alloc(rows * cols, "product")
        session.launch(ek.multiply, cols, rows, d_out, d_a, d_b, rows, inner)
        result = session.to_host(d_out, rows, cols, vector=(cols == 1))
    return _deliver(result, out)


def weight_vector(inverse, c_ext, out=None):
    """Kriging weights and Lagrange multiplier: ``inverse @ c_ext``."""
    inverse = check_square(as_matrix(inverse), "inverse", "weight_vector")
    c_ext = as_vector(c_ext)
    if c_ext.rows != inverse.rows:
        raise ShapeError(
            f"vector of length {c_ext.rows} does not match a {inverse.rows}x{inverse.cols} matrix",
            "weight_vector",
        )
    return multiply(inverse, c_ext, out=out)


def dot(w, v):
    """Dot product of the first ``len(v)`` entries of ``w`` with ``v``.

    ``w`` may be longer than ``v``: the trailing Lagrange multiplier of a
    weight vector is ignored this way.
    """
    w, v = as_vector(w), as_vector(v)
    n = v.rows
    if w.rows < n:
        raise ShapeError(f"weights have {w.rows} entries, values have {n}", "dot")
    with DeviceSession("dot") as session:
        d_w = session.to_device(w, "weights")
        d_v = session.to_device(v, "values")
        d_out = session.alloc(1, "estimate")
        # weights read as a 1 x n row: entry k at index k
        session.launch(ek.multiply, 1, 1, d_out, d_w, d_v, 1, n)
        return session.read_scalar(d_out)
