# eelsurrogate/kernels/elementwise.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Per-element kernels on column-major buffers.

Each kernel computes one output entry per thread and reads only its
inputs, so threads of a launch are independent. A ``rows x cols``
output is launched as ``cols`` blocks of ``rows`` threads; vectors use
a single block.

Kernels
-------
squared_difference
    out = (a - b)**2, elementwise.
pairwise_squared_distance
    Squared Euclidean distance between every pair of design-site rows.
site_squared_distance
    Squared Euclidean distance from each design site to one point.
gaussian_correlation
    (variance - nugget) * exp(-theta * distance).
normalize
    out = a / value.
identity
    1 on the diagonal, 0 elsewhere.
extend_matrix, extend_vector
    Border a covariance matrix/vector with the unbiasedness constraint.
multiply
    Dense product, one output entry per thread.
"""
import eelsurrogate.num as enp
from eelsurrogate.device import kernel


@kernel
def squared_difference(t, out, a, b):
    idx = t.global_idx
    diff = a[idx] - b[idx]
    out[idx] = diff * diff


@kernel
def pairwise_squared_distance(t, out, sites, n, d):
    """out[i + j*n] = sum_k (S[i, k] - S[j, k])**2 for an n x d site matrix S."""
    i = t.thread_idx
    j = t.block_idx
    acc = enp.zeros(t.size)
    for k in range(d):
        diff = sites[i + k * n] - sites[j + k * n]
        acc = acc + diff * diff
    out[t.global_idx] = acc


@kernel
def site_squared_distance(t, out, sites, point, n, d):
    """out[i] = sum_k (S[i, k] - point[k])**2. Launched as one block of n threads."""
    i = t.thread_idx
    acc = enp.zeros(t.size)
    for k in range(d):
        diff = sites[i + k * n] - point[k]
        acc = acc + diff * diff
    out[i] = acc


@kernel
def gaussian_correlation(t, out, distance, theta, variance, nugget):
    idx = t.global_idx
    out[idx] = (variance - nugget) * enp.exp(-theta * distance[idx])


@kernel
def normalize(t, out, a, value):
    idx = t.global_idx
    out[idx] = a[idx] / value


@kernel
def identity(t, out, n):
    idx = t.global_idx
    # diagonal entries are n + 1 apart in a column-major n x n buffer
    on_diagonal = (idx % (n + 1)) == 0
    out[idx] = enp.where(on_diagonal, enp.ones(t.size), enp.zeros(t.size))


@kernel
def extend_matrix(t, out, a, n):
    """Copy an n x n matrix into an (n+1) x (n+1) output bordered by ones.

    The bottom-right corner is 0. Launched as n + 1 blocks of n + 1 threads.
    """
    row = t.thread_idx
    col = t.block_idx
    inside = enp.logical_and(row < n, col < n)
    src = enp.where(inside, row + col * n, enp.zeros_like(row))
    corner = enp.logical_and(row == n, col == n)
    border = enp.where(corner, enp.zeros(t.size), enp.ones(t.size))
    out[t.global_idx] = enp.where(inside, a[src], border)


@kernel
def extend_vector(t, out, c, n):
    """Copy an n-vector into an (n+1)-vector whose last entry is 1."""
    i = t.thread_idx
    inside = i < n
    src = enp.where(inside, i, enp.zeros_like(i))
    out[i] = enp.where(inside, c[src], enp.ones(t.size))


@kernel
def multiply(t, out, a, b, rows, inner):
    """out = a @ b for a (rows x inner) and b (inner x cols), column-major."""
    idx = t.global_idx
    row = idx % rows
    col = idx // rows
    acc = enp.zeros(t.size)
    for k in range(inner):
        acc = acc + a[row + k * rows] * b[k + col * inner]
    out[idx] = acc
