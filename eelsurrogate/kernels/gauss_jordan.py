# eelsurrogate/kernels/gauss_jordan.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Gauss-Jordan inversion with data-parallel kernels.

The working matrix M and a paired matrix P (the identity on entry) are
n x n column-major device buffers, one thread per entry. Row operations
are applied to both, so that P ends up holding M^{-1} when M has been
reduced to the identity.

Forward pass, for each pivot p = 0, ..., n-1:

1. ``reset_buffers`` zeroes the 2n scratch buffer and clears the ready
   flag.
2. ``capture_column_down`` is the leader launch: the thread owning the
   diagonal entry (p, p) copies column p, rows p..n-1, to scratch[p:n],
   checks the pivot, then raises the ready flag.
3. ``normalize_rows`` divides each row r >= p by scratch[r] (rows with
   scratch[r] == 0 are left as they are).
4. ``pivot_down`` subtracts the pivot row from every row r > p with
   scratch[r] != 0, which zeroes column p below the diagonal.

Backward pass, for each pivot p = n-1, ..., 1:

1. ``reset_buffers``.
2. ``capture_column_up`` (leader) copies column p, rows 0..p, to
   scratch[n:n+p+1] and raises the ready flag.
3. ``pivot_up`` subtracts scratch[n+r] times the pivot row from every
   row r < p.

The leader publishes the column before any follower modifies it; the
launch boundary between leader and follower launches is the
synchronization point. Followers still poll the ready flag a bounded
number of times and fail with KernelTimeoutError if it was never set.

Singularity
-----------
No rows are swapped. ``row_scale`` first records the largest magnitude
of each row. The bound follows the row through elimination: it is
divided along with the row by ``normalize_rows`` and raised to the
pivot row's bound by ``pivot_down``, so it tracks the size of the
numbers whose rounding the row carries. A pivot that is not finite or
whose magnitude is at most ``pivot_tolerance`` times this bound is
rounding noise, and the leader raises SingularMatrixError.
"""
import eelsurrogate.num as enp
from eelsurrogate.config import get_config, get_logger
from eelsurrogate.device import kernel
from eelsurrogate.errors import KernelTimeoutError, SingularMatrixError

_logger = get_logger()


# --------------------------------------------------------------------------
# Kernels
# --------------------------------------------------------------------------
@kernel
def row_scale(t, scale, matrix, n):
    """scale[i] = max_k |M[i, k]|. Launched as one block of n threads."""
    i = t.thread_idx
    acc = enp.zeros(t.size)
    for k in range(n):
        acc = enp.maximum(acc, enp.abs(matrix[i + k * n]))
    scale[i] = acc


@kernel
def reset_buffers(t, scratch, ready):
    """Launched over 2 blocks of n threads, one thread per scratch entry."""
    idx = t.global_idx
    scratch[idx] = enp.zeros(t.size)
    # single writer for the flag
    ready[0] = 0.0


@kernel
def capture_column_down(t, scratch, ready, status, matrix, scale, n, p, tolerance):
    leader = p * (n + 1)
    if leader >= t.size:
        return
    rows = enp.arange(p, n)
    scratch[rows] = matrix[rows + p * n]
    pivot = matrix[leader]
    if not bool(enp.abs(pivot) > tolerance * scale[p]):
        status[0] = 1.0
    ready[0] = 1.0


@kernel
def normalize_rows(t, scratch, ready, matrix, paired, scale, n, p, spin_limit):
    _wait_ready(ready, spin_limit, "normalize_rows")
    idx = t.global_idx
    pivots = scratch[t.thread_idx]
    divide = enp.logical_and(t.thread_idx >= p, pivots != 0)
    divisor = enp.where(divide, pivots, enp.ones(t.size))
    matrix[idx] = matrix[idx] / divisor
    paired[idx] = paired[idx] / divisor
    # threads of column 0 own the row scales
    rows = idx[:n]
    scale[rows] = scale[rows] / enp.abs(divisor[:n])


@kernel
def pivot_down(t, scratch, matrix, paired, scale, n, p):
    idx = t.global_idx
    row = t.thread_idx
    pivot_row = p + t.block_idx * n
    active = enp.logical_and(row > p, scratch[row] != 0)
    zero = enp.zeros(t.size)
    matrix[idx] = matrix[idx] - enp.where(active, matrix[pivot_row], zero)
    paired[idx] = paired[idx] - enp.where(active, paired[pivot_row], zero)
    rows = idx[:n]
    grown = enp.maximum(scale[rows], scale[p])
    scale[rows] = enp.where(active[:n], grown, scale[rows])


@kernel
def capture_column_up(t, scratch, ready, matrix, n, p):
    leader = p * (n + 1)
    if leader >= t.size:
        return
    rows = enp.arange(0, p + 1)
    scratch[n + rows] = matrix[rows + p * n]
    ready[0] = 1.0


@kernel
def pivot_up(t, scratch, ready, matrix, paired, n, p, spin_limit):
    _wait_ready(ready, spin_limit, "pivot_up")
    idx = t.global_idx
    row = t.thread_idx
    pivot_row = p + t.block_idx * n
    factor = enp.where(row < p, scratch[n + row], enp.zeros(t.size))
    matrix[idx] = matrix[idx] - factor * matrix[pivot_row]
    paired[idx] = paired[idx] - factor * paired[pivot_row]


def _wait_ready(ready, spin_limit, name):
    if not enp.poll(lambda: enp.to_scalar(ready[0]) != 0.0, spin_limit):
        raise KernelTimeoutError(
            f"ready flag not raised after {spin_limit} polls", operation=name
        )


# --------------------------------------------------------------------------
# Host driver
# --------------------------------------------------------------------------
def invert_in_place(session, matrix, paired, n):
    """Invert the n x n device buffer ``matrix`` into ``paired``.

    Parameters
    ----------
    session : eelsurrogate.device.DeviceSession
        Session owning ``matrix`` and ``paired``; scratch buffers are
        allocated in it too.
    matrix : DeviceBuffer
        Matrix to invert; reduced to the identity.
    paired : DeviceBuffer
        Must hold the identity on entry; holds the inverse on exit.
    n : int

    Raises
    ------
    SingularMatrixError
        If a pivot is negligible. ``matrix`` and ``paired`` are then in
        an intermediate state.
    """
    config = get_config()
    tolerance = config.pivot_tolerance
    spin_limit = config.spin_limit

    scratch = session.alloc(2 * n, "pivot scratch")
    ready = session.alloc(1, "ready flag")
    status = session.alloc(1, "pivot status")
    scale = session.alloc(n, "row scales")

    session.launch(row_scale, 1, n, scale, matrix, n)
    for p in range(n):
        session.launch(reset_buffers, 2, n, scratch, ready)
        session.launch(
            capture_column_down, n, n, scratch, ready, status, matrix, scale, n, p, tolerance
        )
        if session.read_scalar(status) != 0.0:
            _logger.debug("gauss_jordan: negligible pivot at index %d", p)
            raise SingularMatrixError(
                f"pivot {p} of a {n}x{n} matrix is zero or negligible",
                operation=session.operation,
                pivot_index=p,
            )
        session.launch(
            normalize_rows, n, n, scratch, ready, matrix, paired, scale, n, p, spin_limit
        )
        session.launch(pivot_down, n, n, scratch, matrix, paired, scale, n, p)

    for p in range(n - 1, 0, -1):
        session.launch(reset_buffers, 2, n, scratch, ready)
        session.launch(capture_column_up, n, n, scratch, ready, matrix, n, p)
        session.launch(pivot_up, n, n, scratch, ready, matrix, paired, n, p, spin_limit)

    session.synchronize()
