# eelsurrogate/matrix.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Host-side dense matrix types.

Storage order
-------------
All matrices are stored as one flat float64 buffer in column-major
order: entry (i, j) of a ``rows x cols`` matrix lives at
``i + j * rows``. This is the layout the kernels index into, so a
Matrix can be copied to a device buffer without reordering.

A :class:`Vector` is an ``n x 1`` Matrix. Kernels receive explicit row
and column counts, so vectors are never padded to square matrices.
"""
import numpy as np

from .errors import ShapeError


class Matrix:
    """Dense column-major matrix of float64.

    Parameters
    ----------
    data : array_like
        Flat buffer of length ``rows * cols`` in column-major order.
    rows : int
    cols : int, optional
        Defaults to ``rows`` (square matrix).
    """

    def __init__(self, data, rows, cols=None):
        cols = rows if cols is None else cols
        rows, cols = int(rows), int(cols)
        if rows < 1 or cols < 1:
            raise ShapeError(f"matrix dimensions must be positive, got {rows}x{cols}")
        buf = np.array(data, dtype=np.float64).reshape(-1)
        if buf.size != rows * cols:
            raise ShapeError(
                f"buffer holds {buf.size} values, a {rows}x{cols} matrix needs {rows * cols}"
            )
        self.data = buf
        self.rows = rows
        self.cols = cols

    # ..................................................
    @classmethod
    def from_array(cls, a):
        """Build from a 2-D array (a 1-D array is read as a column)."""
        a = np.asarray(a, dtype=np.float64)
        if a.ndim == 1:
            a = a.reshape(-1, 1)
        if a.ndim != 2:
            raise ShapeError(f"expected a 2-D array, got {a.ndim} dimensions")
        return cls(a.reshape(-1, order="F"), a.shape[0], a.shape[1])

    @classmethod
    def zeros(cls, rows, cols=None):
        cols = rows if cols is None else cols
        return cls(np.zeros(rows * cols), rows, cols)

    @classmethod
    def identity(cls, n):
        return cls.from_array(np.eye(n))

    # ..................................................
    @property
    def shape(self):
        return (self.rows, self.cols)

    @property
    def size(self):
        return self.rows * self.cols

    @property
    def is_square(self):
        return self.rows == self.cols

    def index(self, i, j):
        """Flat buffer index of entry (i, j)."""
        if not (0 <= i < self.rows and 0 <= j < self.cols):
            raise IndexError(f"({i}, {j}) out of range for {self.rows}x{self.cols} matrix")
        return i + j * self.rows

    def __getitem__(self, ij):
        i, j = ij
        return float(self.data[self.index(i, j)])

    def __setitem__(self, ij, value):
        i, j = ij
        self.data[self.index(i, j)] = value

    def column(self, j):
        """Copy of column j (contiguous in the buffer)."""
        self.index(0, j)
        return self.data[j * self.rows:(j + 1) * self.rows].copy()

    def row(self, i):
        """Copy of row i (strided by ``rows`` in the buffer)."""
        self.index(i, 0)
        return self.data[i::self.rows].copy()

    def to_array(self):
        return self.data.reshape((self.rows, self.cols), order="F").copy()

    def copy(self):
        return type(self)._rebuild(self.data.copy(), self.rows, self.cols)

    @classmethod
    def _rebuild(cls, data, rows, cols):
        return Matrix(data, rows, cols)

    def allclose(self, other, rtol=1e-9, atol=1e-12):
        other = as_matrix(other)
        return self.shape == other.shape and bool(
            np.allclose(self.data, other.data, rtol=rtol, atol=atol)
        )

    def __repr__(self):
        return f"{type(self).__name__}({self.rows}x{self.cols})\n{self.to_array()!r}"


class Vector(Matrix):
    """Column vector, stored as an ``n x 1`` Matrix."""

    def __init__(self, data, n=None):
        buf = np.array(data, dtype=np.float64).reshape(-1)
        n = buf.size if n is None else n
        super().__init__(buf, n, 1)

    @classmethod
    def _rebuild(cls, data, rows, cols):
        return Vector(data, rows)

    @classmethod
    def zeros(cls, n):
        return cls(np.zeros(n))

    def __len__(self):
        return self.rows

    def __getitem__(self, i):
        if isinstance(i, tuple):
            return super().__getitem__(i)
        return float(self.data[self.index(i, 0)])

    def __setitem__(self, i, value):
        if isinstance(i, tuple):
            super().__setitem__(i, value)
        else:
            self.data[self.index(i, 0)] = value

    def to_array(self):
        return self.data.copy()


# ..................................................
def as_matrix(x):
    """Coerce a Matrix, 2-D array or 1-D array (one column) to a Matrix."""
    if isinstance(x, Matrix):
        return x
    return Matrix.from_array(x)


def as_vector(x):
    """Coerce to a Vector.

    Accepts a Vector, a single-column Matrix, a scalar, a 1-D array or a
    2-D array with one column. A square Matrix is not accepted here:
    use :func:`first_column` for the legacy padded layout.
    """
    if isinstance(x, Vector):
        return x
    if isinstance(x, Matrix):
        if x.cols != 1:
            raise ShapeError(f"expected a single column, got a {x.rows}x{x.cols} matrix")
        return Vector(x.data)
    a = np.asarray(x, dtype=np.float64)
    if a.ndim == 2:
        if a.shape[1] != 1 and a.shape[0] != 1:
            raise ShapeError(f"expected a vector, got an array of shape {a.shape}")
    elif a.ndim > 2:
        raise ShapeError(f"expected a vector, got an array of shape {a.shape}")
    if a.size == 0:
        raise ShapeError("empty vector")
    return Vector(a.reshape(-1))


def first_column(x):
    """Vector made of the first column of a (possibly padded) matrix."""
    m = as_matrix(x)
    return Vector(m.column(0))
