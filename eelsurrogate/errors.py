# eelsurrogate/errors.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Exception hierarchy of eelsurrogate.

Every error carries a short ``status`` string so that callers (and the
batch runner log) can tell failure kinds apart without parsing messages.

Classes
-------
SurrogateError
    Base class.
InvalidInputError, ShapeError, ParameterError
    Rejected before any device work starts.
AllocationError, TransferError, KernelLaunchError, KernelTimeoutError
    Device-side failures.
SingularMatrixError
    Zero or negligible pivot in the Gauss-Jordan engine.
EstimateError
    A step of the surrogate pipeline failed.
"""


class SurrogateError(Exception):
    """Base class of all eelsurrogate errors."""

    status = "error"

    def __init__(self, message, operation=None):
        super().__init__(message)
        self.operation = operation

    def __str__(self):
        msg = super().__str__()
        if self.operation:
            return f"{self.operation}: {msg}"
        return msg


class InvalidInputError(SurrogateError, ValueError):
    status = "invalid_input"


class ShapeError(InvalidInputError):
    status = "invalid_shape"


class ParameterError(InvalidInputError):
    status = "invalid_parameter"


class AllocationError(SurrogateError):
    status = "allocation_failed"


class TransferError(SurrogateError):
    status = "transfer_failed"


class KernelLaunchError(SurrogateError):
    status = "launch_failed"


class KernelTimeoutError(KernelLaunchError):
    status = "launch_timeout"


class SingularMatrixError(SurrogateError, ArithmeticError):
    """Raised when a pivot is zero or negligible relative to its row."""

    status = "singular_matrix"

    def __init__(self, message, operation=None, pivot_index=None):
        super().__init__(message, operation)
        self.pivot_index = pivot_index


class EstimateError(SurrogateError):
    """A pipeline step failed. The failing step's error is chained as __cause__."""

    status = "estimate_failed"

    def __init__(self, message, step=None, cause_status=None):
        super().__init__(message, operation="estimate")
        self.step = step
        self.cause_status = cause_status
