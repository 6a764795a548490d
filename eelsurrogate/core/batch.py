# eelsurrogate/core/batch.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Batch evaluation with a per-run log.

A failing test site does not stop the batch: its estimate is NaN and
the failure is recorded in the log as ``"<index>:<status>:<message>"``;
successful runs are logged as ``"<index>:OK"``.
"""
from dataclasses import dataclass, field
from typing import List

import numpy as np

from eelsurrogate.config import get_logger
from eelsurrogate.errors import SurrogateError
from eelsurrogate.matrix import as_matrix
from .surrogate import KrigingSurrogate

_logger = get_logger()


@dataclass
class BatchResult:
    """Estimates and run log of :func:`run_batch`."""

    estimates: np.ndarray
    log: List[str] = field(default_factory=list)

    @property
    def succeeded(self):
        return sum(1 for line in self.log if line.endswith(":OK"))

    @property
    def failed(self):
        return len(self.estimates) - self.succeeded

    @property
    def ok(self):
        return self.failed == 0


def run_batch(sites, values, test_sites, theta, variance, nugget=0.0, use_cache=True):
    """Evaluate the surrogate at each row of ``test_sites``.

    Parameters
    ----------
    sites : array_like, shape (n, d)
    values : array_like, shape (n,)
    test_sites : array_like, shape (m, d)
    theta, variance, nugget : float
    use_cache : bool, optional
        Forwarded to KrigingSurrogate (default True).

    Returns
    -------
    BatchResult

    Raises
    ------
    InvalidInputError
        If the design data or hyperparameters are invalid, since no run
        of the batch could succeed.
    """
    surrogate = KrigingSurrogate(sites, values, theta, variance, nugget, use_cache=use_cache)
    test_sites = as_matrix(test_sites)
    m = test_sites.rows
    estimates = np.full(m, np.nan)
    log = []
    for i in range(m):
        try:
            estimates[i] = surrogate.predict(test_sites.row(i))
            log.append(f"{i}:OK")
        except SurrogateError as exc:
            status = getattr(exc, "cause_status", None) or exc.status
            log.append(f"{i}:{status}:{exc}")
    result = BatchResult(estimates=estimates, log=log)
    _logger.info("run_batch: %d of %d runs succeeded", result.succeeded, m)
    return result
