# eelsurrogate/num/shared.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Backend-independent helpers for eelsurrogate.num."""

from typing import Any, Callable


def poll(predicate: Callable[[], Any], limit: int) -> bool:
    """
    Evaluate ``predicate`` up to ``limit`` times and return True as soon
    as it holds, False if it never did.
    """
    for _ in range(max(int(limit), 1)):
        if predicate():
            return True
    return False
