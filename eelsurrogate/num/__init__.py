# eelsurrogate/num/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Numerical backend dispatcher for eelsurrogate."""

from eelsurrogate.config import init_backend

from . import shared as _shared

_backend_name_ = init_backend()

if _backend_name_ == "numpy":
    from . import numpy_backend as _backend
elif _backend_name_ == "torch":
    from . import torch_backend as _backend
else:
    raise RuntimeError(
        "Please set the EELSURROGATE_BACKEND environment variable to 'numpy' or 'torch'."
    )

# Re-export backend API.
for _name in dir(_backend):
    if _name.startswith("__"):
        continue
    globals()[_name] = getattr(_backend, _name)

# Re-export backend-independent helpers from shared.py.
poll = _shared.poll
