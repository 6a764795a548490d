# eelsurrogate/__init__.py

from . import config
from . import num
from . import errors
from .matrix import Matrix, Vector
from . import device
from . import kernels
from . import core
from . import misc
from .core import estimate, estimate_from_buffers, KrigingSurrogate, run_batch
from .config import __version__

__all__ = [
    "num",
    "Matrix",
    "Vector",
    "estimate",
    "estimate_from_buffers",
    "KrigingSurrogate",
    "run_batch",
    "__version__",
]
