# eelsurrogate/config.py
import os
import logging
from importlib.util import find_spec

# Read version from VERSION file
_version_file = os.path.join(os.path.dirname(__file__), "..", "VERSION")
try:
    with open(os.path.abspath(_version_file), "r") as f:
        __version__ = f.read().strip()
except FileNotFoundError:
    __version__ = "0.0.0"

_BACKENDS = ("numpy", "torch")


class _EELConfig:
    def __init__(self):
        self.version = __version__
        self.backend = None
        self.dtype = float
        self.device = "cpu"
        # relative threshold below which a Gauss-Jordan pivot counts as zero
        self.pivot_tolerance = 1e-12
        # number of polls a follower launch makes on the ready flag
        self.spin_limit = 1000
        # CUDA limit on threads per block
        self.max_block_size = 1024
        self.caches = {}
        # logger lives in config
        self.logger = logging.getLogger("eelsurrogate")
        if not self.logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
            self.logger.addHandler(h)
        self.logger.setLevel(logging.INFO)

    def __str__(self):
        return (
            f"EELConfig("
            f"version={self.version}, "
            f"backend={self.backend}, "
            f"dtype={self.dtype}, "
            f"device={self.device}, "
            f"pivot_tolerance={self.pivot_tolerance}, "
            f"spin_limit={self.spin_limit}, "
            f"max_block_size={self.max_block_size}, "
            f"caches={list(self.caches.keys())})"
        )

    def __repr__(self):
        return (
            f"<EELConfig "
            f"version={self.version!r}, "
            f"backend={self.backend!r}, "
            f"device={self.device!r}, "
            f"pivot_tolerance={self.pivot_tolerance!r}, "
            f"spin_limit={self.spin_limit!r}, "
            f"max_block_size={self.max_block_size!r}>"
        )

    def update(self, **kwargs):
        for k, v in kwargs.items():
            if not hasattr(self, k):
                raise AttributeError(f"Unknown configuration key '{k}'")
            setattr(self, k, v)
        return self

    def clear_caches(self, name=None):
        if name is None:
            self.caches.clear()
        else:
            self.caches.pop(name, None)


_config = _EELConfig()


def get_config():
    return _config


def _detect_backend():
    env = os.environ.get("EELSURROGATE_BACKEND")
    if env in _BACKENDS:
        return env
    if find_spec("torch") is not None:
        return "torch"
    return "numpy"


def init_backend():
    """Idempotent. Detect and store backend, set env for downstream imports."""
    if _config.backend is None:
        backend = _detect_backend()
        _config.backend = backend
        os.environ["EELSURROGATE_BACKEND"] = backend
    return _config.backend


def set_backend(backend: str):
    """Force a backend ('numpy'|'torch') before importing eelsurrogate.num."""
    if backend not in _BACKENDS:
        raise ValueError("backend must be 'numpy' or 'torch'")
    _config.backend = backend
    os.environ["EELSURROGATE_BACKEND"] = backend


def get_backend():
    """Return current backend; triggers detection if not set."""
    return _config.backend or init_backend()


def set_device(device):
    """Select the device kernels run on ('cpu', 'cuda', 'cuda:1', ...)."""
    _config.device = device


def clear_caches(name=None):
    _config.clear_caches(name)


def get_logger():
    return _config.logger


def set_log_level(level):
    _config.logger.setLevel(level)
