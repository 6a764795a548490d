# eelsurrogate/device.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Device memory and kernel launches.

A kernel is a Python function decorated with :func:`kernel`. Its first
argument is a :class:`ThreadGrid` describing every thread of the launch
at once; the body is written as vectorised backend operations over the
thread index arrays, so one call evaluates all threads. Launches are
ordered: a launch completes before the next one starts.

A :class:`DeviceSession` owns the buffers of one host operation and
releases them when the ``with`` block exits, whether or not an error
was raised.
"""
import functools
import itertools

import eelsurrogate.num as enp
from .config import get_config, get_logger
from .errors import (
    SurrogateError,
    AllocationError,
    TransferError,
    KernelLaunchError,
)
from .matrix import Matrix, Vector

_logger = get_logger()

# ids of buffers that are allocated and not yet freed
_live_buffers = set()
_buffer_ids = itertools.count()


def live_buffers():
    """Number of device buffers currently allocated, all sessions included."""
    return len(_live_buffers)


# --------------------------------------------------------------------------
# Kernels
# --------------------------------------------------------------------------
class ThreadGrid:
    """Thread indices of a one-dimensional launch.

    With ``grid`` blocks of ``block`` threads, thread ``t`` of block ``b``
    has global index ``b * block + t``. Launching ``cols`` blocks of
    ``rows`` threads therefore maps each thread to one entry of a
    column-major ``rows x cols`` matrix: ``thread_idx`` is the row and
    ``block_idx`` the column.
    """

    def __init__(self, grid, block):
        self.grid_dim = grid
        self.block_dim = block
        self.size = grid * block
        self.global_idx = enp.arange(self.size)
        self.thread_idx = self.global_idx % block
        self.block_idx = self.global_idx // block


def kernel(func):
    """Mark ``func`` as a device kernel launched through DeviceSession.launch."""

    @functools.wraps(func)
    def wrapper(grid, *args):
        return func(grid, *args)

    wrapper.is_kernel = True
    wrapper.kernel_name = func.__name__
    return wrapper


# --------------------------------------------------------------------------
# Buffers
# --------------------------------------------------------------------------
class DeviceBuffer:
    """Flat float64 array in device memory."""

    def __init__(self, data, name):
        self.data = data
        self.name = name
        self.size = int(data.shape[0])
        self.id = next(_buffer_ids)
        _live_buffers.add(self.id)

    @property
    def freed(self):
        return self.data is None

    def free(self):
        if self.data is not None:
            self.data = None
            _live_buffers.discard(self.id)

    def __repr__(self):
        state = "freed" if self.freed else f"{self.size} doubles"
        return f"<DeviceBuffer {self.name!r}: {state}>"


class DeviceSession:
    """Allocation scope of one host operation.

    Parameters
    ----------
    operation : str
        Name used in log records and error messages.
    """

    def __init__(self, operation):
        self.operation = operation
        self.buffers = []
        self.launches = 0
        self._config = get_config()

    def __enter__(self):
        _logger.debug("%s: open session on %s", self.operation, enp.device_name())
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is not None and isinstance(exc, SurrogateError):
            _logger.error("%s failed (%s): %s", self.operation, exc.status, exc)
        self.release()
        return False

    # ..................................................
    def _fail(self, error_cls, message, cause=None):
        err = error_cls(message, operation=self.operation)
        if cause is not None:
            raise err from cause
        raise err

    def alloc(self, size, name="buffer"):
        """Allocate a zero-initialised buffer of ``size`` doubles."""
        size = int(size)
        if size < 1:
            self._fail(AllocationError, f"cannot allocate {size} doubles for {name}")
        try:
            data = enp.zeros(size)
        except enp.allocation_errors + (RuntimeError, AssertionError) as exc:
            self._fail(AllocationError, f"allocation of {size} doubles for {name} failed", exc)
        return self._track(DeviceBuffer(data, name))

    def to_device(self, host, name="input"):
        """Copy a host Matrix into a new device buffer."""
        if not isinstance(host, Matrix):
            self._fail(TransferError, f"{name}: expected a Matrix, got {type(host).__name__}")
        if host.data.size != host.rows * host.cols:
            self._fail(TransferError, f"{name}: buffer size does not match {host.rows}x{host.cols}")
        try:
            data = enp.asarray(host.data)
        except enp.allocation_errors as exc:
            self._fail(AllocationError, f"allocation for {name} failed", exc)
        except (RuntimeError, AssertionError, TypeError, ValueError) as exc:
            self._fail(TransferError, f"host to device copy of {name} failed", exc)
        return self._track(DeviceBuffer(data, name))

    def _track(self, buf):
        self.buffers.append(buf)
        return buf

    def _check_live(self, buf):
        if not isinstance(buf, DeviceBuffer) or buf.freed:
            self._fail(TransferError, f"{buf!r} is not a live device buffer")

    # ..................................................
    def launch(self, kern, grid, block, *args):
        """Run ``kern`` over ``grid`` blocks of ``block`` threads.

        DeviceBuffer arguments are passed to the kernel as their device
        arrays; other arguments are passed unchanged.
        """
        name = getattr(kern, "kernel_name", getattr(kern, "__name__", repr(kern)))
        if not getattr(kern, "is_kernel", False):
            self._fail(KernelLaunchError, f"{name} is not a kernel")
        if grid < 1 or block < 1:
            self._fail(KernelLaunchError, f"{name}: invalid configuration <<<{grid}, {block}>>>")
        if block > self._config.max_block_size:
            self._fail(
                KernelLaunchError,
                f"{name}: {block} threads per block exceeds the limit of "
                f"{self._config.max_block_size}",
            )
        device_args = []
        for a in args:
            if isinstance(a, DeviceBuffer):
                self._check_live(a)
                device_args.append(a.data)
            else:
                device_args.append(a)
        _logger.debug("%s: launch %s<<<%d, %d>>>", self.operation, name, grid, block)
        try:
            result = kern(ThreadGrid(grid, block), *device_args)
        except SurrogateError:
            raise
        except enp.launch_errors as exc:
            self._fail(KernelLaunchError, f"{name} failed: {exc}", exc)
        self.launches += 1
        return result

    def synchronize(self):
        try:
            enp.synchronize()
        except RuntimeError as exc:
            self._fail(KernelLaunchError, f"device synchronization failed: {exc}", exc)

    # ..................................................
    def to_host(self, buf, rows, cols=1, vector=False):
        """Copy a device buffer back into a new host Matrix (or Vector)."""
        self._check_live(buf)
        if buf.size != rows * cols:
            self._fail(
                TransferError,
                f"{buf.name}: {buf.size} doubles cannot hold a {rows}x{cols} matrix",
            )
        self.synchronize()
        try:
            host = enp.to_np(buf.data)
        except (RuntimeError, TypeError, ValueError) as exc:
            self._fail(TransferError, f"device to host copy of {buf.name} failed", exc)
        if vector:
            return Vector(host, rows)
        return Matrix(host, rows, cols)

    def read_scalar(self, buf, index=0):
        """Synchronize and read one entry of a device buffer."""
        self._check_live(buf)
        self.synchronize()
        try:
            return float(enp.to_scalar(buf.data[index]))
        except (RuntimeError, IndexError) as exc:
            self._fail(TransferError, f"read of {buf.name}[{index}] failed", exc)

    def release(self):
        """Free every buffer allocated by this session."""
        for buf in self.buffers:
            buf.free()
        if self.buffers:
            _logger.debug("%s: released %d buffers", self.operation, len(self.buffers))
        self.buffers = []
