from numba import cuda
import numpy as np
from conv_dbn import root_error_logger
from conv_dbn.errors import ShapeMismatchError, StaleBufferError
from conv_dbn.layers import GLOBAL_DTYPE, launch_dims
from conv_dbn.layers.cuda_kernels.cuda_kernels import cuda_copy_dhw


class DeviceVolume:
    """A dense host array mirrored by a device array of the same shape.

    The device copy is authoritative while kernels run. Reads and writes go through explicit calls so that a kernel's
    output buffer is always discarded before the kernel fills it, and nothing can read what was there before:

        - `readable()` hands out the device array as a kernel input, refusing if the contents were discarded.
        - `writable()` discards the contents and hands out the device array as a kernel output.
        - `commit()` marks that a kernel has finished overwriting the whole buffer.
        - `sync_to_device()` / `sync_from_device()` move contents between host and device.
    """

    def __init__(self, shape, name:str="volume", dtype=GLOBAL_DTYPE) -> None:
        self.name = name
        self.host = np.zeros(shape, dtype)
        self.device = cuda.to_device(self.host)
        self._discarded = False
        self._host_current = True

    @property
    def shape(self):
        return self.host.shape

    @property
    def size(self):
        return self.host.size

    @property
    def is_discarded(self):
        return self._discarded

    def invalidate(self):
        self._discarded = True
        self._host_current = False

    def commit(self):
        self._discarded = False
        self._host_current = False

    def sync_to_device(self):
        self.device.copy_to_device(self.host)
        self._discarded = False
        self._host_current = True

    def sync_from_device(self):
        self._check_readable()
        self.device.copy_to_host(self.host)
        self._host_current = True

    def readable(self):
        self._check_readable()
        return self.device

    def writable(self):
        self.invalidate()
        return self.device

    def set_host(self, values:np.ndarray):
        """Replaces the buffer's contents wholesale. `values` must hold exactly as many elements as the buffer."""
        values = np.asarray(values, dtype=self.host.dtype)
        if values.size != self.host.size:
            err = ShapeMismatchError(f"{self.name} holds {self.host.size} values, received {values.size}")
            err.args += self.host.shape, values.shape
            root_error_logger(f"{type(err)}: {err.args}")
            raise err
        self.invalidate()
        self.host[...] = values.reshape(self.host.shape)
        self.sync_to_device()

    def to_host(self):
        if not self._host_current:
            self.sync_from_device()
        return self.host.copy()

    def copy_to(self, other:"DeviceVolume"):
        """Device-to-device copy of this buffer's contents into `other`, which must share this buffer's shape."""
        if other.shape != self.shape:
            err = ShapeMismatchError(f"can't copy {self.name} into {other.name}")
            err.args += self.shape, other.shape
            root_error_logger(f"{type(err)}: {err.args}")
            raise err
        src = self.readable()
        dst = other.writable()
        cuda_copy_dhw[launch_dims(self.size)](src, dst)
        cuda.synchronize()
        other.commit()

    def _check_readable(self):
        if self._discarded:
            err = StaleBufferError(f"{self.name} was discarded and has not been rewritten")
            root_error_logger(f"{type(err)}: {err.args}")
            raise err

    def __repr__(self) -> str:
        state = "discarded" if self._discarded else ("host current" if self._host_current else "device current")
        return f"DeviceVolume/{self.name}:{{shape:{self.shape}; {state}}}"
