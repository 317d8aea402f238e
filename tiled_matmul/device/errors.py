"""Fatal device errors and the guard that raises them."""

from __future__ import annotations

import inspect
from types import TracebackType
from typing import Optional, Type

from numba.cuda.cudadrv.driver import CudaAPIError
from numba.cuda.cudadrv.error import CudaSupportError


class DeviceUnavailableError(RuntimeError):
    """Raised when no compatible device exists or the requested index is out of range."""

    def __init__(self, device_count: int, requested: Optional[int] = None) -> None:
        self.device_count = device_count
        self.requested = requested
        if device_count == 0:
            message = "no devices supporting CUDA were found"
        else:
            message = (
                f"{device_count} CUDA capable device(s) detected; "
                f"device={requested} is not a valid device"
            )
        super().__init__(message)


class DeviceCallError(RuntimeError):
    """Raised when a device API call reports an error. Never retried."""

    def __init__(
        self, call: str, code: Optional[int], filename: str, lineno: int, msg: str
    ) -> None:
        self.call = call
        self.code = None if code is None else int(code)
        self.filename = filename
        self.lineno = lineno
        code_str = "----" if self.code is None else f"{self.code:04d}"
        super().__init__(
            f"device call '{call}' failed with error = {code_str} \"{msg}\" "
            f"from file <{filename}>, line {lineno}"
        )


class device_call:
    """Convert driver errors raised inside the block into :class:`DeviceCallError`.

    The file and line of the ``with`` statement are recorded so the error names the
    failing call site rather than the driver internals.

    Examples
    --------
    >>> with device_call("cuda.to_device"):
    ...     d_a = cuda.to_device(host_a)
    """

    def __init__(self, call: str) -> None:
        self.call = call
        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        self.filename = caller.f_code.co_filename if caller is not None else "<unknown>"
        self.lineno = caller.f_lineno if caller is not None else 0

    def __enter__(self) -> device_call:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if exc is None or not isinstance(exc, (CudaAPIError, CudaSupportError)):
            return False
        code = getattr(exc, "code", None)
        msg = getattr(exc, "msg", None) or str(exc)
        raise DeviceCallError(self.call, code, self.filename, self.lineno, msg) from exc
