from .config import MatrixMulConfig
from .runner import DeviceBuffers, HostBuffers, MatrixMulRunner
from .timing import gflops, time_launches
from .verify import VerificationResult, format_diff, verify

__all__ = [
    "MatrixMulConfig",
    "MatrixMulRunner",
    "DeviceBuffers",
    "HostBuffers",
    "time_launches",
    "gflops",
    "VerificationResult",
    "format_diff",
    "verify",
]
