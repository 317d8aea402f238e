from tiled_matmul.bench import MatrixMulConfig, MatrixMulRunner, VerificationResult, verify
from tiled_matmul.data import (
    Correctness,
    Dimensions,
    Environment,
    Matrix,
    MatrixShape,
    Mismatch,
    Performance,
    RunReport,
    RunStatus,
)
from tiled_matmul.device import DeviceCallError, DeviceInfo, DeviceUnavailableError, select_device
from tiled_matmul.kernels import matrix_mul, reference_matmul
from tiled_matmul.logging import configure_logging, get_logger

__all__ = [
    # Main classes
    "MatrixMulConfig",
    "MatrixMulRunner",
    # Kernels
    "matrix_mul",
    "reference_matmul",
    # Verification
    "verify",
    "VerificationResult",
    # Device
    "DeviceInfo",
    "select_device",
    "DeviceCallError",
    "DeviceUnavailableError",
    # Data types
    "Matrix",
    "MatrixShape",
    "Correctness",
    "Dimensions",
    "Environment",
    "Mismatch",
    "Performance",
    "RunReport",
    "RunStatus",
    "configure_logging",
    "get_logger",
]
