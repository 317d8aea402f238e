from .reference import reference_matmul
from .tiled import SUPPORTED_BLOCK_SIZES, get_kernel, launch_config, matrix_mul

__all__ = [
    "SUPPORTED_BLOCK_SIZES",
    "get_kernel",
    "launch_config",
    "matrix_mul",
    "reference_matmul",
]
