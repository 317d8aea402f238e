from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Optional

from tiled_matmul.kernels import SUPPORTED_BLOCK_SIZES


@dataclass
class MatrixMulConfig:
    """Configuration for one multiply run.

    All fields have default values to make configuration optional. ``None`` means the value
    is derived from the selected device.
    """

    iterations: int = field(default=30)
    warmup_runs: int = field(default=1)
    seed: int = field(default=2006)
    tolerance: float = field(default=1e-6)
    max_listed: int = field(default=100)
    block_size: Optional[int] = field(default=None)
    size: Optional[int] = field(default=None)  # square override of all three dimensions
    size_multiple: Optional[int] = field(default=None)
    device: Optional[int] = field(default=None)
    quiet: bool = field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = field(default="INFO")

    def __post_init__(self):
        if self.iterations <= 0:
            raise ValueError("iterations must be > 0")
        if self.warmup_runs < 0:
            raise ValueError("warmup_runs must be >= 0")
        if not isinstance(self.tolerance, float):
            raise ValueError("tolerance must be a float")
        if math.isnan(self.tolerance) or self.tolerance < 0:
            raise ValueError("tolerance must be >= 0")
        if self.max_listed < 0:
            raise ValueError("max_listed must be >= 0")
        if self.block_size is not None and self.block_size not in SUPPORTED_BLOCK_SIZES:
            raise ValueError(f"block_size must be one of {SUPPORTED_BLOCK_SIZES}")
        if self.size is not None and self.size <= 0:
            raise ValueError("size must be > 0")
        if self.size_multiple is not None and not (1 <= self.size_multiple <= 10):
            raise ValueError("size_multiple must be in [1, 10]")
        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            raise ValueError(f"Invalid log_level: {self.log_level}")
