"""Data layer: matrices, shapes and run records."""

from .matrix import Matrix, MatrixShape
from .report import (
    Correctness,
    Dimensions,
    Environment,
    Mismatch,
    Performance,
    RunReport,
    RunStatus,
)

__all__ = [
    # Matrix types
    "Matrix",
    "MatrixShape",
    # Report types
    "Correctness",
    "Dimensions",
    "Environment",
    "Mismatch",
    "Performance",
    "RunReport",
    "RunStatus",
]
