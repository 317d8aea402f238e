"""Row-major single-precision matrices and the shapes of a multiply."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import torch

# Tile counts (height_a, width_a, width_b) of the default problem before scaling.
_BASE_TILES = (4, 2, 2)


@dataclass
class Matrix:
    """A flat contiguous float32 buffer with an explicit height and width.

    Element ``(i, j)`` lives at ``data[i * width + j]``.
    """

    data: torch.Tensor
    height: int
    width: int

    def __post_init__(self) -> None:
        if self.height <= 0 or self.width <= 0:
            raise ValueError(f"Matrix dimensions must be positive, got {self.height}x{self.width}")
        if self.data.dim() != 1:
            raise ValueError(f"Matrix buffer must be flat, got {self.data.dim()} dimensions")
        if self.data.dtype != torch.float32:
            raise ValueError(f"Matrix buffer must be float32, got {self.data.dtype}")
        if self.data.numel() != self.height * self.width:
            raise ValueError(
                f"Matrix buffer holds {self.data.numel()} elements, "
                f"expected {self.height}x{self.width}"
            )
        if not self.data.is_contiguous():
            raise ValueError("Matrix buffer must be contiguous")

    @classmethod
    def zeros(cls, height: int, width: int) -> Matrix:
        return cls(torch.zeros(height * width, dtype=torch.float32), height, width)

    @classmethod
    def random(cls, height: int, width: int, generator: torch.Generator) -> Matrix:
        """Fill a new matrix with uniform values in [0, 1) drawn from ``generator``.

        Parameters
        ----------
        height : int
            Number of rows.
        width : int
            Number of columns.
        generator : torch.Generator
            Source of randomness. Consecutive calls on one generator yield independent values.
        """
        data = torch.rand(height * width, generator=generator, dtype=torch.float32)
        return cls(data, height, width)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Matrix:
        tensor = torch.tensor(rows, dtype=torch.float32)
        if tensor.dim() != 2:
            raise ValueError("from_rows expects a non-empty list of equal-length rows")
        height, width = tensor.shape
        return cls(tensor.reshape(-1).contiguous(), height, width)

    @property
    def numel(self) -> int:
        return self.height * self.width

    def element(self, i: int, j: int) -> float:
        if not (0 <= i < self.height and 0 <= j < self.width):
            raise IndexError(f"Element ({i}, {j}) outside {self.height}x{self.width} matrix")
        return self.data[i * self.width + j].item()

    def as_2d(self) -> torch.Tensor:
        """Return a ``(height, width)`` view sharing storage with the flat buffer."""
        return self.data.view(self.height, self.width)

    def clone(self) -> Matrix:
        return Matrix(self.data.clone(), self.height, self.width)


@dataclass(frozen=True)
class MatrixShape:
    """Shape of ``C = A x B``: A is ``height_a x width_a``, B is ``width_a x width_b``."""

    height_a: int
    width_a: int
    width_b: int

    @classmethod
    def square(cls, size: int) -> MatrixShape:
        return cls(size, size, size)

    @classmethod
    def for_device(cls, block_size: int, size_multiple: int) -> MatrixShape:
        """Default problem size for a tile edge, scaled by a device-tier multiple."""
        if size_multiple <= 0:
            raise ValueError(f"size_multiple must be > 0, got {size_multiple}")
        height, width_a, width_b = (n * block_size * size_multiple for n in _BASE_TILES)
        return cls(height, width_a, width_b)

    @property
    def a_dims(self) -> Tuple[int, int]:
        return self.height_a, self.width_a

    @property
    def b_dims(self) -> Tuple[int, int]:
        return self.width_a, self.width_b

    @property
    def c_dims(self) -> Tuple[int, int]:
        return self.height_a, self.width_b

    @property
    def flop_count(self) -> int:
        """Multiply-add operation count, ``2 * H * WA * WB``."""
        return 2 * self.height_a * self.width_a * self.width_b

    def validate(self, block_size: Optional[int] = None) -> None:
        """Check that the shape can be multiplied by the tiled kernel.

        The kernel has no partial-tile handling: every dimension must be a positive exact
        multiple of the tile edge.

        Raises
        ------
        ValueError
            If a dimension is non-positive or not a multiple of ``block_size``.
        """
        dims = {"height_a": self.height_a, "width_a": self.width_a, "width_b": self.width_b}
        for name, value in dims.items():
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
            if block_size is not None and value % block_size != 0:
                raise ValueError(
                    f"{name}={value} is not a multiple of the tile edge {block_size}"
                )

    def grid(self, block_size: int) -> Tuple[int, int]:
        """Number of execution groups along (x, y): one group per output tile."""
        self.validate(block_size)
        return self.width_b // block_size, self.height_a // block_size

    def __str__(self) -> str:
        return (
            f"A({self.height_a}x{self.width_a}), B({self.width_a}x{self.width_b}), "
            f"C({self.height_a}x{self.width_b})"
        )
