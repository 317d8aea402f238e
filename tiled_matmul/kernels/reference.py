"""Single-threaded reference multiplier used as the correctness oracle."""

from __future__ import annotations

import numpy as np
import torch
from numba import njit

from tiled_matmul.data import Matrix


@njit
def _matrix_mul_reference(c, a, b, height_a, width_a, width_b):
    for i in range(height_a):
        for j in range(width_b):
            total = 0.0
            for k in range(width_a):
                total += np.float64(a[i * width_a + k]) * np.float64(b[k * width_b + j])
            c[i * width_b + j] = np.float32(total)


def reference_matmul(a: Matrix, b: Matrix) -> Matrix:
    """Compute ``a x b`` with a plain triple loop on the host.

    Every product and the running sum are kept in double precision; each output element
    is narrowed to single precision once.

    Raises
    ------
    ValueError
        If the column count of ``a`` differs from the row count of ``b``.
    """
    if a.width != b.height:
        raise ValueError(
            f"Cannot multiply {a.height}x{a.width} by {b.height}x{b.width}: "
            "inner dimensions differ"
        )
    c = np.empty(a.height * b.width, dtype=np.float32)
    _matrix_mul_reference(c, a.data.numpy(), b.data.numpy(), a.height, a.width, b.width)
    return Matrix(torch.from_numpy(c), a.height, b.width)
