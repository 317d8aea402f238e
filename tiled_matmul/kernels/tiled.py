"""Tiled shared-memory matrix multiplication kernel.

Each execution group computes one ``T x T`` tile of C with one worker per output element.
The group walks the shared dimension in steps of ``T``: every worker loads one element of
the current A-tile and one of the current B-tile into shared scratch, the group waits at a
barrier, every worker accumulates its row-by-column partial product, and the group waits
again before the scratch is overwritten by the next step.

Preconditions: all three dimensions are exact multiples of ``T``. There is no
boundary-padding logic; :func:`matrix_mul` rejects other shapes before launching.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Tuple

from numba import cuda, float32

from tiled_matmul.data import MatrixShape
from tiled_matmul.device import device_call

SUPPORTED_BLOCK_SIZES = (16, 32)


def _build_kernel(block_size: int):
    # block_size is a closure constant, so the shared arrays have a compile-time shape.
    @cuda.jit
    def matrix_mul_kernel(c, a, b, width_a, width_b):
        bx = cuda.blockIdx.x
        by = cuda.blockIdx.y
        tx = cuda.threadIdx.x
        ty = cuda.threadIdx.y

        row = by * block_size + ty
        col = bx * block_size + tx

        a_tile = cuda.shared.array((block_size, block_size), float32)
        b_tile = cuda.shared.array((block_size, block_size), float32)

        c_sub = float32(0.0)
        for step in range(width_a // block_size):
            a_tile[ty, tx] = a[row * width_a + step * block_size + tx]
            b_tile[ty, tx] = b[(step * block_size + ty) * width_b + col]
            cuda.syncthreads()

            for k in range(block_size):
                c_sub += a_tile[ty, k] * b_tile[k, tx]
            cuda.syncthreads()

        c[row * width_b + col] = c_sub

    return matrix_mul_kernel


@lru_cache(maxsize=None)
def get_kernel(block_size: int):
    """Return the kernel specialised for a tile edge of 16 or 32.

    Raises
    ------
    ValueError
        If ``block_size`` is not a supported tile edge.
    """
    if block_size not in SUPPORTED_BLOCK_SIZES:
        raise ValueError(
            f"block_size must be one of {SUPPORTED_BLOCK_SIZES}, got {block_size}"
        )
    return _build_kernel(block_size)


def launch_config(shape: MatrixShape, block_size: int) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Grid and block dimensions: one group per output tile, one worker per element."""
    return shape.grid(block_size), (block_size, block_size)


def matrix_mul(c: Any, a: Any, b: Any, shape: MatrixShape, block_size: int) -> None:
    """Enqueue one launch computing ``c = a x b`` on device-resident flat buffers.

    The launch is asynchronous; callers synchronize before reading ``c``.

    Parameters
    ----------
    c : DeviceNDArray
        Output buffer of ``height_a * width_b`` float32 elements. Fully overwritten.
    a : DeviceNDArray
        Row-major A of ``height_a * width_a`` float32 elements.
    b : DeviceNDArray
        Row-major B of ``width_a * width_b`` float32 elements.
    shape : MatrixShape
        Dimensions of the multiply.
    block_size : int
        Tile edge, 16 or 32.

    Raises
    ------
    ValueError
        If the shape is not tileable by ``block_size`` or a buffer has the wrong size.
    DeviceCallError
        If the launch is rejected by the driver.
    """
    kernel = get_kernel(block_size)
    grid, block = launch_config(shape, block_size)

    expected = {
        "a": shape.height_a * shape.width_a,
        "b": shape.width_a * shape.width_b,
        "c": shape.height_a * shape.width_b,
    }
    for name, buffer in (("a", a), ("b", b), ("c", c)):
        if buffer.size != expected[name]:
            raise ValueError(
                f"Buffer '{name}' holds {buffer.size} elements, expected {expected[name]}"
            )

    with device_call("matrix_mul_kernel"):
        kernel[grid, block](c, a, b, shape.width_a, shape.width_b)
