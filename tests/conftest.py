import os
from typing import List

import pytest


def _torch_cuda_available() -> bool:
    """Check if CUDA is available from PyTorch.

    Returns
    -------
    bool
        True if CUDA is available from PyTorch, False otherwise.
    """
    try:
        import torch

        return torch.cuda.is_available()
    except ImportError:
        return False


# numba reads NUMBA_ENABLE_CUDASIM once, when it is first imported.
if not _torch_cuda_available():
    os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")


def pytest_collection_modifyitems(config: pytest.Config, items: List[pytest.Item]) -> None:
    """Modify pytest collection to skip tests that require CUDA when CUDA is not available."""
    if _torch_cuda_available():
        return

    skip_cuda = pytest.mark.skip(reason="CUDA not available from PyTorch, skip test")
    for item in items:
        if any(item.iter_markers(name="requires_torch_cuda")):
            item.add_marker(skip_cuda)


@pytest.fixture
def generator():
    """A torch generator seeded like the sample's default run."""
    import torch

    return torch.Generator().manual_seed(2006)


@pytest.fixture
def run_tiled():
    """Launch the tiled kernel once per call on fresh device copies and return C."""
    import numpy as np
    import torch
    from numba import cuda

    from tiled_matmul.data import Matrix, MatrixShape
    from tiled_matmul.kernels import matrix_mul

    def _run(a: Matrix, b: Matrix, block_size: int, launches: int = 1) -> List[Matrix]:
        shape = MatrixShape(a.height, a.width, b.width)
        d_a = cuda.to_device(a.data.numpy())
        d_b = cuda.to_device(b.data.numpy())
        d_c = cuda.device_array(a.height * b.width, dtype=np.float32)
        results = []
        for _ in range(launches):
            matrix_mul(d_c, d_a, d_b, shape, block_size)
            cuda.synchronize()
            results.append(Matrix(torch.from_numpy(d_c.copy_to_host()), a.height, b.width))
        return results

    return _run
