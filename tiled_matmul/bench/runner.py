"""Host orchestration of one multiply run: allocate, transfer, launch, time, verify, release."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import numba
import numpy as np
import torch
from numba import cuda

from tiled_matmul.data import (
    Dimensions,
    Environment,
    Matrix,
    MatrixShape,
    Performance,
    RunReport,
    RunStatus,
)
from tiled_matmul.device import DeviceInfo, device_call, is_simulator, select_device
from tiled_matmul.kernels import matrix_mul, reference_matmul
from tiled_matmul.logging import get_logger

from .config import MatrixMulConfig
from .timing import gflops, time_launches
from .verify import VerificationResult, verify


class DeviceBuffers:
    """Device-resident A, B and C owned by one run.

    A and B are written once by :meth:`upload`; C is overwritten by every launch.
    """

    def __init__(self, shape: MatrixShape) -> None:
        self.shape = shape
        self.a = None
        self.b = None
        self.c = None

    def upload(self, a: Matrix, b: Matrix) -> None:
        with device_call("cuda.to_device"):
            self.a = cuda.to_device(a.data.numpy())
            self.b = cuda.to_device(b.data.numpy())
        with device_call("cuda.device_array"):
            self.c = cuda.device_array(
                self.shape.height_a * self.shape.width_b, dtype=np.float32
            )

    def download(self) -> Matrix:
        with device_call("copy_to_host"):
            host = self.c.copy_to_host()
        height, width = self.shape.c_dims
        return Matrix(torch.from_numpy(host), height, width)

    def release(self) -> None:
        """Drop the device arrays and free their memory now.

        numba queues frees of unreferenced arrays; flushing the queue returns the memory to
        the device before the run ends.
        """
        self.a = None
        self.b = None
        self.c = None
        if not is_simulator():
            with device_call("deallocations.clear"):
                cuda.current_context().deallocations.clear()

    @property
    def is_released(self) -> bool:
        return self.a is None and self.b is None and self.c is None


@dataclass
class HostBuffers:
    """Host-resident inputs and output of one run."""

    a: Optional[Matrix]
    b: Optional[Matrix]
    c: Optional[Matrix] = None

    @classmethod
    def allocate(cls, shape: MatrixShape, generator: torch.Generator) -> HostBuffers:
        """Fill A then B from the same generator, so they hold independent values."""
        a = Matrix.random(*shape.a_dims, generator=generator)
        b = Matrix.random(*shape.b_dims, generator=generator)
        return cls(a=a, b=b)

    def release(self) -> None:
        self.a = None
        self.b = None
        self.c = None


def _synchronize() -> None:
    with device_call("cuda.synchronize"):
        cuda.synchronize()


class MatrixMulRunner:
    """Runs the tiled kernel on seeded random inputs and verifies it against the reference."""

    def __init__(self, config: MatrixMulConfig = MatrixMulConfig()) -> None:
        self._config = config
        self._logger = get_logger("MatrixMulRunner")

    @property
    def config(self) -> MatrixMulConfig:
        return self._config

    def resolve_problem(self, device: DeviceInfo) -> Tuple[int, MatrixShape]:
        """Choose the tile edge and matrix shape for ``device``.

        Explicit configuration wins; otherwise the device generation picks the tile edge
        and its multiprocessor count picks the size multiple.

        Raises
        ------
        ValueError
            If the resulting shape is not tileable by the tile edge.
        """
        block_size = self._config.block_size or device.default_block_size
        if self._config.size is not None:
            shape = MatrixShape.square(self._config.size)
        else:
            size_multiple = self._config.size_multiple or device.default_size_multiple
            shape = MatrixShape.for_device(block_size, size_multiple)
        shape.validate(block_size)
        return block_size, shape

    def run(self) -> RunReport:
        """Execute one complete run.

        Host and device buffers are released before returning, whether verification
        passes, fails, or an error propagates.

        Returns
        -------
        RunReport
            Verification outcome, timing and environment of the run.

        Raises
        ------
        DeviceUnavailableError
            If no device can be selected.
        DeviceCallError
            If any transfer, launch or synchronize fails.
        ValueError
            If the configured shape is not tileable.
        """
        cfg = self._config
        device = select_device(cfg.device, quiet=cfg.quiet)
        block_size, shape = self.resolve_problem(device)
        self._logger.info(f"Using matrix sizes {shape}, block size {block_size}")

        generator = torch.Generator().manual_seed(cfg.seed)
        host = HostBuffers.allocate(shape, generator)
        device_buffers = DeviceBuffers(shape)
        try:
            device_buffers.upload(host.a, host.b)
            self._logger.debug("Copied A and B to device")

            total_seconds = time_launches(
                lambda: matrix_mul(
                    device_buffers.c, device_buffers.a, device_buffers.b, shape, block_size
                ),
                iterations=cfg.iterations,
                synchronize=_synchronize,
                warmup=cfg.warmup_runs,
            )
            self._logger.info(
                f"Timed {cfg.iterations} launches in {total_seconds * 1e3:.3f} ms"
            )

            host.c = device_buffers.download()
            reference = reference_matmul(host.a, host.b)
            verification = verify(
                reference, host.c, tolerance=cfg.tolerance, max_listed=cfg.max_listed
            )
            if not verification.passed:
                self._logger.warning(
                    f"{verification.mismatch_count} elements differ from the reference by "
                    f"more than {cfg.tolerance:g}"
                )
        finally:
            device_buffers.release()
            host.release()
            self._logger.debug("Released host and device buffers")

        return self._build_report(device, shape, block_size, total_seconds, verification)

    def _build_report(
        self,
        device: DeviceInfo,
        shape: MatrixShape,
        block_size: int,
        total_seconds: float,
        verification: VerificationResult,
    ) -> RunReport:
        iterations = self._config.iterations
        performance = Performance(
            iterations=iterations,
            total_seconds=total_seconds,
            msec_per_iteration=total_seconds * 1e3 / iterations,
            flop_count=shape.flop_count,
            gflops=gflops(shape.flop_count, total_seconds, iterations),
            workgroup_size=block_size * block_size,
        )
        environment = Environment(
            hardware=device.name,
            device_index=device.index,
            compute_capability=device.compute_capability,
            libs={"torch": torch.__version__, "numba": numba.__version__},
        )
        return RunReport(
            status=RunStatus.PASSED if verification.passed else RunStatus.INCORRECT_NUMERICAL,
            environment=environment,
            dimensions=Dimensions(
                height_a=shape.height_a, width_a=shape.width_a, width_b=shape.width_b
            ),
            block_size=block_size,
            seed=self._config.seed,
            correctness=verification.to_correctness(),
            performance=performance,
            timestamp=datetime.now().isoformat(),
        )
