"""Wall-clock timing of batches of kernel launches."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any


def time_launches(
    launch: Callable[[], Any],
    iterations: int,
    synchronize: Callable[[], Any],
    warmup: int = 1,
) -> float:
    """Time a batch of asynchronous launches.

    Warm-up launches run first and are followed by a synchronize, so compilation and
    first-touch costs are excluded. The timed launches are then queued back to back and a
    single synchronize closes the batch; it is the only rendezvous with the device inside
    the measurement.

    Parameters
    ----------
    launch : Callable[[], Any]
        Enqueues one launch.
    iterations : int
        Number of timed launches.
    synchronize : Callable[[], Any]
        Blocks until all queued device work completes.
    warmup : int
        Number of untimed launches before the measurement (default: 1).

    Returns
    -------
    float
        Total elapsed seconds across all timed launches.
    """
    if iterations <= 0:
        raise ValueError("iterations must be > 0")
    if warmup < 0:
        raise ValueError("warmup must be >= 0")

    for _ in range(warmup):
        launch()
    synchronize()

    start = time.perf_counter()
    for _ in range(iterations):
        launch()
    synchronize()
    return time.perf_counter() - start


def gflops(flop_count: int, total_seconds: float, iterations: int) -> float:
    """Throughput in billions of operations per second.

    ``flop_count / (total_seconds / iterations) / 1e9``. A zero elapsed time yields ``inf``.
    """
    if iterations <= 0:
        raise ValueError("iterations must be > 0")
    if total_seconds < 0:
        raise ValueError("total_seconds must be >= 0")
    seconds_per_iteration = total_seconds / iterations
    if seconds_per_iteration == 0:
        return float("inf")
    return flop_count / seconds_per_iteration / 1e9
