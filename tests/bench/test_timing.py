"""Tests for bench/timing.py"""

import sys
from types import SimpleNamespace

import pytest

from tiled_matmul.bench import gflops, time_launches
from tiled_matmul.bench import timing


class _Recorder:
    def __init__(self):
        self.events = []

    def launch(self):
        self.events.append("launch")

    def synchronize(self):
        self.events.append("sync")


def test_warmup_then_single_synchronize_closes_batch():
    rec = _Recorder()

    time_launches(rec.launch, iterations=4, synchronize=rec.synchronize, warmup=1)

    assert rec.events == ["launch", "sync", "launch", "launch", "launch", "launch", "sync"]


def test_no_warmup_still_synchronizes_before_timing():
    rec = _Recorder()

    time_launches(rec.launch, iterations=2, synchronize=rec.synchronize, warmup=0)

    assert rec.events == ["sync", "launch", "launch", "sync"]


def test_returns_elapsed_seconds(monkeypatch):
    clock = iter([10.0, 12.5])
    monkeypatch.setattr(timing, "time", SimpleNamespace(perf_counter=lambda: next(clock)))

    total = time_launches(lambda: None, iterations=3, synchronize=lambda: None)

    assert total == pytest.approx(2.5)


@pytest.mark.parametrize("iterations,warmup", [(0, 1), (-1, 1), (3, -1)])
def test_invalid_counts_raise(iterations, warmup):
    with pytest.raises(ValueError):
        time_launches(
            lambda: None, iterations=iterations, synchronize=lambda: None, warmup=warmup
        )


def test_gflops_contract():
    # 2 * 320 * 320 * 640 operations, 30 launches in 0.3 s -> 10 ms per launch
    flops = 2 * 320 * 320 * 640
    assert gflops(flops, 0.3, 30) == pytest.approx(flops / 0.01 / 1e9)


def test_gflops_zero_time_is_infinite():
    assert gflops(1000, 0.0, 5) == float("inf")


def test_gflops_invalid_arguments():
    with pytest.raises(ValueError):
        gflops(1000, 1.0, 0)
    with pytest.raises(ValueError):
        gflops(1000, -1.0, 1)


if __name__ == "__main__":
    pytest.main(sys.argv)
