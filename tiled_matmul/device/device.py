"""Device discovery and selection for the numba CUDA target (or its simulator)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from numba import cuda
from numba.core import config

from tiled_matmul.logging import get_logger

from .errors import DeviceUnavailableError, device_call

logger = get_logger("Device")

# CUDA cores per multiprocessor, keyed by compute capability.
_CORES_PER_MULTIPROCESSOR: Dict[Tuple[int, int], int] = {
    (1, 0): 8,
    (1, 1): 8,
    (1, 2): 8,
    (1, 3): 8,
    (2, 0): 32,
    (2, 1): 48,
    (3, 0): 192,
    (3, 2): 192,
    (3, 5): 192,
    (3, 7): 192,
    (5, 0): 128,
    (5, 2): 128,
    (5, 3): 128,
    (6, 0): 64,
    (6, 1): 128,
    (6, 2): 128,
    (7, 0): 64,
    (7, 2): 64,
    (7, 5): 64,
    (8, 0): 64,
    (8, 6): 128,
    (8, 7): 128,
    (8, 9): 128,
    (9, 0): 128,
    (10, 0): 128,
    (12, 0): 128,
}

# Devices with at most this many multiprocessors get the smaller default problem.
_SMALL_DEVICE_MULTIPROCESSORS = 4


def cores_per_multiprocessor(compute_capability: Tuple[int, int]) -> int:
    """Look up the core count of one multiprocessor.

    Unknown architectures fall back to the newest known entry at or below them, or to the
    oldest entry when there is none.
    """
    cores = _CORES_PER_MULTIPROCESSOR.get(compute_capability)
    if cores is not None:
        return cores
    known = sorted(_CORES_PER_MULTIPROCESSOR)
    older = [cc for cc in known if cc <= compute_capability]
    fallback = older[-1] if older else known[0]
    logger.warning(
        "SM %d.%d is not in the core table, assuming %d cores like SM %d.%d",
        *compute_capability,
        _CORES_PER_MULTIPROCESSOR[fallback],
        *fallback,
    )
    return _CORES_PER_MULTIPROCESSOR[fallback]


@dataclass(frozen=True)
class DeviceInfo:
    """Properties of one device that drive selection and problem sizing."""

    index: int
    name: str
    compute_capability: Tuple[int, int]
    multiprocessor_count: int
    clock_rate_khz: int

    @property
    def major(self) -> int:
        return self.compute_capability[0]

    @property
    def estimated_throughput(self) -> int:
        """Relative compute estimate: multiprocessors x cores per multiprocessor x clock."""
        cores = cores_per_multiprocessor(self.compute_capability)
        return self.multiprocessor_count * cores * self.clock_rate_khz

    @property
    def default_block_size(self) -> int:
        """Tile edge for this device generation: 16 before SM 2.x, 32 from then on."""
        return 16 if self.major < 2 else 32

    @property
    def default_size_multiple(self) -> int:
        return 2 if self.multiprocessor_count <= _SMALL_DEVICE_MULTIPROCESSORS else 5


SIMULATOR_DEVICE = DeviceInfo(
    index=0,
    name="SIMULATOR",
    compute_capability=(5, 2),
    multiprocessor_count=1,
    clock_rate_khz=0,
)


def is_simulator() -> bool:
    """Whether numba runs kernels on the CPU simulator (``NUMBA_ENABLE_CUDASIM=1``)."""
    return bool(config.ENABLE_CUDASIM)


def _query_device(index: int, gpu) -> DeviceInfo:
    name = gpu.name
    if isinstance(name, bytes):
        name = name.decode()
    return DeviceInfo(
        index=index,
        name=name,
        compute_capability=tuple(gpu.compute_capability),
        multiprocessor_count=int(gpu.MULTIPROCESSOR_COUNT),
        clock_rate_khz=int(gpu.CLOCK_RATE),
    )


def list_devices() -> List[DeviceInfo]:
    """Enumerate the devices numba can launch on.

    Returns
    -------
    List[DeviceInfo]
        One entry per device, or the single simulator device when the simulator is enabled.
        Empty when no driver or device is present.
    """
    if is_simulator():
        return [SIMULATOR_DEVICE]
    if not cuda.is_available():
        return []
    with device_call("cuda.gpus"):
        return [_query_device(index, gpu) for index, gpu in enumerate(cuda.gpus)]


def pick_best_device(devices: Sequence[DeviceInfo]) -> DeviceInfo:
    """Pick the device with the highest estimated throughput.

    Once any device has a major architecture above 2, only devices of the newest major
    architecture are considered. Ties keep the lowest index.

    Raises
    ------
    DeviceUnavailableError
        If ``devices`` is empty.
    """
    if not devices:
        raise DeviceUnavailableError(0)
    best_major = max(device.major for device in devices)
    candidates = list(devices)
    if best_major > 2:
        candidates = [device for device in devices if device.major == best_major]

    best = candidates[0]
    for device in candidates[1:]:
        if device.estimated_throughput > best.estimated_throughput:
            best = device
    return best


def select_device(index: Optional[int] = None, quiet: bool = False) -> DeviceInfo:
    """Make a device current for subsequent allocations and launches.

    Parameters
    ----------
    index : Optional[int]
        Device to use. ``None`` searches for the device with the best estimated throughput.
    quiet : bool
        Suppress the device selection log line.

    Returns
    -------
    DeviceInfo
        The selected device.

    Raises
    ------
    DeviceUnavailableError
        If no device exists or ``index`` is out of range.
    DeviceCallError
        If the driver fails to activate the device.
    """
    devices = list_devices()
    if not devices:
        raise DeviceUnavailableError(0, index)

    if index is None:
        device = pick_best_device(devices)
    elif 0 <= index < len(devices):
        device = devices[index]
    else:
        raise DeviceUnavailableError(len(devices), index)

    with device_call("cuda.select_device"):
        cuda.select_device(device.index)

    if not quiet:
        logger.info(
            "Using CUDA Device [%d]: %s (SM %d.%d, %d multiprocessors)",
            device.index,
            device.name,
            *device.compute_capability,
            device.multiprocessor_count,
        )
    return device
