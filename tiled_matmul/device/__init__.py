from .device import (
    SIMULATOR_DEVICE,
    DeviceInfo,
    cores_per_multiprocessor,
    is_simulator,
    list_devices,
    pick_best_device,
    select_device,
)
from .errors import DeviceCallError, DeviceUnavailableError, device_call

__all__ = [
    "DeviceInfo",
    "SIMULATOR_DEVICE",
    "cores_per_multiprocessor",
    "is_simulator",
    "list_devices",
    "pick_best_device",
    "select_device",
    "DeviceCallError",
    "DeviceUnavailableError",
    "device_call",
]
