"""
In-memory consumption store.

Maps device URIs to PowerDevice entries. One writer fills a store during an
extraction run while any number of readers query it.
"""

import logging
import threading
from typing import Dict, List, Optional, Set

from powermodel.plugins.power.models import (
    PowerDevice,
    PowerState,
    DeviceURI,
)

logger = logging.getLogger(__name__)


class ConsumptionStore:
    """
    Device URI -> PowerDevice mapping with insert-or-ignore upserts.

    Writers serialize on a lock. Readers never lock: a new device is fully
    built before it is published in the mapping, and devices replace their
    state mapping on insert, so a reader sees each device as a whole.
    """

    def __init__(self, strict_merge: bool = False):
        self._devices: Dict[DeviceURI, PowerDevice] = {}
        self._write_lock = threading.Lock()
        self.strict_merge = strict_merge
        # UNIX time the extraction that filled this store completed
        self.loaded_at: Optional[int] = None

    def upsert_state(self, device_uri: DeviceURI, state: PowerState) -> None:
        """
        Record a state for a device.

        Args:
            device_uri: Device the state belongs to
            state: State to insert; ignored when the device already has a
                state with the same name (unless strict_merge is set)
        """
        with self._write_lock:
            device = self._devices.get(device_uri)
            if device is None:
                self._devices[device_uri] = PowerDevice(device_uri, [state])
                return

            if not device.add_state(state, strict_merge=self.strict_merge):
                logger.debug(f"Ignored duplicate state {state.name} for {device_uri}")

    def ensure_device(self, device_uri: DeviceURI) -> PowerDevice:
        """Get a device, registering it without states if unknown."""
        with self._write_lock:
            device = self._devices.get(device_uri)
            if device is None:
                device = PowerDevice(device_uri)
                self._devices[device_uri] = device
            return device

    def get(self, device_uri: DeviceURI) -> Optional[PowerDevice]:
        """Get a device by URI."""
        return self._devices.get(device_uri)

    def all_device_uris(self) -> Set[DeviceURI]:
        """Get the URIs of all known devices."""
        return set(self._devices.keys())

    def devices(self) -> List[PowerDevice]:
        """Get all devices (copy of the current mapping)."""
        return list(self._devices.values())

    @property
    def device_count(self) -> int:
        """Get total device count."""
        return len(self._devices)

    @property
    def state_count(self) -> int:
        """Get total state count across devices."""
        return sum(len(device) for device in self.devices())

    def __contains__(self, device_uri: object) -> bool:
        return device_uri in self._devices

    def __len__(self) -> int:
        return len(self._devices)
