"""
Power consumption queries.

Read API over the current ConsumptionStore. Queries never raise: a missing
device, state or figure is reported as None.
"""

import logging
from typing import Optional, Set

from powermodel.plugins.power.models import (
    ACTUAL,
    DevicePowerConsumption,
    Measurement,
    NOMINAL,
    PowerDevice,
    TYPICAL,
)
from powermodel.plugins.power.store import ConsumptionStore

logger = logging.getLogger(__name__)


class PowerQueryService:
    """
    Answers consumption queries from a ConsumptionStore.

    The store reference can be swapped on reload; every query reads it once,
    so a single answer never mixes two stores.
    """

    def __init__(
        self,
        store: Optional[ConsumptionStore] = None,
        baseline_unit: str = "W",
    ):
        self._store = store if store is not None else ConsumptionStore()
        self.baseline_unit = baseline_unit

    @property
    def store(self) -> ConsumptionStore:
        return self._store

    def swap_store(self, store: ConsumptionStore) -> None:
        """Publish a fully populated store to readers."""
        self._store = store

    def get_actual(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        """Actual consumption of a device in a state, if declared."""
        return self._get_declared(device_uri, state_name, ACTUAL)

    def get_nominal(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        """Nominal consumption of a device in a state, if declared."""
        return self._get_declared(device_uri, state_name, NOMINAL)

    def get_typical(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        """Typical consumption of a device in a state, if declared."""
        return self._get_declared(device_uri, state_name, TYPICAL)

    def get_best(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        """
        Best consumption of a device in a state.

        State names match case-insensitively. The best figure is the highest
        of typical, nominal and actual.

        Returns:
            DevicePowerConsumption or None if the device or every figure is missing
        """
        store = self._store
        device = store.get(device_uri)
        if device is None:
            logger.info(f"{device_uri} has no declared power consumption.")
            return None

        best = self._best_measurement(device, state_name)
        if best is None:
            return None
        return self._result(store, device_uri, best)

    def get_highest_per_device(self) -> Set[DevicePowerConsumption]:
        """
        Highest best-consumption of every device, across all of its states.

        Devices without any figure report 0.
        """
        store = self._store
        highest_consumptions = set()

        for device in store.devices():
            highest = Measurement(0.0, self.baseline_unit)
            for state_name in device.state_names:
                best = self._best_measurement(device, state_name)
                if best is not None and highest.value < best.value:
                    highest = best
            highest_consumptions.add(self._result(store, device.uri, highest))

        return highest_consumptions

    def _get_declared(
        self,
        device_uri: str,
        state_name: str,
        kind: str,
    ) -> Optional[DevicePowerConsumption]:
        """Exact-name lookup of one kind of figure."""
        store = self._store
        device = store.get(device_uri)
        if device is None:
            logger.error(f"{device_uri} has no declared power consumption.")
            return None

        for state in device.states:
            if state.name == state_name:
                measurement = state.get_measurement(kind)
                if measurement is not None:
                    return self._result(store, device_uri, measurement)
        return None

    def _best_measurement(self, device: PowerDevice, state_name: str) -> Optional[Measurement]:
        """Max of typical, nominal, actual over case-insensitively matching states."""
        wanted = state_name.lower()
        best: Optional[Measurement] = None

        for state in device.states:
            if state.name.lower() != wanted:
                continue

            # Each matching state restarts from its own typical figure
            if state.typical is not None:
                best = state.typical
            for candidate in (state.nominal, state.actual):
                if candidate is None:
                    continue
                if best is None or best.value < candidate.value:
                    best = candidate

        return best

    def _result(
        self,
        store: ConsumptionStore,
        device_uri: str,
        measurement: Measurement,
    ) -> DevicePowerConsumption:
        return DevicePowerConsumption(
            device_uri=device_uri,
            consumption=measurement,
            latest_update=store.loaded_at,
        )
