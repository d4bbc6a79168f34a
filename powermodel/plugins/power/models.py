"""
Data models for the power model.

Measurements, device states and devices as held by the consumption store,
plus the plain records handed over by the reasoning collaborator.
"""

from typing import Optional, Dict, List, Iterator
from dataclasses import dataclass, field


# Measurement kinds, in the order they are considered by best-value selection
TYPICAL = "typical"
NOMINAL = "nominal"
ACTUAL = "actual"
MEASUREMENT_KINDS = (TYPICAL, NOMINAL, ACTUAL)


@dataclass(frozen=True)
class Measurement:
    """
    A single power reading.

    The unit is an opaque symbol ("W", "kW", ...) and is never converted.
    Code comparing two readings compares `value` only.
    """

    value: float
    unit: str = ""

    def __str__(self) -> str:
        return f"{self.value} {self.unit}".rstrip()


class PowerState:
    """
    Power figures of one named device state.

    Typical, nominal and actual consumption are independently optional.
    Two states are equal when their names are equal, whatever their
    measurements: partial extractions of the same state must collapse into
    one entry of the device's state set.
    """

    def __init__(
        self,
        name: str,
        typical: Optional[Measurement] = None,
        nominal: Optional[Measurement] = None,
        actual: Optional[Measurement] = None,
    ):
        self.name = name
        self.typical = typical
        self.nominal = nominal
        self.actual = actual

    def set_typical(self, value: float, unit: str = "") -> None:
        self.typical = Measurement(float(value), unit)

    def set_nominal(self, value: float, unit: str = "") -> None:
        self.nominal = Measurement(float(value), unit)

    def set_actual(self, value: float, unit: str = "") -> None:
        self.actual = Measurement(float(value), unit)

    def set_measurement(self, kind: str, value: float, unit: str = "") -> None:
        """Set the measurement of the given kind (typical, nominal, actual)."""
        if kind == TYPICAL:
            self.set_typical(value, unit)
        elif kind == NOMINAL:
            self.set_nominal(value, unit)
        elif kind == ACTUAL:
            self.set_actual(value, unit)
        else:
            raise ValueError(f"Unknown measurement kind: {kind!r}")

    def get_measurement(self, kind: str) -> Optional[Measurement]:
        if kind not in MEASUREMENT_KINDS:
            raise ValueError(f"Unknown measurement kind: {kind!r}")
        return getattr(self, kind)

    def has_typical(self) -> bool:
        return self.typical is not None

    def has_nominal(self) -> bool:
        return self.nominal is not None

    def has_actual(self) -> bool:
        return self.actual is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PowerState):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return (
            f"PowerState(name={self.name!r}, typical={self.typical!r}, "
            f"nominal={self.nominal!r}, actual={self.actual!r})"
        )


class PowerDevice:
    """
    A device URI plus its power states, keyed by state name.

    add_state() inserts only when no state with that name exists yet.
    The state mapping is replaced (never mutated) on insert, so readers
    iterating `states` always see a complete mapping.
    """

    def __init__(self, uri: str, states: Optional[List[PowerState]] = None):
        self.uri = uri
        self._states: Dict[str, PowerState] = {}
        for state in states or []:
            self._states.setdefault(state.name, state)

    def add_state(self, state: PowerState, strict_merge: bool = False) -> bool:
        """
        Insert a state if its name is not known yet.

        Args:
            state: State to insert
            strict_merge: Fill the missing measurements of an existing state
                with the incoming ones instead of ignoring the duplicate

        Returns:
            True if the device changed
        """
        existing = self._states.get(state.name)
        if existing is None:
            updated = dict(self._states)
            updated[state.name] = state
            self._states = updated
            return True

        if not strict_merge:
            return False

        changed = False
        for kind in MEASUREMENT_KINDS:
            incoming = state.get_measurement(kind)
            if incoming is not None and existing.get_measurement(kind) is None:
                existing.set_measurement(kind, incoming.value, incoming.unit)
                changed = True
        return changed

    def get_state(self, name: str) -> Optional[PowerState]:
        return self._states.get(name)

    @property
    def states(self) -> List[PowerState]:
        """States in insertion order."""
        return list(self._states.values())

    @property
    def state_names(self) -> List[str]:
        return list(self._states.keys())

    def __iter__(self) -> Iterator[PowerState]:
        return iter(self.states)

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        return f"PowerDevice(uri={self.uri!r}, states={self.state_names!r})"


@dataclass(frozen=True)
class DevicePowerConsumption:
    """
    Query result: one consumption figure of one device.

    latest_update is the UNIX time of the extraction that produced the
    figure, when known.
    """

    device_uri: str
    consumption: Measurement
    latest_update: Optional[int] = field(default=None, compare=False)


@dataclass
class RawMeasurement:
    """
    Measurement descriptor as produced by the reasoning collaborator.

    value is still the literal from the ontology; unit may be missing.
    """

    kind: str  # "typical" | "nominal" | "actual"
    value: Optional[str]
    unit: Optional[str] = None


@dataclass
class ExtractedFact:
    """One ElectricPowerConsumption individual, flattened."""

    device_uri: str
    state_name: str
    measurements: List[RawMeasurement] = field(default_factory=list)


@dataclass
class ExtractionReport:
    """Outcome of one extraction run."""

    facts_seen: int = 0
    facts_recorded: int = 0
    facts_skipped: int = 0
    missing_units: int = 0
    started_at: int = 0
    finished_at: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "facts_seen": self.facts_seen,
            "facts_recorded": self.facts_recorded,
            "facts_skipped": self.facts_skipped,
            "missing_units": self.missing_units,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


class FactParseError(ValueError):
    """A fact could not be turned into a PowerState."""


# Type alias for clarity
DeviceURI = str
