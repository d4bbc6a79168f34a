"""
Power Model Plugin

Per-device, per-state power consumption figures extracted from the power
ontology, and the queries answered over them.
"""

from powermodel.plugins.power.models import (
    DevicePowerConsumption,
    ExtractedFact,
    ExtractionReport,
    FactParseError,
    Measurement,
    PowerDevice,
    PowerState,
    RawMeasurement,
)
from powermodel.plugins.power.store import ConsumptionStore
from powermodel.plugins.power.pipeline import ExtractionPipeline
from powermodel.plugins.power.query import PowerQueryService
from powermodel.plugins.power.provider import PowerModelProvider

__all__ = [
    "ConsumptionStore",
    "DevicePowerConsumption",
    "ExtractedFact",
    "ExtractionPipeline",
    "ExtractionReport",
    "FactParseError",
    "Measurement",
    "PowerDevice",
    "PowerModelProvider",
    "PowerQueryService",
    "PowerState",
    "RawMeasurement",
]
