"""
Fact normalization.

Transforms the JSON fact payloads published by the reasoning collaborator
into ExtractedFact records, and parses their literal power values.
"""

import logging
from typing import Dict, Any, List, Optional

from powermodel.plugins.power.models import (
    ExtractedFact,
    FactParseError,
    RawMeasurement,
    TYPICAL,
    NOMINAL,
    ACTUAL,
)

logger = logging.getLogger(__name__)


class FactNormalizer:
    """
    Normalizes ElectricPowerConsumption facts.

    Accepted shape (one fact):
        {"device": "LampLR", "state": "OnState",
         "typical": {"value": "60", "unit": "W"},
         "nominal": {"value": "75"}}

    or with a measurement list:
        {"device": ..., "state": ...,
         "measurements": [{"kind": "actual", "value": "58.5", "unit": "W"}]}
    """

    # Payload key → measurement kind (short names and ontology property names)
    KIND_MAP = {
        "typical": TYPICAL,
        "typicalConsumptionValue": TYPICAL,
        "nominal": NOMINAL,
        "nominalConsumptionValue": NOMINAL,
        "actual": ACTUAL,
        "actualConsumptionValue": ACTUAL,
    }

    DEVICE_KEYS = ("device", "device_uri", "consumptionOf")
    STATE_KEYS = ("state", "state_name", "whenIn")
    VALUE_KEYS = ("value", "powerValue")
    UNIT_KEYS = ("unit", "prefSymbol", "measuredIn")

    @classmethod
    def normalize_facts(cls, payload: Any) -> List[ExtractedFact]:
        """
        Normalize a complete fact set.

        Args:
            payload: JSON list of facts, or {"facts": [...]}

        Returns:
            Facts in payload order; invalid entries are dropped

        Raises:
            FactParseError: If the payload is not a fact set at all
        """
        facts_list = payload.get("facts") if isinstance(payload, dict) else payload

        if not isinstance(facts_list, list):
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Normalizer")
            log.error("POWERMODEL.Normalizer.InvalidPayload", extra={"fields": {
                "expected": "list or {\"facts\": [...]}",
                "got": type(payload).__name__,
                "preview": str(payload)[:200]
            }})
            raise FactParseError(f"Not a fact set: {type(payload).__name__}")
        payload = facts_list

        facts = []
        for raw in payload:
            fact = cls.normalize_fact(raw)
            if fact:
                facts.append(fact)
        return facts

    @classmethod
    def normalize_fact(cls, raw: Any) -> Optional[ExtractedFact]:
        """
        Normalize a single fact.

        Values stay literal strings; numeric parsing happens at extraction.

        Returns:
            ExtractedFact or None if the payload is not a usable fact
        """
        from powermodel.power_logging import get_logger
        log = get_logger("POWERMODEL.Normalizer")

        if not isinstance(raw, dict):
            log.error("POWERMODEL.Normalizer.InvalidFact", extra={"fields": {
                "expected": "dict",
                "got": type(raw).__name__,
                "preview": str(raw)[:200]
            }})
            return None

        device_uri = cls._first_string(raw, cls.DEVICE_KEYS)
        state_name = cls._first_string(raw, cls.STATE_KEYS)
        if not device_uri or not state_name:
            log.warning("POWERMODEL.Normalizer.IncompleteFact", extra={"fields": {
                "device": device_uri,
                "state": state_name,
                "preview": str(raw)[:200]
            }})
            return None

        measurements = []

        # Keyed format: {"typical": {...}, "nominal": {...}}
        for key, kind in cls.KIND_MAP.items():
            if key in raw and raw[key] is not None:
                measurements.append(cls.normalize_measurement(kind, raw[key]))

        # List format: {"measurements": [{"kind": ..., ...}]}
        raw_list = raw.get("measurements", [])
        if isinstance(raw_list, list):
            for item in raw_list:
                if not isinstance(item, dict):
                    continue
                kind = cls.KIND_MAP.get(str(item.get("kind", "")))
                if kind is None:
                    logger.debug(f"Ignoring measurement of unknown kind: {item.get('kind')}")
                    continue
                measurements.append(cls.normalize_measurement(kind, item))

        return ExtractedFact(
            device_uri=device_uri,
            state_name=state_name,
            measurements=measurements,
        )

    @classmethod
    def normalize_measurement(cls, kind: str, raw: Any) -> RawMeasurement:
        """
        Normalize one measurement descriptor.

        A bare scalar is taken as a value without unit.
        """
        if isinstance(raw, dict):
            value = cls._first_present(raw, cls.VALUE_KEYS)
            unit = cls._first_present(raw, cls.UNIT_KEYS)
        else:
            value, unit = raw, None

        return RawMeasurement(
            kind=kind,
            value=None if value is None else str(value),
            unit=None if unit is None or unit == "" else str(unit),
        )

    @classmethod
    def parse_value(cls, literal: str) -> float:
        """
        Parse a literal power value as a decimal number.

        Raises:
            FactParseError: If the literal is not a number
        """
        try:
            return float(literal)
        except (ValueError, TypeError) as e:
            raise FactParseError(f"Invalid power value {literal!r}") from e

    @classmethod
    def _first_string(cls, raw: Dict[str, Any], keys: tuple) -> str:
        value = cls._first_present(raw, keys)
        return str(value).strip() if value is not None else ""

    @classmethod
    def _first_present(cls, raw: Dict[str, Any], keys: tuple) -> Any:
        for key in keys:
            if raw.get(key) is not None:
                return raw[key]
        return None
