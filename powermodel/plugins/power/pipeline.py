"""
Extraction pipeline.

Turns the facts extracted from the power ontology into a populated
ConsumptionStore. A run always fills a fresh store; publishing it is the
caller's job.
"""

import logging
import time
from typing import Callable, Iterable, Tuple

from powermodel.plugins.power.models import (
    ExtractedFact,
    ExtractionReport,
    FactParseError,
    MEASUREMENT_KINDS,
    PowerState,
)
from powermodel.plugins.power.normalizer import FactNormalizer
from powermodel.plugins.power.store import ConsumptionStore

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """
    Single-pass extraction of power facts.

    Facts are applied in the order given, one upsert per fact. A fact that
    cannot be parsed is skipped on its own; the rest of the run continues.
    """

    def __init__(self, strict_merge: bool = False, clock: Callable[[], float] = time.time):
        self.strict_merge = strict_merge
        self._clock = clock

    def run(self, facts: Iterable[ExtractedFact]) -> Tuple[ConsumptionStore, ExtractionReport]:
        """
        Extract all facts into a new store.

        Args:
            facts: Facts from the reasoning collaborator

        Returns:
            (populated store, run report)
        """
        from powermodel.power_logging import get_logger
        log = get_logger("POWERMODEL.Extraction")

        store = ConsumptionStore(strict_merge=self.strict_merge)
        report = ExtractionReport(started_at=int(self._clock()))

        logger.info("Extracting power consumption values...")

        for fact in facts:
            report.facts_seen += 1
            try:
                state, missing_units = self._build_state(fact)
            except ValueError as e:
                report.facts_skipped += 1
                log.error("POWERMODEL.Extraction.FactSkipped", extra={"fields": {
                    "device": fact.device_uri,
                    "state": fact.state_name,
                    "error": str(e)
                }})
                continue

            store.upsert_state(fact.device_uri, state)
            report.facts_recorded += 1
            report.missing_units += missing_units

        report.finished_at = int(self._clock())
        store.loaded_at = report.finished_at

        self._dump(store)
        logger.info(
            f"... done! {store.device_count} devices, {store.state_count} states "
            f"({report.facts_recorded} facts recorded, {report.facts_skipped} skipped)"
        )
        return store, report

    def _build_state(self, fact: ExtractedFact) -> Tuple[PowerState, int]:
        """
        Build the PowerState described by one fact.

        Returns:
            (state, number of measurements recorded without unit)

        Raises:
            ValueError: If the fact is incomplete or a value is not a number
        """
        if not fact.device_uri or not fact.state_name:
            raise FactParseError("Fact without device or state")

        state = PowerState(fact.state_name)
        missing_units = 0

        for measurement in fact.measurements:
            if measurement.value is None:
                logger.debug(
                    f"No {measurement.kind} value for {fact.device_uri}/{fact.state_name}"
                )
                continue

            value = FactNormalizer.parse_value(measurement.value)

            unit = measurement.unit or ""
            if not unit:
                missing_units += 1
                from powermodel.power_logging import get_logger
                log = get_logger("POWERMODEL.Extraction")
                log.warning("POWERMODEL.Extraction.MissingUnit", extra={"fields": {
                    "device": fact.device_uri,
                    "state": fact.state_name,
                    "kind": measurement.kind
                }})

            state.set_measurement(measurement.kind, value, unit)

        return state, missing_units

    def _dump(self, store: ConsumptionStore) -> None:
        """Log the extracted figures at debug level."""
        if not logger.isEnabledFor(logging.DEBUG):
            return

        for device in store.devices():
            logger.debug(device.uri)
            for state in device.states:
                for kind in MEASUREMENT_KINDS:
                    measurement = state.get_measurement(kind)
                    if measurement is not None:
                        logger.debug(f"\t{kind} consumption for {state.name} {measurement}")
