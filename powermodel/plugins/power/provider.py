"""
Power Model Provider - main plugin implementation.

Coordinates fact sources, the extraction worker and the query service.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Any, List, Optional, Set

from powermodel.plugins.base import (
    DEGRADED,
    HealthStatus,
    PluginHealth,
    PowerPlugin,
    worst_status,
)
from powermodel.plugins.power.models import (
    DevicePowerConsumption,
    ExtractedFact,
    ExtractionReport,
    MEASUREMENT_KINDS,
    PowerDevice,
)
from powermodel.plugins.power.normalizer import FactNormalizer
from powermodel.plugins.power.pipeline import ExtractionPipeline
from powermodel.plugins.power.query import PowerQueryService
from powermodel.plugins.power.sources.base import FactSource
from powermodel.plugins.power.sources.json_file import JsonFileFactSource
from powermodel.plugins.power.sources.mqtt import MqttFactSource
from powermodel.plugins.power.sources.static import StaticFactSource
from powermodel.plugins.power.store import ConsumptionStore

logger = logging.getLogger(__name__)


class PowerModelProvider(PowerPlugin):
    """
    Power Model Provider plugin.

    Every fact set delivered by a source is extracted on a single background
    worker into a fresh store, which then replaces the current one. Queries
    are served from whichever complete store is current and never wait for
    an extraction.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)

        self.strict_merge = bool(config.get("strict_merge", False))
        self.query = PowerQueryService(
            ConsumptionStore(strict_merge=self.strict_merge),
            baseline_unit=config.get("default_unit", "W"),
        )
        self.sources: Dict[str, FactSource] = {}

        self._configured_sources: Set[str] = set()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._ready = threading.Event()
        self._last_report: Optional[ExtractionReport] = None
        self._load_count = 0

    def start(self) -> None:
        """Start the extraction worker and all sources."""
        if self.is_started:
            return

        logger.info("Starting PowerModelProvider")

        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=f"powermodel-{self.name}",
        )

        try:
            # Sources attached before start
            for source in list(self.sources.values()):
                self._run_source(source)

            self._start_configured_sources(self.config)
        except Exception:
            self._abort_start()
            raise

        self._mark_started()
        logger.info(f"PowerModelProvider started with {len(self.sources)} sources")

    def stop(self) -> None:
        """Stop sources and wait for a running extraction to finish."""
        logger.info("Stopping PowerModelProvider")

        for source_name in list(self.sources):
            # Sources attached with add_source() survive a restart
            self._stop_source(source_name, forget=source_name in self._configured_sources)

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        self._mark_stopped()
        logger.info("PowerModelProvider stopped")

    def _abort_start(self) -> None:
        """Undo a failed start: stop every source and drop the worker."""
        logger.warning("PowerModelProvider start failed, stopping started sources")

        for source_name in list(self.sources):
            self._stop_source(source_name, forget=source_name in self._configured_sources)

        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def health(self) -> PluginHealth:
        """Degraded until the first extraction, after skipped facts or with a source down."""
        store = self.query.store
        statuses: List[HealthStatus] = []
        details: Dict[str, Any] = {
            "ready": self.is_ready,
            "load_count": self._load_count,
            "device_count": store.device_count,
            "state_count": store.state_count,
            "last_report": self._last_report.to_dict() if self._last_report else None,
            "sources": {},
        }

        if not self.is_ready:
            statuses.append(DEGRADED)
        elif self._last_report and self._last_report.facts_skipped:
            statuses.append(DEGRADED)

        for source_name, source in self.sources.items():
            details["sources"][source_name] = {"connected": source.is_connected}
            if not source.is_connected:
                statuses.append(DEGRADED)

        return self._health(
            worst_status(*statuses),
            f"{store.device_count} devices, {store.state_count} states",
            details,
        )

    def on_config_reload(self, new_config: Dict[str, Any]) -> None:
        """Replace configured sources; each restarted source triggers a reload."""
        super().on_config_reload(new_config)

        self.strict_merge = bool(new_config.get("strict_merge", False))
        self.query.baseline_unit = new_config.get("default_unit", "W")

        if not self.is_started:
            return

        for source_name in list(self._configured_sources):
            self._stop_source(source_name)

        self._start_configured_sources(new_config)

    def add_source(self, source: FactSource) -> None:
        """
        Attach a source created outside the configuration.

        Started immediately when the provider is already running.
        """
        self.sources[source.name] = source
        if self.is_started:
            self._run_source(source)

    def request_reload(self, facts: List[ExtractedFact]) -> Future:
        """
        Schedule an extraction of a complete fact set.

        Args:
            facts: Facts of the (re)loaded ontology

        Returns:
            Future resolving to the ExtractionReport of the run

        Raises:
            RuntimeError: If the provider is not running
        """
        if self._executor is None:
            raise RuntimeError(f"Provider {self.name} is not started")

        logger.info(f"Scheduling extraction of {len(facts)} facts")
        return self._executor.submit(self._extract, list(facts))

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the first extraction completed (or timeout)."""
        return self._ready.wait(timeout)

    @property
    def is_ready(self) -> bool:
        """True once a store produced by an extraction is being served."""
        return self._ready.is_set()

    @property
    def last_report(self) -> Optional[ExtractionReport]:
        return self._last_report

    # Query API

    def get_actual_consumption(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        return self.query.get_actual(device_uri, state_name)

    def get_nominal_consumption(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        return self.query.get_nominal(device_uri, state_name)

    def get_typical_consumption(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        return self.query.get_typical(device_uri, state_name)

    def get_best_consumption(self, device_uri: str, state_name: str) -> Optional[DevicePowerConsumption]:
        return self.query.get_best(device_uri, state_name)

    def get_highest_consumptions(self) -> Set[DevicePowerConsumption]:
        return self.query.get_highest_per_device()

    def get_snapshot(self) -> Dict[str, Any]:
        """Get the current store as JSON-compatible data."""
        store = self.query.store

        return {
            "devices": {device.uri: self._serialize_device(device) for device in store.devices()},
            "device_count": store.device_count,
            "state_count": store.state_count,
            "last_update": store.loaded_at,
            "last_report": self._last_report.to_dict() if self._last_report else None,
        }

    def _extract(self, facts: List[ExtractedFact]) -> ExtractionReport:
        """Worker: build a new store and publish it."""
        from powermodel.power_logging import get_logger
        log = get_logger("POWERMODEL.Provider")

        pipeline = ExtractionPipeline(strict_merge=self.strict_merge)
        try:
            store, report = pipeline.run(facts)
        except Exception as e:
            log.error("POWERMODEL.Provider.ExtractionFailed", extra={"fields": {
                "provider": self.name,
                "fact_count": len(facts),
                "error": str(e)
            }})
            raise

        self.query.swap_store(store)
        self._last_report = report
        self._load_count += 1
        self._ready.set()

        log.info("POWERMODEL.Provider.StoreSwapped", extra={"fields": {
            "provider": self.name,
            "device_count": store.device_count,
            "state_count": store.state_count,
            "facts_skipped": report.facts_skipped,
            "load_count": self._load_count
        }})
        return report

    def _start_configured_sources(self, config: Dict[str, Any]) -> None:
        source_configs = config.get("sources", {})
        for source_name, source_config in source_configs.items():
            self._start_source(source_name, source_config)

    def _start_source(self, source_name: str, source_config: Dict[str, Any]) -> None:
        """Create and start a source from its configuration."""
        source_type = source_config.get("type", "json_file")

        if source_type == "json_file":
            source: FactSource = JsonFileFactSource(source_name, source_config)
        elif source_type == "mqtt":
            source = MqttFactSource(source_name, source_config)
        elif source_type == "static":
            facts = FactNormalizer.normalize_facts(source_config.get("facts", []))
            source = StaticFactSource(source_name, source_config, facts=facts)
        else:
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Provider")
            log.error("POWERMODEL.Provider.UnknownSourceType", extra={"fields": {
                "source_name": source_name,
                "source_type": source_type
            }})
            return

        self.sources[source_name] = source
        self._configured_sources.add(source_name)
        self._run_source(source)

    def _run_source(self, source: FactSource) -> None:
        source.set_facts_callback(self.request_reload)

        try:
            source.start()
            logger.info(f"Started source: {source.name}")
        except Exception as e:
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Provider")
            log.error("POWERMODEL.Provider.SourceStartError", extra={"fields": {
                "source": source.name,
                "error": str(e)
            }})
            raise

    def _stop_source(self, source_name: str, forget: bool = True) -> None:
        source = self.sources.get(source_name)
        if source is None:
            return

        if forget:
            del self.sources[source_name]
            self._configured_sources.discard(source_name)

        try:
            logger.info(f"Stopping source: {source_name}")
            source.stop()
        except Exception as e:
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Provider")
            log.error("POWERMODEL.Provider.SourceStopError", extra={"fields": {
                "source": source_name,
                "error": str(e)
            }})

    def _serialize_device(self, device: PowerDevice) -> Dict[str, Any]:
        """Serialize PowerDevice to JSON-compatible dict."""
        states = {}
        for state in device.states:
            serialized = {}
            for kind in MEASUREMENT_KINDS:
                measurement = state.get_measurement(kind)
                serialized[kind] = (
                    {"value": measurement.value, "unit": measurement.unit}
                    if measurement is not None
                    else None
                )
            states[state.name] = serialized

        return {
            "uri": device.uri,
            "states": states,
        }
