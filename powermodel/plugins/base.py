"""
Base plugin interface for the power model service.

Every long-lived component (the power model provider and anything that
joins it later) follows the PowerPlugin lifecycle and reports its health
as a PluginHealth record.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Literal, Optional, TypedDict
import logging

logger = logging.getLogger(__name__)

HealthStatus = Literal["healthy", "degraded", "unhealthy"]

HEALTHY: HealthStatus = "healthy"
DEGRADED: HealthStatus = "degraded"
UNHEALTHY: HealthStatus = "unhealthy"

# Ordered from best to worst
_SEVERITY = (HEALTHY, DEGRADED, UNHEALTHY)


class PluginHealth(TypedDict):
    """Health record returned by PowerPlugin.health()."""

    status: HealthStatus
    message: str
    details: Dict[str, Any]


def worst_status(*statuses: HealthStatus) -> HealthStatus:
    """Combine statuses; the worst one wins. No status at all is healthy."""
    return max(statuses, key=_SEVERITY.index, default=HEALTHY)


class PowerPlugin(ABC):
    """
    Base class for power model plugins.

    Lifecycle:
    - start(): connect sources, trigger the first extraction
    - stop(): release sources and workers
    - health(): PluginHealth for the surrounding service
    - on_config_reload(): react to a new configuration (optional)
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        self.name = name
        self.config = config
        self._started = False
        self._logger = logging.getLogger(f"powermodel.plugin.{name}")

    @abstractmethod
    def start(self) -> None:
        """
        Start the plugin. Must be idempotent.

        A failed start leaves the plugin stopped with nothing left running.

        Raises:
            Exception: If startup fails
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop the plugin. Must be idempotent."""

    @abstractmethod
    def health(self) -> PluginHealth:
        """Report plugin health."""

    def on_config_reload(self, new_config: Dict[str, Any]) -> None:
        """
        React to configuration changes.

        Default implementation only stores the new config.
        """
        self._logger.info(f"Config reload triggered for {self.name}")
        self.config = new_config

    def _health(
        self,
        status: HealthStatus,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> PluginHealth:
        """Build a health record; a stopped plugin is never better than degraded."""
        if not self._started:
            status = worst_status(status, DEGRADED)
        return PluginHealth(status=status, message=message, details=dict(details or {}))

    def _mark_started(self) -> None:
        self._started = True
        self._logger.info(f"Plugin {self.name} started")

    def _mark_stopped(self) -> None:
        self._started = False
        self._logger.info(f"Plugin {self.name} stopped")

    @property
    def is_started(self) -> bool:
        return self._started
