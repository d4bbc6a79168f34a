"""
Power model plugin system.

Provides the plugin lifecycle and health records shared by the power model
provider.
"""

from powermodel.plugins.base import (
    DEGRADED,
    HEALTHY,
    UNHEALTHY,
    HealthStatus,
    PluginHealth,
    PowerPlugin,
    worst_status,
)

__all__ = [
    "DEGRADED",
    "HEALTHY",
    "UNHEALTHY",
    "HealthStatus",
    "PluginHealth",
    "PowerPlugin",
    "worst_status",
]
