from __future__ import annotations

from typing import Mapping, Optional

from powermodel.config import load_power_model_config
from powermodel.plugins.power.provider import PowerModelProvider
from powermodel.power_logging import get_logger


def create_power_model(
    name: str = "powermodel",
    environ: Optional[Mapping[str, str]] = None,
) -> PowerModelProvider:
    """Build an (unstarted) power model provider from the environment."""
    config = load_power_model_config(environ)

    log = get_logger("POWERMODEL.Service")
    log.info("POWERMODEL.Service.Configured", extra={"fields": {
        "name": name,
        "sources": sorted(config["sources"]),
        "strict_merge": config["strict_merge"],
        "config_folder": config["config_folder"]
    }})
    return PowerModelProvider(name, config)
