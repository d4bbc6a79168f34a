from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(env: Mapping[str, str], name: str, default: str = "0") -> bool:
    return env.get(name, default).strip().lower() in _TRUTHY


def load_power_model_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Build the power model plugin config from POWERMODEL_* environment variables.

    Sources:
    - json_file: enabled when POWERMODEL_FACTS_PATH is set
    - mqtt: enabled when POWERMODEL_MQTT_ENABLED is truthy
    """
    env = os.environ if environ is None else environ

    config_folder = env.get("POWERMODEL_CONFIG_FOLDER", ".").strip() or "."
    sources: Dict[str, Dict[str, Any]] = {}

    facts_path = env.get("POWERMODEL_FACTS_PATH", "").strip()
    if facts_path:
        sources["ontology_file"] = {
            "type": "json_file",
            "path": facts_path,
            "config_folder": config_folder,
        }

    if _flag(env, "POWERMODEL_MQTT_ENABLED"):
        sources["ontology_mqtt"] = {
            "type": "mqtt",
            "host": env.get("POWERMODEL_MQTT_HOST", "localhost"),
            "port": int(env.get("POWERMODEL_MQTT_PORT", "1883")),
            "username": env.get("POWERMODEL_MQTT_USERNAME"),
            "password": env.get("POWERMODEL_MQTT_PASSWORD"),
            "root_topic": env.get("POWERMODEL_MQTT_ROOT_TOPIC", "powermodel"),
            "qos": int(env.get("POWERMODEL_MQTT_QOS", "1")),
        }

    return {
        "config_folder": config_folder,
        "strict_merge": _flag(env, "POWERMODEL_STRICT_MERGE"),
        "default_unit": env.get("POWERMODEL_DEFAULT_UNIT", "W").strip() or "W",
        "sources": sources,
    }
