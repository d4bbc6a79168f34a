"""Fact sources for the power model provider."""

from powermodel.plugins.power.sources.base import FactSource
from powermodel.plugins.power.sources.static import StaticFactSource
from powermodel.plugins.power.sources.json_file import JsonFileFactSource
from powermodel.plugins.power.sources.mqtt import MqttFactSource

__all__ = [
    "FactSource",
    "StaticFactSource",
    "JsonFileFactSource",
    "MqttFactSource",
]
