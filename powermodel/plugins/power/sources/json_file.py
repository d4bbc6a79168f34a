"""
JSON file fact source.

Reads the fact set dumped by the reasoning collaborator from a JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from powermodel.plugins.power.models import ExtractedFact
from powermodel.plugins.power.normalizer import FactNormalizer
from powermodel.plugins.power.sources.base import FactSource

logger = logging.getLogger(__name__)


class JsonFileFactSource(FactSource):
    """
    Fact source backed by a JSON file.

    The file holds a list of facts or {"facts": [...]}. A relative path is
    resolved against the configured config folder.
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)

        path = Path(config.get("path", "power_facts.json"))
        if not path.is_absolute():
            path = Path(config.get("config_folder", ".")) / path
        self.path = path
        self._loaded = False

    def start(self) -> None:
        """Read the file and deliver its facts."""
        logger.info(f"Starting JSON fact source: {self.path}")
        self.reload()

    def stop(self) -> None:
        self._loaded = False

    def reload(self) -> None:
        """
        Re-read the file and deliver its facts.

        Raises:
            OSError: If the file cannot be read
            json.JSONDecodeError: If the file is not valid JSON
            FactParseError: If the file does not hold a fact set
        """
        facts = self.read_facts()
        self._loaded = True
        logger.info(f"Loaded {len(facts)} facts from {self.path}")
        self._on_facts_loaded(facts)

    def read_facts(self) -> List[ExtractedFact]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            from powermodel.power_logging import get_logger
            log = get_logger("POWERMODEL.Source")
            log.error("POWERMODEL.Source.FileReadError", extra={"fields": {
                "source": self.name,
                "path": str(self.path),
                "error": str(e)
            }})
            raise

        return FactNormalizer.normalize_facts(data)

    @property
    def is_connected(self) -> bool:
        return self._loaded
