"""
In-process fact source.

Used when the reasoning collaborator runs in the same process and hands
its facts over as plain records.
"""

import logging
from typing import Any, Dict, List, Optional

from powermodel.plugins.power.models import ExtractedFact
from powermodel.plugins.power.sources.base import FactSource

logger = logging.getLogger(__name__)


class StaticFactSource(FactSource):
    """Holds a fact set in memory; publish() replaces it and triggers a reload."""

    def __init__(
        self,
        name: str,
        config: Optional[Dict[str, Any]] = None,
        facts: Optional[List[ExtractedFact]] = None,
    ):
        super().__init__(name, config or {})
        self._facts: List[ExtractedFact] = list(facts or [])
        self._running = False

    def start(self) -> None:
        self._running = True
        logger.info(f"Static source {self.name} started with {len(self._facts)} facts")
        self._on_facts_loaded(list(self._facts))

    def stop(self) -> None:
        self._running = False

    def publish(self, facts: List[ExtractedFact]) -> None:
        """Replace the fact set (ontology reloaded)."""
        self._facts = list(facts)
        if self._running:
            self._on_facts_loaded(list(self._facts))

    @property
    def is_connected(self) -> bool:
        return self._running
