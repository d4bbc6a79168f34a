"""
Base interface for fact sources.

A source delivers the facts extracted from the power ontology. Every
delivery is a complete fact set and acts as a reload event.
"""

from abc import ABC, abstractmethod
from typing import List, Callable
from powermodel.plugins.power.models import ExtractedFact


class FactSource(ABC):
    """
    Base class for fact sources.

    Sources are responsible for:
    - Connecting to the reasoning collaborator (file, MQTT, in-process)
    - Normalizing its payloads into ExtractedFact records
    - Announcing each new fact set via the facts callback
    """

    def __init__(self, name: str, config: dict):
        """
        Initialize source.

        Args:
            name: Source identifier
            config: Source-specific configuration
        """
        self.name = name
        self.config = config
        self._facts_callback: Callable[[List[ExtractedFact]], None] = lambda facts: None

    @abstractmethod
    def start(self) -> None:
        """
        Start the source.

        Should connect and deliver the initial fact set when one is
        available.

        Raises:
            Exception: If source fails to start
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the source and release resources."""
        pass

    def set_facts_callback(self, callback: Callable[[List[ExtractedFact]], None]) -> None:
        """
        Set callback for fact set deliveries.

        Args:
            callback: Function called with the complete list of facts
        """
        self._facts_callback = callback

    def _on_facts_loaded(self, facts: List[ExtractedFact]) -> None:
        """Internal: Notify about a new fact set."""
        self._facts_callback(facts)

    @property
    def is_connected(self) -> bool:
        """Whether the source can currently deliver facts."""
        return True
