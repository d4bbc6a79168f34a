"""Power consumption model for smart-home device ontologies."""

__version__ = "0.1.0"
