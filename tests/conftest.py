"""
Shared fixtures.
"""

import logging
from typing import Callable, Iterator, List

import pytest

from powermodel.power_logging import get_logger


@pytest.fixture
def structured_events(caplog: pytest.LogCaptureFixture) -> Iterator[Callable[[str], List[logging.LogRecord]]]:
    """
    Capture events of a structured logger.

    Structured loggers write to their own stdout handler and do not propagate,
    so caplog's handler is attached to them directly.

    Usage: records = structured_events("POWERMODEL.Extraction")
    """
    watched: List[logging.Logger] = []

    def watch(name: str) -> List[logging.LogRecord]:
        log = get_logger(name)
        log.addHandler(caplog.handler)
        watched.append(log)
        return caplog.records

    yield watch

    for log in watched:
        log.removeHandler(caplog.handler)
