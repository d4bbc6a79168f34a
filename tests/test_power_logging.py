from __future__ import annotations

import json
import logging

import pytest

from powermodel.power_logging import get_logger


def test_json_lines_with_fields(capsys: pytest.CaptureFixture[str]) -> None:
    log = get_logger("POWERMODEL.Test.Json")
    log.warning("POWERMODEL.Test.Event", extra={"fields": {"device": "d1", "kind": "typical"}})

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "POWERMODEL.Test.Json"
    assert payload["msg"] == "POWERMODEL.Test.Event"
    assert payload["device"] == "d1"
    assert "ts" in payload


def test_handler_installed_once() -> None:
    first = get_logger("POWERMODEL.Test.Once")
    second = get_logger("POWERMODEL.Test.Once")
    assert first is second
    assert len(second.handlers) == 1


def test_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POWERMODEL_LOG_LEVEL", "debug")
    assert get_logger("POWERMODEL.Test.Level").level == logging.DEBUG
