"""
Tests for fact normalization and fact sources.

The MQTT source is driven through its callbacks with fake messages; no
broker is needed.
"""

import json
from dataclasses import dataclass

import pytest

from powermodel.plugins.power.models import FactParseError
from powermodel.plugins.power.normalizer import FactNormalizer
from powermodel.plugins.power.sources.json_file import JsonFileFactSource
from powermodel.plugins.power.sources.mqtt import MqttFactSource
from powermodel.plugins.power.sources.static import StaticFactSource


@dataclass
class _FakeMessage:
    topic: str
    payload: bytes


class TestFactNormalizer:
    def test_keyed_measurements(self):
        fact = FactNormalizer.normalize_fact({
            "device": "LampLR",
            "state": "OnState",
            "typical": {"value": "60", "unit": "W"},
            "nominal": {"value": 75},
        })

        assert fact.device_uri == "LampLR"
        assert fact.state_name == "OnState"
        assert [(m.kind, m.value, m.unit) for m in fact.measurements] == [
            ("typical", "60", "W"),
            ("nominal", "75", None),
        ]

    def test_measurement_list_and_ontology_names(self):
        fact = FactNormalizer.normalize_fact({
            "consumptionOf": "Fridge",
            "whenIn": "CoolingState",
            "measurements": [
                {"kind": "actualConsumptionValue", "powerValue": "110.5", "prefSymbol": "W"},
                {"kind": "peak", "value": "300"},
            ],
        })

        assert fact.device_uri == "Fridge"
        assert fact.state_name == "CoolingState"
        assert [(m.kind, m.value, m.unit) for m in fact.measurements] == [("actual", "110.5", "W")]

    def test_scalar_measurement_has_no_unit(self):
        fact = FactNormalizer.normalize_fact({"device": "d", "state": "s", "actual": "5"})
        assert fact.measurements[0].unit is None

    def test_empty_unit_is_missing(self):
        fact = FactNormalizer.normalize_fact({"device": "d", "state": "s", "actual": {"value": "5", "unit": ""}})
        assert fact.measurements[0].unit is None

    def test_incomplete_fact(self):
        assert FactNormalizer.normalize_fact({"device": "d"}) is None
        assert FactNormalizer.normalize_fact(["not", "a", "dict"]) is None

    def test_normalize_facts_shapes(self):
        raw = [{"device": "a", "state": "On"}, {"state": "orphan"}, {"device": "b", "state": "On"}]
        assert [f.device_uri for f in FactNormalizer.normalize_facts(raw)] == ["a", "b"]
        assert len(FactNormalizer.normalize_facts({"facts": raw})) == 2
        assert FactNormalizer.normalize_facts([]) == []

    def test_payload_that_is_not_a_fact_set(self):
        with pytest.raises(FactParseError):
            FactNormalizer.normalize_facts("nonsense")
        # A single fact is not a fact set
        with pytest.raises(FactParseError):
            FactNormalizer.normalize_facts({"device": "d1", "state": "On"})
        with pytest.raises(FactParseError):
            FactNormalizer.normalize_facts({"facts": "d1"})

    def test_parse_value(self):
        assert FactNormalizer.parse_value("12.5") == 12.5
        assert FactNormalizer.parse_value(" 7 ") == 7.0
        assert FactNormalizer.parse_value("1e3") == 1000.0
        with pytest.raises(FactParseError):
            FactNormalizer.parse_value("12,5 W")
        with pytest.raises(ValueError):
            FactNormalizer.parse_value(None)


class TestStaticFactSource:
    def test_start_delivers_facts(self):
        received = []
        source = StaticFactSource("static", facts=[])
        source.set_facts_callback(received.append)

        source.publish([])  # not running: nothing delivered
        source.start()
        source.publish([])

        assert len(received) == 2
        assert source.is_connected


class TestJsonFileFactSource:
    def test_reads_list_file(self, tmp_path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps([{"device": "d1", "state": "On", "typical": {"value": "1", "unit": "W"}}]))

        received = []
        source = JsonFileFactSource("file", {"path": str(path)})
        source.set_facts_callback(received.append)
        source.start()

        assert len(received) == 1
        assert received[0][0].device_uri == "d1"
        assert source.is_connected

    def test_relative_path_uses_config_folder(self, tmp_path):
        source = JsonFileFactSource("file", {"path": "facts.json", "config_folder": str(tmp_path)})
        assert source.path == tmp_path / "facts.json"

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "facts.json"
        path.write_text("{not json")
        source = JsonFileFactSource("file", {"path": str(path)})

        with pytest.raises(json.JSONDecodeError):
            source.start()
        assert not source.is_connected

    def test_file_without_fact_set_delivers_nothing(self, tmp_path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps({"device": "d1", "state": "On"}))

        received = []
        source = JsonFileFactSource("file", {"path": str(path)})
        source.set_facts_callback(received.append)

        with pytest.raises(FactParseError):
            source.reload()
        assert received == []
        assert not source.is_connected


class TestMqttFactSource:
    def _source(self):
        source = MqttFactSource("mqtt", {"root_topic": "home/power"})
        received = []
        source.set_facts_callback(received.append)
        return source, received

    def test_config_defaults(self):
        source = MqttFactSource("mqtt", {})
        assert source.host == "localhost"
        assert source.port == 1883
        assert source.facts_topic == "powermodel/facts"
        assert not source.is_connected

    def test_message_triggers_reload(self):
        source, received = self._source()
        payload = json.dumps([{"device": "d1", "state": "On", "typical": {"value": "3", "unit": "W"}}])

        source._on_message(None, None, _FakeMessage("home/power/facts", payload.encode("utf-8")))

        assert len(received) == 1
        assert received[0][0].measurements[0].value == "3"

    def test_invalid_json_is_dropped(self):
        source, received = self._source()
        source._on_message(None, None, _FakeMessage("home/power/facts", b"{oops"))
        assert received == []

    def test_malformed_fact_set_is_dropped(self, structured_events):
        records = structured_events("POWERMODEL.Source")
        source, received = self._source()

        source._on_message(None, None, _FakeMessage("home/power/facts", b'"garbage"'))
        source._on_message(None, None, _FakeMessage("home/power/facts", b'{"device": "d1", "state": "On"}'))

        assert received == []
        assert [r.getMessage() for r in records].count("POWERMODEL.Source.InvalidPayload") == 2

    def test_other_topics_are_ignored(self):
        source, received = self._source()
        source._on_message(None, None, _FakeMessage("home/power/other", b"[]"))
        assert received == []

    def test_callback_errors_are_contained(self):
        source = MqttFactSource("mqtt", {"root_topic": "home/power"})

        def boom(facts):
            raise RuntimeError("worker gone")

        source.set_facts_callback(boom)
        source._on_message(None, None, _FakeMessage("home/power/facts", b"[]"))

    def test_connect_subscribes(self):
        source, _ = self._source()
        subscriptions = []

        class _Client:
            def subscribe(self, topic, qos=0):
                subscriptions.append((topic, qos))

        source._on_connect(_Client(), None, {}, 0)
        assert source.is_connected
        assert subscriptions == [("home/power/facts", 1)]

        source._on_disconnect(_Client(), None, {}, 1)
        assert not source.is_connected
