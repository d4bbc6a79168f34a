"""
Tests for the extraction pipeline.

Facts are always given in a fixed order: the first fact for a state wins.
"""

from powermodel.plugins.power.models import ExtractedFact, RawMeasurement
from powermodel.plugins.power.pipeline import ExtractionPipeline


def fact(device: str, state: str, **kinds) -> ExtractedFact:
    """Build a fact: fact("d1", "On", typical=("10", "W"), nominal=("12", None))."""
    return ExtractedFact(
        device_uri=device,
        state_name=state,
        measurements=[RawMeasurement(kind, value, unit) for kind, (value, unit) in kinds.items()],
    )


class TestExtractionPipeline:
    def test_single_fact(self):
        store, report = ExtractionPipeline().run([fact("d1", "On", typical=("10", "W"))])

        state = store.get("d1").get_state("On")
        assert state.typical.value == 10.0
        assert state.typical.unit == "W"
        assert not state.has_actual()
        assert report.facts_seen == 1
        assert report.facts_recorded == 1
        assert report.facts_skipped == 0

    def test_all_three_kinds(self):
        store, _ = ExtractionPipeline().run([
            fact("d1", "On", typical=("10", "W"), nominal=("12.5", "W"), actual=("9", "W")),
        ])

        state = store.get("d1").get_state("On")
        assert (state.typical.value, state.nominal.value, state.actual.value) == (10.0, 12.5, 9.0)

    def test_malformed_value_skips_only_that_fact(self):
        store, report = ExtractionPipeline().run([
            fact("d1", "On", typical=("10", "W")),
            fact("d2", "On", typical=("ten", "W")),
            fact("d3", "On", typical=("30", "W")),
        ])

        assert store.all_device_uris() == {"d1", "d3"}
        assert report.facts_seen == 3
        assert report.facts_recorded == 2
        assert report.facts_skipped == 1

    def test_malformed_value_drops_whole_fact(self):
        store, _ = ExtractionPipeline().run([
            fact("d1", "On", typical=("10", "W"), nominal=("n/a", "W")),
        ])
        assert store.get("d1") is None

    def test_missing_unit_is_recorded_empty(self, structured_events):
        records = structured_events("POWERMODEL.Extraction")
        store, report = ExtractionPipeline().run([fact("d1", "On", nominal=("75", None))])

        nominal = store.get("d1").get_state("On").nominal
        assert nominal.value == 75.0
        assert nominal.unit == ""
        assert report.missing_units == 1
        assert report.facts_skipped == 0

        (warning,) = [r for r in records if r.getMessage() == "POWERMODEL.Extraction.MissingUnit"]
        assert warning.levelname == "WARNING"
        assert warning.fields == {"device": "d1", "state": "On", "kind": "nominal"}

    def test_measurement_without_value_is_ignored(self):
        store, report = ExtractionPipeline().run([
            fact("d1", "On", typical=(None, "W"), actual=("5", "W")),
        ])

        state = store.get("d1").get_state("On")
        assert not state.has_typical()
        assert state.actual.value == 5.0
        assert report.facts_recorded == 1

    def test_fact_without_device_is_skipped(self):
        store, report = ExtractionPipeline().run([fact("", "On", typical=("1", "W"))])
        assert len(store) == 0
        assert report.facts_skipped == 1

    def test_first_fact_for_a_state_wins(self):
        store, _ = ExtractionPipeline().run([
            fact("d1", "On", typical=("10", "W")),
            fact("d1", "On", nominal=("20", "W")),
        ])

        state = store.get("d1").get_state("On")
        assert state.typical.value == 10.0
        assert not state.has_nominal()

    def test_strict_merge_keeps_both_facts(self):
        store, _ = ExtractionPipeline(strict_merge=True).run([
            fact("d1", "On", typical=("10", "W")),
            fact("d1", "On", nominal=("20", "W")),
        ])

        state = store.get("d1").get_state("On")
        assert state.typical.value == 10.0
        assert state.nominal.value == 20.0

    def test_each_run_builds_a_fresh_store(self):
        pipeline = ExtractionPipeline()
        first, _ = pipeline.run([fact("d1", "On", typical=("10", "W"))])
        second, _ = pipeline.run([fact("d2", "On", typical=("20", "W"))])

        assert first is not second
        assert first.all_device_uris() == {"d1"}
        assert second.all_device_uris() == {"d2"}

    def test_timestamps_from_clock(self):
        ticks = iter([100.0, 105.0])
        store, report = ExtractionPipeline(clock=lambda: next(ticks)).run([])

        assert report.started_at == 100
        assert report.finished_at == 105
        assert store.loaded_at == 105

    def test_accepts_generators(self):
        facts = (fact(f"d{i}", "On", typical=(str(i), "W")) for i in range(5))
        store, report = ExtractionPipeline().run(facts)
        assert store.device_count == 5
        assert report.facts_seen == 5
