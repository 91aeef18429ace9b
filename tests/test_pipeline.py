"""
Tests for riffline/rules/pipeline.py

Run with: pytest tests/test_pipeline.py -v
"""

import itertools

import pytest

from riffline.data.catalog import build_catalog, load_default_catalog, RIFFS, RICH_RULES
from riffline.data.schema import (
    AppliedRule,
    BarSlot,
    ChordSlot,
    GlobalSlot,
    LastChordSlot,
    Part,
    TransitionSlot,
)
from riffline.rules.pipeline import AppliedRuleSet, execute_pipeline, instantiate_riff
from riffline.rules.timeline import build_timeline


BASS = Part(id="bass", name="Bass", default_register="low")


@pytest.fixture
def catalog():
    return load_default_catalog()


@pytest.fixture
def progression(catalog):
    return catalog.progressions["I_IV_V_I"]


def beats_and_degrees(events):
    return [(e.start_beat, e.degree) for e in events]


class TestAppliedRuleSet:

    def test_rebinding_replaces(self):
        rules = AppliedRuleSet()
        rules.bind(AppliedRule(rule_id="default_root_hold", slot=BarSlot(index=0), part_id="bass"))
        replaced = rules.bind(AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=0), part_id="bass"))

        assert replaced.rule_id == "default_root_hold"
        assert len(rules) == 1
        assert rules.find_for_slot(BarSlot(index=0), "bass").rule_id == "oom_pah_rule"

    def test_same_slot_different_parts(self):
        rules = AppliedRuleSet([
            AppliedRule(rule_id="default_root_hold", slot=GlobalSlot(), part_id="bass"),
            AppliedRule(rule_id="root_pulse_rule", slot=GlobalSlot(), part_id="rhythm"),
            AppliedRule(rule_id="oom_pah_rule", slot=GlobalSlot()),
        ])
        assert len(rules) == 3
        assert [r.rule_id for r in rules.for_part("bass")] == ["default_root_hold", "oom_pah_rule"]

    def test_unbind_and_remove_part(self):
        rules = AppliedRuleSet([
            AppliedRule(rule_id="default_root_hold", slot=GlobalSlot(), part_id="bass"),
            AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=1), part_id="bass"),
            AppliedRule(rule_id="root_pulse_rule", slot=GlobalSlot(), part_id="rhythm"),
        ])
        assert rules.unbind(GlobalSlot(), "rhythm").rule_id == "root_pulse_rule"
        assert rules.unbind(GlobalSlot(), "rhythm") is None
        assert rules.remove_part("bass") == 2
        assert rules.snapshot() == ()

    def test_covering_binding(self, progression):
        timeline = build_timeline(progression)
        rules = AppliedRuleSet([
            AppliedRule(rule_id="default_root_hold", slot=GlobalSlot()),
            AppliedRule(rule_id="root_pulse_rule", slot=ChordSlot(index=1), part_id="bass"),
            AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=2)),
        ])
        assert rules.covering_binding(timeline, 0, "bass").rule_id == "default_root_hold"
        assert rules.covering_binding(timeline, 1, "bass").rule_id == "root_pulse_rule"
        assert rules.covering_binding(timeline, 2, "bass").rule_id == "oom_pah_rule"
        assert rules.covering_binding(timeline, 1, "rhythm").rule_id == "default_root_hold"
        assert rules.covering_binding(timeline, 9, "bass") is None


class TestInstantiateRiff:

    def test_relative_beats_become_absolute(self, catalog):
        placed = instantiate_riff(catalog.riffs["oom_pah_I_V"], 9)
        assert [e.start_beat for e in placed] == [9, 11]
        assert all(e.octave_strategy == "nearest" for e in placed)


class TestExecutePipeline:

    def test_global_rule_repeats_per_bar(self, progression):
        result = execute_pipeline(
            progression, [BASS], [AppliedRule(rule_id="default_root_hold", slot=GlobalSlot())]
        )
        events = result.events_for("bass")

        assert beats_and_degrees(events) == [(1, "I"), (5, "IV"), (9, "V"), (13, "I")]
        assert all(e.duration == 4 and e.octave == 2 for e in events)
        assert all(e.part_id == "bass" and e.part_name == "Bass" for e in events)
        assert result.diagnostics == []

    def test_rebinding_in_plain_list_keeps_last(self, progression):
        rules = [
            AppliedRule(rule_id="default_root_hold", slot=BarSlot(index=0), part_id="bass"),
            AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=0), part_id="bass"),
        ]
        events = execute_pipeline(progression, [BASS], rules).events_for("bass")

        assert [e.start_beat for e in events].count(1) == 1
        assert events[0].duration == 1
        assert beats_and_degrees(events) == [(1, "I"), (3, "V")]

    def test_global_walk_repeats_every_bar(self, progression):
        result = execute_pipeline(
            progression, [BASS], [AppliedRule(rule_id="walk_to_next_chord", slot=GlobalSlot())]
        )
        events = result.events_for("bass")
        starts = [e.start_beat for e in events]

        # Each bar's target lands on the next bar's start anchor at equal specificity
        assert len(events) == 20
        assert [starts.count(beat) for beat in (1, 5, 9, 13, 17)] == [1, 2, 2, 2, 1]
        assert [e.degree for e in events if e.start_beat == 5] == ["IV", "IV"]
        assert result.timeline.total_beats == 16
        assert beats_and_degrees(events)[-1] == (17, "I")

    def test_chord_tones_follow_each_bar(self, progression):
        result = execute_pipeline(
            progression, [BASS], [AppliedRule(rule_id="approach_rule", slot=GlobalSlot())]
        )
        first_bar = result.events_for("bass")[:4]
        assert [e.degree for e in first_bar] == ["I", "III", "V", "III"]

    def test_last_chord_approach_stays_on_last_chord(self, progression):
        result = execute_pipeline(
            progression, [BASS], [AppliedRule(rule_id="approach_rule", slot=LastChordSlot())]
        )
        assert beats_and_degrees(result.events_for("bass"))[-1] == (16, "VII")

    def test_more_specific_binding_wins(self, progression):
        rules = [
            AppliedRule(rule_id="default_root_hold", slot=GlobalSlot()),
            AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=1)),
            AppliedRule(rule_id="root_pulse_rule", slot=ChordSlot(index=1)),
        ]
        events = execute_pipeline(progression, [BASS], rules).events_for("bass")

        assert beats_and_degrees(events) == [
            (1, "I"), (5, "IV"), (6, "IV"), (7, "I"), (8, "IV"), (9, "V"), (13, "I"),
        ]
        assert [e.duration for e in events if e.start_beat == 5] == [1]

    def test_order_of_binding_does_not_matter(self, progression):
        rules = [
            AppliedRule(rule_id="default_root_hold", slot=GlobalSlot()),
            AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=1)),
            AppliedRule(rule_id="root_pulse_rule", slot=ChordSlot(index=2)),
            AppliedRule(rule_id="approach_rule", slot=LastChordSlot()),
            AppliedRule(rule_id="walk_to_next_chord", slot=TransitionSlot(from_=0, to=1),
                        parameters={"steps": 2, "direction": "up"}),
        ]
        expected = None
        for ordering in itertools.permutations(rules):
            events = execute_pipeline(progression, [BASS], list(ordering)).events_for("bass")
            snapshot = [(e.start_beat, e.degree, e.duration) for e in events]
            if expected is None:
                expected = snapshot
            assert snapshot == expected

        # the bar binding owns beat 5 over the walk that starts there
        assert (5, "IV", 1) in expected
        assert (7, "I", 1) in expected

    def test_transition_walk(self, progression):
        rules = [AppliedRule(rule_id="walk_to_next_chord", slot=TransitionSlot(from_=0, to=1),
                             parameters={"steps": 2, "direction": "up"})]
        events = execute_pipeline(progression, [BASS], rules).events_for("bass")

        assert beats_and_degrees(events) == [(5, "I"), (6, "II"), (7, "II+1"), (8, "III"), (9, "IV")]

    def test_walk_without_parameters_uses_defaults(self, progression):
        rules = [AppliedRule(rule_id="walk_to_next_chord", slot=ChordSlot(index=0))]
        events = execute_pipeline(progression, [BASS], rules).events_for("bass")
        assert len(events) == 5
        assert events[-1].degree == "IV"

    def test_register_override(self, progression):
        rules = [AppliedRule(rule_id="default_root_hold", slot=GlobalSlot(), register_override="high")]
        events = execute_pipeline(progression, [BASS], rules).events_for("bass")
        assert {e.octave for e in events} == {4}

    def test_part_filter_and_muted_parts(self, progression):
        parts = [BASS, Part(id="rhythm", name="Rhythm"), Part(id="lead", name="Lead", muted=True)]
        rules = [AppliedRule(rule_id="root_pulse_rule", slot=GlobalSlot(), part_id="rhythm")]
        result = execute_pipeline(progression, parts, rules)

        assert [pe.part.id for pe in result.note_events] == ["bass", "rhythm"]
        assert result.events_for("bass") == []
        assert len(result.events_for("rhythm")) == 16
        assert {e.octave for e in result.events_for("rhythm")} == {3}

    def test_events_sorted(self, progression):
        rules = [
            AppliedRule(rule_id="approach_rule", slot=LastChordSlot()),
            AppliedRule(rule_id="oom_pah_rule", slot=BarSlot(index=0)),
        ]
        events = execute_pipeline(progression, [BASS], rules).events_for("bass")
        beats = [e.start_beat for e in events]
        assert beats == sorted(beats)

    def test_unknown_ids_are_skipped_with_diagnostics(self, progression):
        rules = [
            AppliedRule(rule_id="no_such_rule", slot=GlobalSlot()),
            AppliedRule(rule_id="default_root_hold", slot=BarSlot(index=40)),
        ]
        result = execute_pipeline(progression, [BASS], rules)

        assert result.events_for("bass") == []
        assert len(result.diagnostics) == 2
        assert "no_such_rule" in str(result.diagnostics[0])

    def test_missing_riff_in_custom_catalog(self, progression):
        broken = [dict(r, riff_id="gone") if r["id"] == "oom_pah_rule" else r for r in RICH_RULES]
        catalog = build_catalog([], [], [], broken, RIFFS, [], [])
        result = execute_pipeline(
            progression, [BASS], [AppliedRule(rule_id="oom_pah_rule", slot=GlobalSlot())], catalog
        )
        assert result.events_for("bass") == []
        assert "gone" in str(result.diagnostics[0])

    def test_legacy_progression_runs(self, catalog):
        from riffline.rules.timeline import progression_from_legacy

        progression = progression_from_legacy(catalog.find_legacy_progression("pop-vi-IV-I-V"))
        result = execute_pipeline(
            progression, [BASS], [AppliedRule(rule_id="default_root_hold", slot=GlobalSlot())]
        )
        assert [e.degree for e in result.events_for("bass")] == ["VI", "IV", "I", "V"]
