"""
Tests for riffline/rules/bass_generator.py

Run with: pytest tests/test_bass_generator.py -v
"""

import random

import pytest

from riffline.data.catalog import load_default_catalog
from riffline.data.schema import Rule, Selection
from riffline.rules.bass_generator import (
    apply_anchors,
    apply_preferences,
    generate_bass_line,
    preference_options,
)


@pytest.fixture
def catalog():
    return load_default_catalog()


@pytest.fixture
def blues_selection():
    return Selection(genre="blues", level=1, progression_id="blues-12bar", root_string=6, randomness=0)


def rule_by_id(catalog, rule_id):
    rule = catalog.find_rule(rule_id)
    assert rule is not None
    return rule


class TestGenerateBassLine:

    def test_single_root_anchor(self, catalog, blues_selection):
        progression = catalog.find_legacy_progression("blues-12bar")
        anchor = rule_by_id(catalog, "bass-blues-anchor-beat1")

        result = generate_bass_line(blues_selection, progression, [anchor], rng=random.Random(0))

        assert result.is_valid
        first = result.note_events[0]
        assert (first.bar, first.beat, first.degree, first.duration) == (1, 1, "1", 1.0)
        assert first.explanation == "Bar 1 Beat 1: 1 (chord: I7)"
        assert len(result.note_events) == 12 * 4

    def test_anchor_follows_the_chord(self, catalog, blues_selection):
        progression = catalog.find_legacy_progression("blues-12bar")
        anchor = rule_by_id(catalog, "bass-blues-anchor-beat1")
        result = generate_bass_line(blues_selection, progression, [anchor])

        downbeats = [e.degree for e in result.note_events if e.beat == 1]
        assert downbeats == ["1", "1", "1", "1", "4", "4", "1", "1", "5", "4", "1", "5"]

    def test_trace_records_deciding_rules(self, catalog, blues_selection):
        progression = catalog.find_legacy_progression("blues-12bar")
        anchor = rule_by_id(catalog, "bass-blues-anchor-beat1")
        result = generate_bass_line(blues_selection, progression, [anchor])

        assert len(result.applied_rules) == 12
        assert all(t.beat == 1 and t.rules == [anchor] for t in result.applied_rules)

    def test_no_rules_enabled(self, catalog, blues_selection):
        progression = catalog.find_legacy_progression("blues-12bar")
        result = generate_bass_line(blues_selection, progression, [])

        assert not result.is_valid
        assert result.note_events == []
        assert result.validation.errors == ["No rules enabled"]

    def test_no_rules_reported_with_incomplete_selection(self):
        result = generate_bass_line(Selection(level=1), None, [])

        assert not result.is_valid
        assert result.validation.errors == [
            "Please select a genre",
            "Please select a chord progression",
            "Please select a root string",
            "No rules enabled",
        ]

    def test_no_rule_matches_selection(self, catalog):
        selection = Selection(genre="pop", level=1, progression_id="blues-12bar", root_string=6)
        progression = catalog.find_legacy_progression("blues-12bar")
        anchor = rule_by_id(catalog, "bass-blues-anchor-beat1")

        result = generate_bass_line(selection, progression, [anchor])
        assert not result.is_valid
        assert result.validation.errors == ["No rules enabled for bass / pop at level 1"]

    def test_incomplete_selection(self, catalog):
        result = generate_bass_line(Selection(level=1), None, list(catalog.rules))
        assert not result.is_valid
        assert result.note_events == []
        assert result.validation.errors == [
            "Please select a genre",
            "Please select a chord progression",
            "Please select a root string",
        ]

    def test_seeded_runs_repeat(self, catalog):
        selection = Selection(genre="blues", level=1, progression_id="blues-8bar", root_string=5, randomness=60)
        progression = catalog.find_legacy_progression("blues-8bar")
        rules = list(catalog.rules)

        first = generate_bass_line(selection, progression, rules, rng=random.Random(42))
        second = generate_bass_line(selection, progression, rules, rng=random.Random(42))
        assert [e.degree for e in first.note_events] == [e.degree for e in second.note_events]

    def test_beat_three_prefers_fifth_or_root(self, catalog):
        selection = Selection(genre="blues", level=1, progression_id="blues-12bar", root_string=6)
        progression = catalog.find_legacy_progression("blues-12bar")
        result = generate_bass_line(selection, progression, list(catalog.rules), rng=random.Random(3))

        for event in result.note_events:
            if event.beat == 3 and event.bar == 1:
                assert event.degree in ("1", "5")

    def test_single_preference_is_deterministic(self, catalog):
        selection = Selection(genre="pop", level=1, progression_id="pop-I-V-vi-IV", root_string=6, randomness=100)
        progression = catalog.find_legacy_progression("pop-I-V-vi-IV")
        result = generate_bass_line(selection, progression, list(catalog.rules))

        beat3 = [e.degree for e in result.note_events if e.beat == 3]
        assert beat3 == ["5", "2", "3", "1"]


class TestRoleHandlers:

    def make(self, role, action, weight=None):
        return Rule(id=action, part="bass", role=role, affects_slot="targetTone",
                    trigger="always", action=action, weight=weight)

    def test_anchor_root_then_fifth(self):
        assert apply_anchors([self.make("anchor", "play fifth")], "IV7") == "1"
        assert apply_anchors([self.make("anchor", "play root")], "IV7") == "4"
        assert apply_anchors([], "V7") == "5"

    def test_preference_options_order_and_weights(self):
        options = preference_options([self.make("preference", "prefer 5th or root")], "I7")
        assert options == [("5", 0.5), ("1", 0.5)]

    def test_no_options_keeps_anchor(self):
        rng = random.Random(0)
        assert apply_preferences([self.make("preference", "prefer chord tones")], "4", "IV", 50, rng) == "4"

    def test_weighted_draw_respects_weights(self):
        rng = random.Random(9)
        rules = [self.make("preference", "prefer 5th", weight=1.0), self.make("preference", "prefer root", weight=0.0)]
        picks = {apply_preferences(rules, "1", "I", 0, rng) for _ in range(50)}
        assert picks == {"5"}
