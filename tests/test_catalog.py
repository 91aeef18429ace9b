"""
Tests for riffline/data/catalog.py

Run with: pytest tests/test_catalog.py -v
"""

import pytest
from pydantic import ValidationError

from riffline.data.catalog import (
    LICKS,
    PROGRESSIONS,
    RICH_RULES,
    RIFFS,
    RULES,
    SCALES,
    LEGACY_PROGRESSIONS,
    available_genres,
    build_catalog,
    find_progression,
    load_default_catalog,
    progressions_for_genre,
    validate_catalog,
)


def build(**overrides):
    tables = dict(
        legacy_progressions=LEGACY_PROGRESSIONS, progressions=PROGRESSIONS, rules=RULES,
        rich_rules=RICH_RULES, riffs=RIFFS, scales=SCALES, licks=LICKS,
    )
    tables.update(overrides)
    return build_catalog(**tables)


class TestDefaultCatalog:

    def test_loaded_once(self):
        assert load_default_catalog() is load_default_catalog()

    def test_contents(self):
        catalog = load_default_catalog()
        assert [p.id for p in catalog.legacy_progressions] == [
            "blues-12bar", "blues-8bar", "pop-vi-IV-I-V", "pop-I-V-vi-IV",
        ]
        assert set(catalog.progressions) == {"I_IV_V_I", "I_V_vi_IV", "ii_V_I", "blues_12bar"}
        assert catalog.rich_rules["walk_to_next_chord"].is_walk
        assert catalog.progressions["blues_12bar"].total_bars == 12

    def test_bundled_data_is_consistent(self):
        assert validate_catalog(load_default_catalog()) == []

    def test_records_are_frozen(self):
        rule = load_default_catalog().rules[0]
        with pytest.raises(ValidationError):
            rule.weight = 3.0

    def test_unbounded_levels(self):
        assert all(rule.max_level is None for rule in load_default_catalog().rules)


class TestValidateCatalog:

    def test_unknown_riff(self):
        rich_rules = [dict(r, riff_id="missing") if r["id"] == "root_pulse_rule" else r for r in RICH_RULES]
        problems = validate_catalog(build(rich_rules=rich_rules))
        assert len(problems) == 1
        assert "missing" in str(problems[0])

    def test_duplicate_rule_ids(self):
        problems = validate_catalog(build(rules=RULES + [RULES[0]]))
        assert ["Duplicate" in str(p) for p in problems] == [True]

    def test_walk_without_custom_profile_or_template(self):
        walk = dict(RICH_RULES[-1], id="broken_walk", timeline_template=None,
                    genre_profiles={"blues": {"preferred_approach": "chromatic"}})
        problems = [str(p) for p in validate_catalog(build(rich_rules=RICH_RULES + [walk]))]

        assert any("no timeline template" in p for p in problems)
        assert any("no 'custom' genre profile" in p for p in problems)
        assert any("'jazz'" in p for p in problems)

    def test_malformed_record_raises(self):
        with pytest.raises(ValidationError):
            build(riffs=[{"id": "bad", "length_beats": 0}])


class TestLookups:

    def test_genres(self):
        catalog = load_default_catalog()
        assert available_genres(catalog.legacy_progressions) == ["blues", "pop"]
        assert available_genres(catalog.progressions.values()) == ["blues", "country", "jazz", "pop"]

    def test_progressions_for_genre(self):
        catalog = load_default_catalog()
        assert [p.id for p in progressions_for_genre(catalog.legacy_progressions, "pop")] == [
            "pop-vi-IV-I-V", "pop-I-V-vi-IV",
        ]
        assert len(progressions_for_genre(catalog.legacy_progressions, None)) == 4

    def test_find_progression(self):
        catalog = load_default_catalog()
        assert find_progression(catalog.legacy_progressions, "blues-8bar").bars[1] == "IV7"
        assert find_progression(catalog.legacy_progressions, "nope") is None
        assert catalog.find_legacy_progression(None) is None
