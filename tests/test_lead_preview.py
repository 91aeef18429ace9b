"""
Tests for riffline/rules/lead_preview.py

Run with: pytest tests/test_lead_preview.py -v
"""

from riffline.data.catalog import load_default_catalog
from riffline.data.schema import Selection
from riffline.rules.lead_preview import applicable_licks, preview_lead_line, scales_for_rules


def test_blues_level_one_preview():
    catalog = load_default_catalog()
    selection = Selection(genre="blues", level=1, progression_id="blues-12bar", root_string=6)
    preview = preview_lead_line(
        selection, catalog.find_legacy_progression("blues-12bar"),
        list(catalog.rules), catalog.licks, catalog.scales,
    )

    assert preview.validation.is_valid
    assert [r.id for r in preview.rules] == ["lead-blues-constraint-scale", "lead-blues-preference-resolution"]
    assert [lick.id for lick in preview.licks] == ["blues-l1-lick1", "blues-l1-lick2"]
    assert [s.id for s in preview.scales] == ["minor-pentatonic"]


def test_licks_need_exact_level():
    licks = load_default_catalog().licks
    assert [lick.id for lick in applicable_licks(licks, "blues", 2)] == ["blues-l2-lick1"]
    assert applicable_licks(licks, "jazz", 1) == []


def test_scales_only_from_constraints():
    catalog = load_default_catalog()
    preferences = [r for r in catalog.rules if r.role.value == "preference"]
    assert scales_for_rules(preferences, catalog.scales) == []


def test_invalid_selection():
    catalog = load_default_catalog()
    preview = preview_lead_line(Selection(), None, list(catalog.rules), catalog.licks)
    assert not preview.validation.is_valid
    assert preview.rules == [] and preview.licks == []
