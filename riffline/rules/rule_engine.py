"""
Rule Engine - Filter Applicable Rules and Organize Them by Role

Evaluation priority: constraints > anchors > preferences > embellishments.

    catalog ──► get_active_rules(selection) ──► resolve_conflicts ──► OrganizedRules
                                                                          │
                        (bar, beat, chord, previous chord) ──► get_rules_for_context
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from riffline.data.schema import Rule, RuleRole, Selection
from riffline.logger_config import logger
from riffline.rules.validation import DataConsistencyWarning


# Role -> attribute of OrganizedRules holding that role's rules
ROLE_GROUPS: Dict[RuleRole, str] = {
    RuleRole.CONSTRAINT: "constraints",
    RuleRole.ANCHOR: "anchors",
    RuleRole.PREFERENCE: "preferences",
    RuleRole.EMBELLISHMENT: "embellishments",
}


@dataclass
class AnchorConflict:
    """Two anchor rules competing for the same (trigger, affected slot)."""
    slot: str
    kept: Rule
    shadowed: Rule

    def as_warning(self) -> DataConsistencyWarning:
        return DataConsistencyWarning(
            f"Anchor rules '{self.kept.id}' and '{self.shadowed.id}' both target "
            f"'{self.slot}'; '{self.kept.id}' wins"
        )


@dataclass
class OrganizedRules:
    constraints: List[Rule] = field(default_factory=list)
    anchors: List[Rule] = field(default_factory=list)
    preferences: List[Rule] = field(default_factory=list)
    embellishments: List[Rule] = field(default_factory=list)
    conflicts: List[AnchorConflict] = field(default_factory=list)

    def group(self, role: RuleRole) -> List[Rule]:
        return getattr(self, ROLE_GROUPS[role])

    def all_rules(self) -> List[Rule]:
        return self.constraints + self.anchors + self.preferences + self.embellishments

    def is_empty(self) -> bool:
        return not self.all_rules()


# =============================================================================
# FILTERING
# =============================================================================

def get_active_rules(selection: Selection, rules: List[Rule]) -> List[Rule]:
    """
    Keep the rules that apply to a selection.

    A rule applies when it belongs to the selected part, lists the selected
    genre, and the selected level lies within [min_level, max_level]
    (inclusive; no upper bound when max_level is None). Catalog order is
    preserved.
    """
    if selection.level is None:
        return []
    return [
        rule for rule in rules
        if rule.part == selection.part
        and selection.genre in rule.genre_tags
        and rule.matches_level(selection.level)
    ]


def find_anchor_conflicts(anchors: List[Rule]) -> List[AnchorConflict]:
    """Anchors sharing a (trigger, affects_slot) key; the first registered one is kept."""
    conflicts = []
    seen: Dict[str, Rule] = {}

    for rule in anchors:
        key = f"{rule.trigger}:{rule.affects_slot}"
        if key in seen:
            conflicts.append(AnchorConflict(slot=key, kept=seen[key], shadowed=rule))
        else:
            seen[key] = rule

    return conflicts


def resolve_conflicts(rules: List[Rule]) -> OrganizedRules:
    """
    Partition rules by role and report anchor-anchor conflicts.

    Conflicting anchors are a data-authoring error, never a failure: every
    anchor stays in the partition in catalog order, so consumers that scan
    anchors in order let the first registered rule win.
    """
    organized = OrganizedRules()
    for rule in rules:
        organized.group(rule.role).append(rule)

    organized.conflicts = find_anchor_conflicts(organized.anchors)
    for conflict in organized.conflicts:
        logger.warning("Anchor conflict (data error): %s", conflict.as_warning())

    return organized


def _matches_trigger(rule: Rule, beat: int, current_chord: str, previous_chord: Optional[str]) -> bool:
    if rule.trigger == "always":
        return True
    if rule.trigger == "beat1":
        return beat == 1
    if rule.trigger == "beat3":
        return beat == 3
    if rule.trigger == "chordChange":
        return bool(previous_chord) and current_chord != previous_chord
    return False


def get_rules_for_context(
    organized: OrganizedRules,
    bar: int,
    beat: int,
    current_chord: str,
    previous_chord: Optional[str] = None,
) -> OrganizedRules:
    """
    Rules whose trigger fires at a given bar/beat.

    Args:
        organized: Output of resolve_conflicts
        bar: Bar number (1-based), informational
        beat: Beat within the bar (1-4)
        current_chord: Chord symbol of the bar
        previous_chord: Chord symbol of the previous bar, None for the first bar

    Returns:
        OrganizedRules with the same role groups, filtered
    """
    applicable = OrganizedRules()
    for role in RuleRole:
        applicable.group(role).extend(
            rule for rule in organized.group(role)
            if _matches_trigger(rule, beat, current_chord, previous_chord)
        )
    return applicable
