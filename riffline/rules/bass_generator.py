"""
Bass Generator - Per-Beat Rule Resolution for a Single Part

The simpler of the two engines. Works on a one-chord-per-bar progression
and decides every quarter note on its own:

    for each bar, for each beat 1..4:
        constraints  -> duration (quarter notes only)
        anchors      -> mandatory target tone (root or fifth of the chord)
        preferences  -> weighted choice among root / fifth
        embellishments are accepted but not applied

Degrees are arabic chord-relative labels: "1" is the root of the key's
I chord, "5" its fifth, and so on.
"""

import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from riffline.data.schema import BEATS_PER_BAR, BassNoteEvent, LegacyProgression, Rule, Selection
from riffline.logger_config import logger
from riffline.rules.harmony import chord_symbol_to_root_degree, fifth_of_degree
from riffline.rules.rule_engine import get_active_rules, get_rules_for_context, resolve_conflicts
from riffline.rules.validation import ValidationResult, validate_selection


DEFAULT_DURATION = 1.0
DEFAULT_PREFERENCE_WEIGHT = 0.5


@dataclass
class RuleTrace:
    """Rules that took part in the decision for one beat."""
    bar: int
    beat: int
    rules: List[Rule] = field(default_factory=list)


@dataclass
class BassLineResult:
    """
    Output of generate_bass_line.

    Attributes:
        note_events: One event per beat, empty when validation failed
        applied_rules: Per-beat trace of the anchor/preference rules used
        validation: Why generation was rejected, if it was
    """
    note_events: List[BassNoteEvent] = field(default_factory=list)
    applied_rules: List[RuleTrace] = field(default_factory=list)
    validation: ValidationResult = field(default_factory=ValidationResult)

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid


# =============================================================================
# ROLE HANDLERS
# =============================================================================

def _mentions_fifth(action: str) -> bool:
    return "fifth" in action or "5th" in action


def apply_constraints(constraints: List[Rule]) -> float:
    """Note duration allowed by rhythm constraints (quarter notes only)."""
    duration = DEFAULT_DURATION
    for constraint in constraints:
        if constraint.affects_slot == "rhythm" and "quarter notes only" in constraint.action:
            duration = 1.0
    return duration


def apply_anchors(anchors: List[Rule], chord_symbol: str) -> str:
    """
    Mandatory target tone for a beat.

    The first targetTone anchor naming the root or the fifth decides;
    within a rule the root is checked first. No matching anchor means
    the chord root.
    """
    root = chord_symbol_to_root_degree(chord_symbol)
    for rule in anchors:
        if rule.affects_slot != "targetTone":
            continue
        if "root" in rule.action:
            return root
        if _mentions_fifth(rule.action):
            return fifth_of_degree(root)
    return root


def preference_options(preferences: List[Rule], chord_symbol: str) -> List[Tuple[str, float]]:
    """(degree, weight) options offered by targetTone preference rules, fifth before root."""
    root = chord_symbol_to_root_degree(chord_symbol)
    options = []
    for rule in preferences:
        if rule.affects_slot != "targetTone":
            continue
        weight = rule.weight if rule.weight is not None else DEFAULT_PREFERENCE_WEIGHT
        if _mentions_fifth(rule.action):
            options.append((fifth_of_degree(root), weight))
        if "root" in rule.action:
            options.append((root, weight))
    return options


def apply_preferences(
    preferences: List[Rule],
    anchor_tone: str,
    chord_symbol: str,
    randomness: int,
    rng: random.Random,
) -> str:
    """
    Choose among preferred tones.

    With probability randomness/100 (and at least two options) pick an
    option uniformly; otherwise draw proportionally to the weights. With
    no options the anchor tone stands.
    """
    options = preference_options(preferences, chord_symbol)
    if not options:
        return anchor_tone

    if rng.random() < randomness / 100 and len(options) > 1:
        return options[rng.randrange(len(options))][0]

    total_weight = sum(weight for _, weight in options)
    remaining = rng.random() * total_weight
    for degree, weight in options:
        remaining -= weight
        if remaining <= 0:
            return degree

    return options[0][0]


# =============================================================================
# MAIN GENERATOR
# =============================================================================

def generate_bass_line(
    selection: Selection,
    progression: Optional[LegacyProgression],
    rules: List[Rule],
    rng: Optional[random.Random] = None,
) -> BassLineResult:
    """
    Generate one bass note per beat for a one-chord-per-bar progression.

    Args:
        selection: Genre, level, randomness and part (normally "bass")
        progression: Legacy progression picked by selection.progression_id
        rules: The enabled atomic rules, in catalog order
        rng: Random source for preference draws (seed it for repeatability)

    Returns:
        BassLineResult; when the selection is incomplete or no rule applies,
        validation is invalid and note_events is empty.

    Example:
        >>> result = generate_bass_line(selection, blues_12bar, [root_anchor])
        >>> result.note_events[0].degree
        '1'
    """
    rng = rng or random.Random()

    validation = validate_selection(selection, progression)
    if not rules:
        validation.add_error("No rules enabled")
    if not validation.is_valid:
        logger.info("Bass line rejected: %s", "; ".join(validation.errors))
        return BassLineResult(validation=validation)

    active = get_active_rules(selection, rules)
    if not active:
        validation.add_error(
            f"No rules enabled for {selection.part} / {selection.genre} at level {selection.level}"
        )
        logger.info("Bass line rejected: %s", validation.errors[-1])
        return BassLineResult(validation=validation)

    organized = resolve_conflicts(active)
    for conflict in organized.conflicts:
        validation.warnings.append(str(conflict.as_warning()))

    result = BassLineResult(validation=validation)
    bars = progression.bars

    for bar_index, chord in enumerate(bars):
        bar = bar_index + 1
        previous_chord = bars[bar_index - 1] if bar_index > 0 else None

        for beat in range(1, BEATS_PER_BAR + 1):
            context_rules = get_rules_for_context(organized, bar, beat, chord, previous_chord)

            duration = apply_constraints(context_rules.constraints)
            anchor_tone = apply_anchors(context_rules.anchors, chord)
            degree = apply_preferences(
                context_rules.preferences, anchor_tone, chord, selection.randomness, rng
            )

            result.note_events.append(BassNoteEvent(
                bar=bar,
                beat=beat,
                degree=degree,
                duration=duration,
                explanation=f"Bar {bar} Beat {beat}: {degree} (chord: {chord})",
            ))

            decisive = context_rules.anchors + context_rules.preferences
            if decisive:
                result.applied_rules.append(RuleTrace(bar=bar, beat=beat, rules=decisive))

    logger.info("Generated %d bass notes over %d bars (%s, level %s)",
                len(result.note_events), len(bars), selection.genre, selection.level)
    return result
