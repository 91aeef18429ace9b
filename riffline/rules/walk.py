"""
Walk Resolver - Parametric Stepwise Motion Between Two Chords

A walk rule has no static riff. Given a start anchor (the current chord
root), a target anchor (usually the next chord root) and a parameter set,
it synthesizes a riff that walks from one to the other:

    beat:   1              2           3           4              1 (next bar)
            startAnchor -> walkStep1 -> walkStep2 -> approachTone -> targetAnchor

Genre profiles decide whether intermediate tones stay chromatic or snap
to the major scale. The resolved riff uses beats relative to the bar the
walk starts in, exactly like a catalog riff.
"""

import math
from typing import Dict, List, Mapping, Optional, Union

from riffline.data.schema import (
    BEATS_PER_BAR,
    GenreProfile,
    PitchRef,
    RichRule,
    Riff,
    RiffEvent,
    Timeline,
    WalkParameters,
)
from riffline.logger_config import logger
from riffline.rules.harmony import degree_to_semitones, semitones_to_scale_degree, snap_to_scale
from riffline.rules.pitch import PitchContext


FALLBACK_PROFILE = "custom"


# =============================================================================
# PARAMETERS
# =============================================================================

def default_walk_parameters(rule: RichRule) -> WalkParameters:
    """Walk parameters built from the defaults of the rule's parameter schema."""
    defaults = {name: spec.default for name, spec in rule.parameters.items()}
    return WalkParameters.model_validate(defaults)


def coerce_walk_parameters(
    rule: RichRule,
    values: Optional[Union[WalkParameters, Mapping[str, Union[int, str]]]],
) -> WalkParameters:
    """
    Merge user-supplied values over the rule's defaults.

    Values the parameter schema does not accept (unknown enum member,
    integer out of range) are replaced by the default.
    """
    if isinstance(values, WalkParameters):
        return values

    merged: Dict[str, Union[int, str]] = {name: spec.default for name, spec in rule.parameters.items()}
    for name, value in (values or {}).items():
        spec = rule.parameters.get(name)
        if spec is None:
            logger.debug("Walk rule %s has no parameter '%s', ignoring", rule.id, name)
        elif spec.accepts(value):
            merged[name] = value
        else:
            logger.debug("Walk parameter %s=%r rejected by %s, using default %r",
                         name, value, rule.id, spec.default)
    return WalkParameters.model_validate(merged)


# =============================================================================
# HELPERS
# =============================================================================

def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def chord_root_degree(timeline: Timeline, chord_index: int) -> str:
    """Root degree of a chord, "I" when the index is outside the timeline."""
    return timeline.chord_degree(chord_index) or "I"


def choose_direction(start_degree: str, target_degree: str) -> str:
    """Shorter circular way from start to target; ties go up."""
    start = degree_to_semitones(start_degree)
    target = degree_to_semitones(target_degree)
    up_distance = (target - start) % 12
    down_distance = (start - target) % 12
    return "up" if up_distance <= down_distance else "down"


def _should_snap(profile: GenreProfile, approach_strategy: str) -> bool:
    return profile.preferred_approach == "diatonic" and approach_strategy != "chromatic"


def generate_walk_steps(
    start_degree: str,
    target_degree: str,
    num_steps: int,
    direction: str,
    profile: GenreProfile,
    approach_strategy: str,
) -> List[str]:
    """
    Intermediate degrees between start and target.

    The circular distance along `direction` (a zero distance counts as a
    full octave) is split into num_steps + 1 equal increments, leaving the
    last increment for the approach tone.
    """
    start = degree_to_semitones(start_degree)
    target = degree_to_semitones(target_degree)

    if direction == "up":
        total_distance = (target - start) % 12
    else:
        total_distance = (start - target) % 12
    if total_distance == 0:
        total_distance = 12

    step_size = total_distance / (num_steps + 1)
    steps = []

    for i in range(1, num_steps + 1):
        moved = _round_half_up(step_size * i)
        if direction == "up":
            semitones = (start + moved) % 12
        else:
            semitones = (start - moved) % 12

        if _should_snap(profile, approach_strategy):
            semitones = snap_to_scale(semitones)

        steps.append(semitones_to_scale_degree(semitones))

    return steps


def interpolate_step(start_degree: str, target_degree: str, step_index: int, num_steps: int) -> str:
    """Linear fill for a template step beyond the generated ones (step_index is 0-based)."""
    start = degree_to_semitones(start_degree)
    target = degree_to_semitones(target_degree)
    progress = (step_index + 1) / (num_steps + 1)
    return semitones_to_scale_degree(_round_half_up(start + (target - start) * progress))


def approach_tone(target_degree: str, direction: str, profile: GenreProfile, approach_strategy: str) -> str:
    """One semitone below the target when walking up, one above when walking down."""
    target = degree_to_semitones(target_degree)
    semitones = (target - 1) % 12 if direction == "up" else (target + 1) % 12

    if _should_snap(profile, approach_strategy):
        semitones = snap_to_scale(semitones)

    return semitones_to_scale_degree(semitones)


# =============================================================================
# MAIN RESOLVER
# =============================================================================

def resolve_walk_rule(
    walk_rule: RichRule,
    parameters: Optional[Union[WalkParameters, Mapping[str, Union[int, str]]]],
    context: PitchContext,
) -> Riff:
    """
    Resolve a walk rule into a concrete riff for one chord context.

    Args:
        walk_rule: Rich rule with category "walk"
        parameters: WalkParameters, a raw mapping, or None for the defaults
        context: Chord context of the bar the walk starts in

    Returns:
        Riff whose event beats are relative to the starting bar; each
        event's PitchRef carries the resolved key degree in degree_hint.
    """
    params = coerce_walk_parameters(walk_rule, parameters)
    timeline = context.timeline

    profile = (walk_rule.genre_profiles.get(params.genre_profile)
               or walk_rule.genre_profiles.get(FALLBACK_PROFILE)
               or GenreProfile())

    start_anchor = chord_root_degree(timeline, context.current_chord_index)
    if params.target == "nextChordRoot":
        target_anchor = chord_root_degree(timeline, context.next_chord_index)
    else:
        target_anchor = start_anchor

    direction = params.direction
    if direction == "auto":
        direction = choose_direction(start_anchor, target_anchor)

    walk_notes = generate_walk_steps(
        start_anchor, target_anchor, params.steps, direction, profile, params.approach_strategy
    )

    template = walk_rule.timeline_template
    events = []
    for template_event in (template.events if template else ()):
        if template_event.role == "startAnchor":
            degree = start_anchor
        elif template_event.role == "targetAnchor":
            degree = target_anchor
        elif template_event.role == "approachTone":
            degree = approach_tone(target_anchor, direction, profile, params.approach_strategy)
        else:
            step_index = (template_event.step_index or 1) - 1
            if step_index < len(walk_notes):
                degree = walk_notes[step_index]
            else:
                degree = interpolate_step(start_anchor, target_anchor, step_index, params.steps)

        basis = "nextChord" if template_event.note_source == "targetChordRoot" else "currentChord"
        events.append(RiffEvent(
            start_beat=template_event.bar_offset * BEATS_PER_BAR + template_event.beat,
            duration=1,
            pitch_ref=PitchRef(basis=basis, offset=0, degree_hint=degree),
        ))

    return Riff(
        id=f"{walk_rule.id}_resolved",
        length_beats=template.length_beats if template else BEATS_PER_BAR,
        events=tuple(events),
        explanation=(f"Walk from {start_anchor} to {target_anchor} using {params.steps} steps "
                     f"({direction}, {params.register_} register)"),
    )
