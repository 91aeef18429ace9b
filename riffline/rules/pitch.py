"""
Pitch and Register Resolution

Turns an abstract PitchRef ("the fifth of the current chord", "one
semitone under the next chord") plus a register policy into a concrete
(scale degree, octave) pair. Unresolvable references degrade to the key
root instead of failing.
"""

from dataclasses import dataclass
from typing import Optional

from riffline.data.schema import AppliedRule, Part, PitchRef, RichRule, Timeline
from riffline.logger_config import logger
from riffline.rules.harmony import degree_to_semitones, is_roman_degree


DEFAULT_REGISTER = "mid"

REGISTER_OCTAVES = {
    "low": 2,
    "mid": 3,
    "high": 4,
}

# Chord-tone hints: root, major third, perfect fifth
CHORD_TONE_INTERVALS = {
    "1": 0,
    "3": 4,
    "5": 7,
}


@dataclass(frozen=True)
class PitchContext:
    """Harmonic context a pitch reference is resolved against."""
    timeline: Timeline
    current_chord_index: int
    current_beat: float
    next_chord_index: int


def _chord_root(timeline: Timeline, chord_index: Optional[int]) -> Optional[int]:
    if chord_index is None:
        return None
    degree = timeline.chord_degree(chord_index)
    if degree is None:
        return None
    return degree_to_semitones(degree)


def resolve_pitch_ref(ref: PitchRef, context: PitchContext) -> int:
    """
    Resolve a pitch reference to a semitone offset from the key root (0-11).

    Bases:
        keyRoot       0
        currentChord  root of the current chord
        nextChord     root of the next chord
        chordTone     root/third/fifth of the current chord per degree_hint
                      ("1", "3", "5"; anything else means root)

    A Roman-numeral degree_hint on a currentChord/nextChord reference (as
    produced by the walk resolver) names the sounding key degree and takes
    the place of the chord root. This extends plain chord-root resolution,
    where the hint is descriptive only. Out-of-range chord indexes fall
    back to 0.
    """
    base: Optional[int] = 0

    if ref.basis == "keyRoot":
        base = 0
    elif ref.basis in ("currentChord", "nextChord"):
        if is_roman_degree(ref.degree_hint):
            base = degree_to_semitones(ref.degree_hint)
        else:
            index = context.current_chord_index if ref.basis == "currentChord" else context.next_chord_index
            base = _chord_root(context.timeline, index)
    elif ref.basis == "chordTone":
        root = _chord_root(context.timeline, context.current_chord_index)
        if root is not None:
            base = root + CHORD_TONE_INTERVALS.get(ref.degree_hint or "1", 0)

    if base is None:
        logger.debug("Pitch ref %s outside timeline at beat %s, using key root",
                     ref.basis, context.current_beat)
        base = 0

    return (base + ref.offset) % 12


def resolve_register(
    applied_rule: AppliedRule,
    part: Part,
    rule: Optional[RichRule] = None,
) -> str:
    """
    Pick the register for an applied rule.

    Priority: slot-level override > part default > rule default > "mid".
    """
    if applied_rule.register_override:
        return applied_rule.register_override
    if part.default_register:
        return part.default_register
    if rule is not None and rule.default_register:
        return rule.default_register
    return DEFAULT_REGISTER


def octave_for_register(register: str) -> int:
    """Base octave of a register (low=2, mid=3, high=4; unknown=3)."""
    return REGISTER_OCTAVES.get(register, REGISTER_OCTAVES[DEFAULT_REGISTER])
