"""
Timeline Module - Bars, Chord Boundaries and Rule Slots

Expands a progression into a beat-addressed timeline and enumerates the
positions a rule can be bound to:

    Progression ──► build_timeline ──► Timeline ──► enumerate_slots
                                            │
                                            └──► slot_span (beat range + specificity)

All beats are 1-based and absolute; every bar is 4 beats long.
"""

from dataclasses import dataclass
from typing import List, Optional

from riffline.data.schema import (
    BEATS_PER_BAR,
    Bar,
    BarSlot,
    ChordBoundary,
    ChordEntry,
    ChordSlot,
    GlobalSlot,
    LastChordSlot,
    LegacyProgression,
    Progression,
    Timeline,
    TransitionSlot,
)
from riffline.rules.harmony import parse_chord_symbol


# =============================================================================
# TIMELINE CONSTRUCTION
# =============================================================================

def build_timeline(progression: Progression) -> Timeline:
    """
    Build the timeline for a progression.

    Each chord entry emits `bars_held` consecutive bars and one chord
    boundary spanning all of them. The last boundary ends on the last beat
    of the timeline.

    Args:
        progression: Timeline-form progression

    Returns:
        Timeline with contiguous bars starting at beat 1

    Example:
        >>> timeline = build_timeline(progression)   # I(2 bars) IV(1 bar)
        >>> [b.start_beat for b in timeline.bars]
        [1, 5, 9]
        >>> [(c.start_beat, c.end_beat) for c in timeline.chord_boundaries]
        [(1, 8), (9, 12)]
    """
    bars = []
    boundaries = []
    current_bar = 0
    current_beat = 1

    for chord_index, chord in enumerate(progression.chords):
        degree = _normalize_degree(chord)
        chord_start_bar = current_bar
        chord_start_beat = current_beat

        for _ in range(chord.bars_held):
            bars.append(Bar(
                index=current_bar,
                chord_index=chord_index,
                chord_degree=degree,
                start_beat=current_beat,
            ))
            current_bar += 1
            current_beat += BEATS_PER_BAR

        boundaries.append(ChordBoundary(
            bar_index=chord_start_bar,
            chord_index=chord_index,
            chord_degree=degree,
            start_beat=chord_start_beat,
            end_beat=current_beat - 1,
        ))

    return Timeline(key=progression.key, bars=tuple(bars), chord_boundaries=tuple(boundaries))


def _normalize_degree(chord: ChordEntry) -> str:
    parsed = parse_chord_symbol(chord.degree)
    return parsed[0] if parsed else chord.degree


def progression_from_legacy(legacy: LegacyProgression, key: str = "C") -> Progression:
    """
    Convert a one-symbol-per-bar progression to timeline form.

    Runs of identical consecutive symbols become a single chord held for
    the length of the run, so "I7 I7 IV7" is I7 for two bars then IV7.
    Rootless symbols are kept as-is; their degree resolves to the key root.
    """
    chords: List[ChordEntry] = []
    previous: Optional[str] = None

    for symbol in legacy.bars:
        if symbol == previous and chords:
            last = chords[-1]
            chords[-1] = last.model_copy(update={"bars_held": last.bars_held + 1})
            continue

        parsed = parse_chord_symbol(symbol)
        if parsed:
            degree, quality = parsed
            chords.append(ChordEntry(degree=degree, quality=quality or None, bars_held=1))
        else:
            chords.append(ChordEntry(degree=symbol, bars_held=1))
        previous = symbol

    return Progression(
        id=legacy.id,
        key=key,
        chords=tuple(chords),
        genre_tags=legacy.genre_tags,
        description=legacy.description,
    )


# =============================================================================
# RULE SLOTS
# =============================================================================

def enumerate_slots(timeline: Timeline) -> list:
    """
    List every position a rule can be bound to.

    Order: one global slot, one per bar, one per chord, one per adjacent
    chord pair, and a last-chord slot when the timeline has chords.
    """
    boundary_count = len(timeline.chord_boundaries)

    slots: list = [GlobalSlot()]
    slots.extend(BarSlot(index=bar.index) for bar in timeline.bars)
    slots.extend(ChordSlot(index=i) for i in range(boundary_count))
    slots.extend(TransitionSlot(from_=i, to=i + 1) for i in range(boundary_count - 1))
    if boundary_count > 0:
        slots.append(LastChordSlot())
    return slots


@dataclass(frozen=True)
class SlotSpan:
    """Where a bound slot sits on the timeline and which chords it sees."""
    specificity: int
    start_beat: int
    end_beat: int
    current_chord_index: int
    next_chord_index: int


def slot_span(slot, timeline: Timeline, length_beats: float = BEATS_PER_BAR) -> Optional[SlotSpan]:
    """
    Resolve a slot to its beat span and chord context.

    Transition slots start on the first beat of the destination chord and
    last `length_beats` (the riff or walk length). Returns None when the
    slot points outside the timeline.
    """
    bars = timeline.bars
    boundaries = timeline.chord_boundaries

    if slot.type == "bar":
        if not 0 <= slot.index < len(bars):
            return None
        bar = bars[slot.index]
        return SlotSpan(slot.specificity, bar.start_beat, bar.end_beat,
                        bar.chord_index, bar.chord_index + 1)

    if slot.type == "chord":
        if not 0 <= slot.index < len(boundaries):
            return None
        boundary = boundaries[slot.index]
        return SlotSpan(slot.specificity, boundary.start_beat, boundary.end_beat,
                        slot.index, slot.index + 1)

    if slot.type == "transition":
        if not (0 <= slot.from_ < len(boundaries) and 0 <= slot.to < len(boundaries)):
            return None
        start = boundaries[slot.to].start_beat
        return SlotSpan(slot.specificity, start, start + int(length_beats) - 1,
                        slot.from_, slot.to)

    if slot.type == "lastChord":
        if not boundaries:
            return None
        last = boundaries[-1]
        return SlotSpan(slot.specificity, last.start_beat, last.end_beat,
                        last.chord_index, last.chord_index)

    return SlotSpan(slot.specificity, 1, timeline.total_beats, 0, 1)
