"""
Schema definitions for the Riffline generation engine.

This module defines the Pydantic models that validate and structure every
record the engine reads or produces: progressions and timelines, atomic
and rich rules, riffs, rule slots, applied-rule bindings and note events.

Catalog and timeline records are frozen: they are loaded (or derived) once
per generation call and never mutated afterwards.
"""

from enum import Enum
from typing import Annotated, ClassVar, Dict, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# VALID OPTIONS
# =============================================================================

BEATS_PER_BAR = 4

VALID_PARTS = ["bass", "lead", "chords"]

VALID_REGISTERS = ["low", "mid", "high"]

VALID_PITCH_BASES = ["keyRoot", "currentChord", "nextChord", "chordTone"]

VALID_TRIGGERS = ["always", "beat1", "beat3", "chordChange"]

# The legacy rule catalog spells the chord-change trigger with a space
TRIGGER_ALIASES = {"chord change": "chordChange"}

PartName = Literal["bass", "lead", "chords"]
PitchBasis = Literal["keyRoot", "currentChord", "nextChord", "chordTone"]
Trigger = Literal["always", "beat1", "beat3", "chordChange"]
SlotAspect = Literal["targetTone", "rhythm", "motion"]


class RuleRole(str, Enum):
    """
    Evaluation role of an atomic rule, in priority order.

    - CONSTRAINT: gates feasibility (currently rhythm only)
    - ANCHOR: mandatory target tone
    - PREFERENCE: weighted choice among anchor-compatible tones
    - EMBELLISHMENT: optional additions (accepted, not applied yet)
    """
    CONSTRAINT = "constraint"
    ANCHOR = "anchor"
    PREFERENCE = "preference"
    EMBELLISHMENT = "embellishment"


class FrozenModel(BaseModel):
    """Immutable record accepting both snake_case and camelCase keys."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# =============================================================================
# PROGRESSIONS AND TIMELINE
# =============================================================================

class ChordEntry(FrozenModel):
    """One chord of a timeline-form progression, held for `bars_held` bars."""

    degree: str = Field(..., min_length=1, examples=["I", "IV", "V"])
    quality: Optional[str] = None
    bars_held: int = Field(
        1,
        ge=1,
        validation_alias=AliasChoices("bars_held", "barsHeld", "bars"),
        description="Number of consecutive 4-beat bars the chord lasts",
    )


class Progression(FrozenModel):
    """
    A chord progression in timeline form.

    Example:
        >>> Progression(id="I_IV_V_I", key="C", chords=[
        ...     {"degree": "I", "bars": 1}, {"degree": "IV", "bars": 1},
        ...     {"degree": "V", "bars": 1}, {"degree": "I", "bars": 1},
        ... ])
    """

    id: str = Field(..., min_length=1)
    key: str = "C"
    chords: Tuple[ChordEntry, ...] = ()
    genre_tags: Tuple[str, ...] = ()
    description: str = ""

    @property
    def total_bars(self) -> int:
        return sum(chord.bars_held for chord in self.chords)


class LegacyProgression(FrozenModel):
    """A progression in the simple form: one chord symbol per bar."""

    id: str = Field(..., min_length=1)
    genre_tags: Tuple[str, ...] = ()
    bars: Tuple[str, ...] = Field(..., min_length=1, examples=[["I7", "IV7", "I7", "V7"]])
    description: str = ""


class Bar(FrozenModel):
    index: int = Field(..., ge=0)
    chord_index: int = Field(..., ge=0)
    chord_degree: str
    start_beat: int = Field(..., ge=1)
    beats_per_bar: int = BEATS_PER_BAR

    @property
    def end_beat(self) -> int:
        return self.start_beat + self.beats_per_bar - 1


class ChordBoundary(FrozenModel):
    bar_index: int = Field(..., ge=0)
    chord_index: int = Field(..., ge=0)
    chord_degree: str
    start_beat: int = Field(..., ge=1)
    end_beat: int = Field(..., ge=1)


class Timeline(FrozenModel):
    """Bars and chord boundaries derived from a progression (beats are 1-based)."""

    key: str = "C"
    bars: Tuple[Bar, ...] = ()
    chord_boundaries: Tuple[ChordBoundary, ...] = ()

    @property
    def total_beats(self) -> int:
        return len(self.bars) * BEATS_PER_BAR

    def chord_degree(self, chord_index: int) -> Optional[str]:
        """Root degree of a chord boundary, or None when the index is out of range."""
        if 0 <= chord_index < len(self.chord_boundaries):
            return self.chord_boundaries[chord_index].chord_degree
        return None

    def chord_index_at(self, beat: float) -> Optional[int]:
        """Index of the chord boundary containing an absolute beat."""
        for boundary in self.chord_boundaries:
            if boundary.start_beat <= beat <= boundary.end_beat:
                return boundary.chord_index
        return None

    def next_chord_index(self, chord_index: int) -> int:
        """The following chord, or the same chord when it is the last one."""
        if chord_index + 1 < len(self.chord_boundaries):
            return chord_index + 1
        return chord_index


# =============================================================================
# RULE SLOTS
# =============================================================================

class GlobalSlot(FrozenModel):
    type: Literal["global"] = "global"
    specificity: ClassVar[int] = 0


class BarSlot(FrozenModel):
    type: Literal["bar"] = "bar"
    index: int = Field(..., ge=0)
    specificity: ClassVar[int] = 4


class ChordSlot(FrozenModel):
    type: Literal["chord"] = "chord"
    index: int = Field(..., ge=0)
    specificity: ClassVar[int] = 3


class TransitionSlot(FrozenModel):
    type: Literal["transition"] = "transition"
    from_: int = Field(..., ge=0, alias="from")
    to: int = Field(..., ge=0)
    specificity: ClassVar[int] = 2


class LastChordSlot(FrozenModel):
    type: Literal["lastChord"] = "lastChord"
    specificity: ClassVar[int] = 1


RuleSlot = Annotated[
    Union[GlobalSlot, BarSlot, ChordSlot, TransitionSlot, LastChordSlot],
    Field(discriminator="type"),
]


# =============================================================================
# ATOMIC RULES (bass generator)
# =============================================================================

class Rule(FrozenModel):
    """
    An atomic, single-slot declarative behavior.

    Attributes:
        id: Unique rule identifier
        part: Which part the rule belongs to (bass, lead, chords)
        genre_tags: Genres the rule applies to
        min_level: Lowest skill level (inclusive)
        max_level: Highest skill level (inclusive), None = unbounded
        role: Evaluation role (constraint > anchor > preference > embellishment)
        affects_slot: What the rule decides (targetTone, rhythm, motion)
        trigger: When the rule fires (always, beat1, beat3, chordChange)
        action: Free-text action, e.g. "play root of current chord"
        weight: Optional preference weight
    """

    id: str = Field(..., min_length=1)
    part: PartName
    genre_tags: Tuple[str, ...] = ()
    min_level: int = Field(1, ge=1)
    max_level: Optional[int] = None
    role: RuleRole
    affects_slot: SlotAspect
    trigger: Trigger
    action: str = ""
    weight: Optional[float] = Field(None, ge=0)

    @field_validator("trigger", mode="before")
    @classmethod
    def normalize_trigger(cls, v):
        """Accept the legacy 'chord change' spelling."""
        if isinstance(v, str):
            return TRIGGER_ALIASES.get(v, v)
        return v

    @field_validator("max_level", mode="before")
    @classmethod
    def normalize_unbounded(cls, v):
        """An infinite maximum level means 'no upper bound'."""
        if isinstance(v, float) and v == float("inf"):
            return None
        return v

    def matches_level(self, level: int) -> bool:
        if level < self.min_level:
            return False
        return self.max_level is None or level <= self.max_level


# =============================================================================
# RIFFS AND RICH RULES (timeline engine)
# =============================================================================

class PitchRef(FrozenModel):
    """An unresolved pointer to a pitch, resolved against a chord context."""

    basis: PitchBasis
    offset: int = 0
    degree_hint: Optional[str] = None


class RiffEvent(FrozenModel):
    start_beat: float = Field(..., ge=1, description="1-based, relative to the riff start")
    duration: float = Field(..., gt=0)
    pitch_ref: PitchRef
    octave_strategy: Optional[str] = None


class Riff(FrozenModel):
    id: str = Field(..., min_length=1)
    length_beats: float = Field(..., gt=0)
    events: Tuple[RiffEvent, ...] = ()
    explanation: str = ""


class ParameterSpec(FrozenModel):
    """Schema entry for one user-tunable rule parameter."""

    type: Literal["enum", "integer"]
    values: Optional[Tuple[str, ...]] = None
    min: Optional[int] = None
    max: Optional[int] = None
    default: Union[int, str]
    description: str = ""

    def accepts(self, value) -> bool:
        if self.type == "enum":
            return isinstance(value, str) and value in (self.values or ())
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        if self.min is not None and value < self.min:
            return False
        return self.max is None or value <= self.max


class GenreProfile(FrozenModel):
    preferred_approach: Literal["chromatic", "diatonic", "mixed"] = "mixed"
    description: str = ""


class TemplateEvent(FrozenModel):
    beat: int = Field(..., ge=1, le=BEATS_PER_BAR)
    bar_offset: int = Field(0, ge=0)
    role: Literal["startAnchor", "walkStep", "approachTone", "targetAnchor"]
    step_index: Optional[int] = Field(None, ge=1)
    note_source: Optional[str] = None


class TimelineTemplate(FrozenModel):
    length_beats: int = Field(..., gt=0)
    events: Tuple[TemplateEvent, ...] = ()


class RichRule(FrozenModel):
    """
    Catalog entry for the timeline engine.

    A `normal` rule points at a static riff through `riff_id`; a `walk`
    rule has no riff and is resolved by the walk resolver from its
    parameter schema, genre profiles and timeline template.
    """

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    riff_id: Optional[str] = None
    category: Literal["normal", "walk"] = "normal"
    tags: Tuple[str, ...] = ()
    default_register: Optional[str] = None
    parameters: Dict[str, ParameterSpec] = Field(default_factory=dict)
    genre_profiles: Dict[str, GenreProfile] = Field(default_factory=dict)
    timeline_template: Optional[TimelineTemplate] = None
    resolution_rules: Tuple[str, ...] = ()

    @property
    def is_walk(self) -> bool:
        return self.category == "walk"


class WalkParameters(FrozenModel):
    target: Literal["nextChordRoot", "currentChordRoot"] = "nextChordRoot"
    steps: int = Field(2, ge=1, le=5)
    direction: Literal["auto", "up", "down"] = "auto"
    approach_strategy: Literal["chromatic", "diatonic", "mixed"] = "chromatic"
    register_: str = Field("low", alias="register")
    genre_profile: str = "custom"


# =============================================================================
# PARTS, BINDINGS AND OUTPUT
# =============================================================================

class Part(FrozenModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    muted: bool = False
    default_register: Optional[str] = None


class AppliedRule(FrozenModel):
    """Binds a rich rule to a (slot, part) pair; part_id None = every part."""

    rule_id: str = Field(..., min_length=1)
    slot: RuleSlot
    part_id: Optional[str] = None
    register_override: Optional[str] = None
    parameters: Optional[Dict[str, Union[int, str]]] = None


class NoteEvent(FrozenModel):
    start_beat: float
    duration: float
    degree: str
    octave: int
    part_id: str
    part_name: str = ""

    @property
    def bar_number(self) -> int:
        return int((self.start_beat - 1) // BEATS_PER_BAR) + 1

    @property
    def beat_in_bar(self) -> float:
        beat = (self.start_beat - 1) % BEATS_PER_BAR + 1
        return int(beat) if float(beat).is_integer() else beat


class BassNoteEvent(FrozenModel):
    bar: int = Field(..., ge=1)
    beat: int = Field(..., ge=1, le=BEATS_PER_BAR)
    degree: str
    octave_offset: int = 0
    duration: float = 1.0
    explanation: str = ""


class Selection(FrozenModel):
    """
    The user's current choices, passed explicitly into each generation call.

    Fields the user must pick are optional here so that a missing choice is
    reported by `validate_selection` instead of failing construction.
    """

    genre: Optional[str] = None
    level: Optional[int] = Field(None, ge=1)
    progression_id: Optional[str] = None
    root_string: Optional[int] = Field(None, ge=1, le=6)
    randomness: int = Field(50, ge=0, le=100)
    part: PartName = "bass"


# =============================================================================
# SCALES AND LICKS
# =============================================================================

class Scale(FrozenModel):
    id: str
    degrees: Tuple[str, ...]


class LickNote(FrozenModel):
    degree: str
    octave_offset: int = 0
    duration: float = Field(..., gt=0)


class Lick(FrozenModel):
    id: str
    genre_tags: Tuple[str, ...] = ()
    level: int = Field(..., ge=1)
    notes: Tuple[LickNote, ...] = ()
    explanation: str = ""
