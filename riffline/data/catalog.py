"""
Static Catalogs - Progressions, Rules, Riffs, Scales and Licks

Read-only reference data consumed by the engine. Everything is declared as
plain literals, validated into frozen schema records once per process by
`load_default_catalog()`, and cross-checked eagerly by `validate_catalog()`
so broken references are reported before any generation runs.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from riffline.data.schema import (
    LegacyProgression,
    Lick,
    Progression,
    RichRule,
    Riff,
    Rule,
    Scale,
)
from riffline.logger_config import logger
from riffline.errors import DataConsistencyWarning


UNBOUNDED = float("inf")


# =============================================================================
# PROGRESSIONS
# =============================================================================

# Simple form: one chord symbol per bar (used by the bass generator)
LEGACY_PROGRESSIONS = [
    {
        "id": "blues-12bar",
        "genre_tags": ["blues"],
        "bars": ["I7", "I7", "I7", "I7", "IV7", "IV7", "I7", "I7", "V7", "IV7", "I7", "V7"],
        "description": "Standard 12-bar blues progression",
    },
    {
        "id": "blues-8bar",
        "genre_tags": ["blues"],
        "bars": ["I7", "IV7", "I7", "I7", "IV7", "IV7", "I7", "V7"],
        "description": "8-bar blues variation",
    },
    {
        "id": "pop-vi-IV-I-V",
        "genre_tags": ["pop"],
        "bars": ["vi", "IV", "I", "V"],
        "description": "Common pop progression (vi-IV-I-V)",
    },
    {
        "id": "pop-I-V-vi-IV",
        "genre_tags": ["pop"],
        "bars": ["I", "V", "vi", "IV"],
        "description": "Four-chord progression (I-V-vi-IV)",
    },
]

# Timeline form: chords held for a number of bars (used by the pipeline)
PROGRESSIONS = [
    {
        "id": "I_IV_V_I",
        "key": "C",
        "genre_tags": ["pop", "country", "blues"],
        "chords": [
            {"degree": "I", "bars": 1},
            {"degree": "IV", "bars": 1},
            {"degree": "V", "bars": 1},
            {"degree": "I", "bars": 1},
        ],
        "description": "Plain cadence, one bar per chord",
    },
    {
        "id": "I_V_vi_IV",
        "key": "G",
        "genre_tags": ["pop"],
        "chords": [
            {"degree": "I", "bars": 1},
            {"degree": "V", "bars": 1},
            {"degree": "VI", "quality": "m", "bars": 1},
            {"degree": "IV", "bars": 1},
        ],
        "description": "Four-chord pop loop",
    },
    {
        "id": "ii_V_I",
        "key": "F",
        "genre_tags": ["jazz"],
        "chords": [
            {"degree": "II", "quality": "m7", "bars": 1},
            {"degree": "V", "quality": "7", "bars": 1},
            {"degree": "I", "quality": "maj7", "bars": 2},
        ],
        "description": "Jazz turnaround resolving for two bars",
    },
    {
        "id": "blues_12bar",
        "key": "A",
        "genre_tags": ["blues"],
        "chords": [
            {"degree": "I", "quality": "7", "bars": 4},
            {"degree": "IV", "quality": "7", "bars": 2},
            {"degree": "I", "quality": "7", "bars": 2},
            {"degree": "V", "quality": "7", "bars": 1},
            {"degree": "IV", "quality": "7", "bars": 1},
            {"degree": "I", "quality": "7", "bars": 1},
            {"degree": "V", "quality": "7", "bars": 1},
        ],
        "description": "12-bar blues with held chords",
    },
]


# =============================================================================
# ATOMIC RULES (bass generator)
# =============================================================================

RULES = [
    # Bass rules for Blues
    {
        "id": "bass-blues-anchor-beat1",
        "part": "bass",
        "genre_tags": ["blues"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "anchor",
        "affects_slot": "targetTone",
        "trigger": "beat1",
        "action": "play root of current chord",
    },
    {
        "id": "bass-blues-preference-beat3",
        "part": "bass",
        "genre_tags": ["blues"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "preference",
        "affects_slot": "targetTone",
        "trigger": "beat3",
        "action": "prefer 5th or root",
        "weight": 0.7,
    },
    {
        "id": "bass-blues-constraint-rhythm",
        "part": "bass",
        "genre_tags": ["blues"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "constraint",
        "affects_slot": "rhythm",
        "trigger": "always",
        "action": "quarter notes only",
    },
    {
        "id": "bass-blues-embellishment-walk",
        "part": "bass",
        "genre_tags": ["blues"],
        "min_level": 2,
        "max_level": UNBOUNDED,
        "role": "embellishment",
        "affects_slot": "motion",
        "trigger": "chord change",
        "action": "allow walking bass line",
        "weight": 0.5,
    },
    # Bass rules for Pop
    {
        "id": "bass-pop-anchor-beat1",
        "part": "bass",
        "genre_tags": ["pop"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "anchor",
        "affects_slot": "targetTone",
        "trigger": "beat1",
        "action": "play root of current chord",
    },
    {
        "id": "bass-pop-preference-beat3",
        "part": "bass",
        "genre_tags": ["pop"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "preference",
        "affects_slot": "targetTone",
        "trigger": "beat3",
        "action": "prefer 5th",
        "weight": 0.8,
    },
    # Lead rules for Blues
    {
        "id": "lead-blues-constraint-scale",
        "part": "lead",
        "genre_tags": ["blues"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "constraint",
        "affects_slot": "targetTone",
        "trigger": "always",
        "action": "use minor pentatonic scale",
    },
    {
        "id": "lead-blues-preference-resolution",
        "part": "lead",
        "genre_tags": ["blues"],
        "min_level": 1,
        "max_level": UNBOUNDED,
        "role": "preference",
        "affects_slot": "targetTone",
        "trigger": "chord change",
        "action": "prefer chord tones",
        "weight": 0.6,
    },
]


# =============================================================================
# RIFFS
# =============================================================================

RIFFS = [
    {
        "id": "chord_root_hold",
        "length_beats": 4,
        "explanation": "Sustain the current chord root for the full bar.",
        "events": [
            {"start_beat": 1, "duration": 4,
             "pitch_ref": {"basis": "currentChord", "offset": 0, "degree_hint": "1"}},
        ],
    },
    {
        "id": "oom_pah_I_V",
        "length_beats": 4,
        "explanation": "Classic oom-pah pattern: root on beat 1, fifth on beat 3.",
        "events": [
            {"start_beat": 1, "duration": 1,
             "pitch_ref": {"basis": "currentChord", "offset": 0, "degree_hint": "1"}},
            {"start_beat": 3, "duration": 1,
             "pitch_ref": {"basis": "currentChord", "offset": 7, "degree_hint": "5"}},
        ],
    },
    {
        "id": "root_pulse",
        "length_beats": 4,
        "explanation": "Root on every beat.",
        "events": [
            {"start_beat": beat, "duration": 1,
             "pitch_ref": {"basis": "chordTone", "offset": 0, "degree_hint": "1"}}
            for beat in (1, 2, 3, 4)
        ],
    },
    {
        "id": "approach_next_root",
        "length_beats": 4,
        "explanation": "Root, third and fifth, then a semitone under the next chord root.",
        "events": [
            {"start_beat": 1, "duration": 1,
             "pitch_ref": {"basis": "chordTone", "offset": 0, "degree_hint": "1"}},
            {"start_beat": 2, "duration": 1,
             "pitch_ref": {"basis": "chordTone", "offset": 0, "degree_hint": "3"}},
            {"start_beat": 3, "duration": 1,
             "pitch_ref": {"basis": "chordTone", "offset": 0, "degree_hint": "5"}},
            {"start_beat": 4, "duration": 1,
             "pitch_ref": {"basis": "nextChord", "offset": -1, "degree_hint": "1"}},
        ],
    },
]


# =============================================================================
# RICH RULES (timeline engine)
# =============================================================================

WALK_PARAMETERS = {
    "target": {
        "type": "enum",
        "values": ["nextChordRoot", "currentChordRoot"],
        "default": "nextChordRoot",
        "description": "Where the walk ends",
    },
    "steps": {
        "type": "integer",
        "min": 1,
        "max": 5,
        "default": 2,
        "description": "Number of intermediate walk steps",
    },
    "direction": {
        "type": "enum",
        "values": ["auto", "up", "down"],
        "default": "auto",
        "description": "Walk direction (auto = shortest)",
    },
    "approachStrategy": {
        "type": "enum",
        "values": ["chromatic", "diatonic", "mixed"],
        "default": "chromatic",
        "description": "How intermediate tones are chosen",
    },
    "register": {
        "type": "enum",
        "values": ["low", "mid", "high"],
        "default": "low",
        "description": "Register of the walk",
    },
    "genreProfile": {
        "type": "enum",
        "values": ["blues", "jazz", "country", "custom"],
        "default": "custom",
        "description": "Stylistic defaults",
    },
}

RICH_RULES = [
    {
        "id": "default_root_hold",
        "name": "Root Hold",
        "description": "Hold the chord root for the whole bar",
        "riff_id": "chord_root_hold",
        "category": "normal",
        "tags": ["bass", "basic", "sustain"],
        "default_register": "low",
    },
    {
        "id": "oom_pah_rule",
        "name": "Oom-Pah",
        "description": "Root on beat 1, fifth on beat 3",
        "riff_id": "oom_pah_I_V",
        "category": "normal",
        "tags": ["bass", "country", "polka"],
        "default_register": "low",
    },
    {
        "id": "root_pulse_rule",
        "name": "Root Pulse",
        "description": "Quarter-note roots",
        "riff_id": "root_pulse",
        "category": "normal",
        "tags": ["bass", "rock", "basic"],
    },
    {
        "id": "approach_rule",
        "name": "Chromatic Approach",
        "description": "Arpeggio ending a semitone below the next chord",
        "riff_id": "approach_next_root",
        "category": "normal",
        "tags": ["bass", "approach"],
        "default_register": "low",
    },
    {
        "id": "walk_to_next_chord",
        "name": "Walk to Next Chord",
        "description": "Stepwise walk from the current chord root into the next chord",
        "riff_id": None,
        "category": "walk",
        "tags": ["bass", "walk", "blues", "jazz", "country"],
        "default_register": "low",
        "parameters": WALK_PARAMETERS,
        "genre_profiles": {
            "blues": {"preferred_approach": "chromatic", "description": "Chromatic passing tones"},
            "jazz": {"preferred_approach": "chromatic", "description": "Chromatic enclosures"},
            "country": {"preferred_approach": "diatonic", "description": "Scale-wise walks"},
            "custom": {"preferred_approach": "mixed", "description": "No stylistic bias"},
        },
        "timeline_template": {
            "length_beats": 5,
            "events": [
                {"beat": 1, "role": "startAnchor", "note_source": "currentChordRoot"},
                {"beat": 2, "role": "walkStep", "step_index": 1},
                {"beat": 3, "role": "walkStep", "step_index": 2},
                {"beat": 4, "role": "approachTone"},
                {"beat": 1, "bar_offset": 1, "role": "targetAnchor", "note_source": "targetChordRoot"},
            ],
        },
        "resolution_rules": [
            "start on the current chord root",
            "land on the target root on the next downbeat",
        ],
    },
]


# =============================================================================
# SCALES AND LICKS
# =============================================================================

SCALES = [
    {"id": "minor-pentatonic", "degrees": ["1", "b3", "4", "5", "b7"]},
    {"id": "major-pentatonic", "degrees": ["1", "2", "3", "5", "6"]},
    {"id": "blues-scale", "degrees": ["1", "b3", "4", "b5", "5", "b7"]},
    {"id": "major", "degrees": ["1", "2", "3", "4", "5", "6", "7"]},
    {"id": "minor", "degrees": ["1", "2", "b3", "4", "5", "b6", "b7"]},
]

LICKS = [
    {
        "id": "blues-l1-lick1",
        "genre_tags": ["blues"],
        "level": 1,
        "notes": [
            {"degree": "1", "octave_offset": 0, "duration": 0.5},
            {"degree": "b3", "octave_offset": 0, "duration": 0.5},
            {"degree": "4", "octave_offset": 0, "duration": 0.5},
            {"degree": "5", "octave_offset": 0, "duration": 0.5},
        ],
        "explanation": "Simple ascending minor pentatonic pattern",
    },
    {
        "id": "blues-l1-lick2",
        "genre_tags": ["blues"],
        "level": 1,
        "notes": [
            {"degree": "5", "octave_offset": 0, "duration": 0.5},
            {"degree": "b7", "octave_offset": 0, "duration": 0.5},
            {"degree": "1", "octave_offset": 1, "duration": 1.0},
        ],
        "explanation": "Descending pattern resolving to octave",
    },
    {
        "id": "blues-l2-lick1",
        "genre_tags": ["blues"],
        "level": 2,
        "notes": [
            {"degree": "1", "octave_offset": 0, "duration": 0.25},
            {"degree": "b3", "octave_offset": 0, "duration": 0.25},
            {"degree": "4", "octave_offset": 0, "duration": 0.25},
            {"degree": "b5", "octave_offset": 0, "duration": 0.25},
            {"degree": "5", "octave_offset": 0, "duration": 0.5},
        ],
        "explanation": "Blues scale run with blue note",
    },
    {
        "id": "pop-l1-lick1",
        "genre_tags": ["pop"],
        "level": 1,
        "notes": [
            {"degree": "1", "octave_offset": 0, "duration": 0.5},
            {"degree": "3", "octave_offset": 0, "duration": 0.5},
            {"degree": "5", "octave_offset": 0, "duration": 1.0},
        ],
        "explanation": "Simple major triad arpeggio",
    },
]


# =============================================================================
# CATALOG
# =============================================================================

@dataclass(frozen=True)
class Catalog:
    """All read-only reference data, validated into schema records."""
    legacy_progressions: Tuple[LegacyProgression, ...] = ()
    progressions: Dict[str, Progression] = field(default_factory=dict)
    rules: Tuple[Rule, ...] = ()
    rich_rules: Dict[str, RichRule] = field(default_factory=dict)
    riffs: Dict[str, Riff] = field(default_factory=dict)
    scales: Tuple[Scale, ...] = ()
    licks: Tuple[Lick, ...] = ()

    def find_legacy_progression(self, progression_id: Optional[str]) -> Optional[LegacyProgression]:
        return find_progression(self.legacy_progressions, progression_id)

    def find_rule(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None


def build_catalog(
    legacy_progressions: List[dict],
    progressions: List[dict],
    rules: List[dict],
    rich_rules: List[dict],
    riffs: List[dict],
    scales: List[dict],
    licks: List[dict],
) -> Catalog:
    """Validate literal catalog data into a Catalog (raises pydantic.ValidationError)."""
    return Catalog(
        legacy_progressions=tuple(LegacyProgression.model_validate(p) for p in legacy_progressions),
        progressions={p["id"]: Progression.model_validate(p) for p in progressions},
        rules=tuple(Rule.model_validate(r) for r in rules),
        rich_rules={r["id"]: RichRule.model_validate(r) for r in rich_rules},
        riffs={r["id"]: Riff.model_validate(r) for r in riffs},
        scales=tuple(Scale.model_validate(s) for s in scales),
        licks=tuple(Lick.model_validate(lick) for lick in licks),
    )


def validate_catalog(catalog: Catalog) -> List[DataConsistencyWarning]:
    """
    Cross-check catalog references.

    Reports duplicate rule ids, normal rules without a known riff, walk
    rules without a timeline template or `custom` profile, and walk
    genreProfile options that have no matching profile.
    """
    problems: List[DataConsistencyWarning] = []

    seen = set()
    for rule in catalog.rules:
        if rule.id in seen:
            problems.append(DataConsistencyWarning(f"Duplicate rule id '{rule.id}'"))
        seen.add(rule.id)

    for rich_rule in catalog.rich_rules.values():
        if not rich_rule.is_walk:
            if not rich_rule.riff_id:
                problems.append(DataConsistencyWarning(f"Rule '{rich_rule.id}' has no riff"))
            elif rich_rule.riff_id not in catalog.riffs:
                problems.append(DataConsistencyWarning(
                    f"Rule '{rich_rule.id}' references unknown riff '{rich_rule.riff_id}'"
                ))
            continue

        if rich_rule.timeline_template is None:
            problems.append(DataConsistencyWarning(f"Walk rule '{rich_rule.id}' has no timeline template"))
        if "custom" not in rich_rule.genre_profiles:
            problems.append(DataConsistencyWarning(f"Walk rule '{rich_rule.id}' has no 'custom' genre profile"))

        profile_spec = rich_rule.parameters.get("genreProfile")
        for profile in (profile_spec.values or ()) if profile_spec else ():
            if profile not in rich_rule.genre_profiles:
                problems.append(DataConsistencyWarning(
                    f"Walk rule '{rich_rule.id}' offers genre profile '{profile}' with no definition"
                ))

    for problem in problems:
        logger.warning("Catalog: %s", problem)
    return problems


@lru_cache(maxsize=1)
def load_default_catalog() -> Catalog:
    """Build and check the bundled catalog once per process."""
    catalog = build_catalog(
        LEGACY_PROGRESSIONS, PROGRESSIONS, RULES, RICH_RULES, RIFFS, SCALES, LICKS
    )
    validate_catalog(catalog)
    return catalog


# =============================================================================
# LOOKUPS
# =============================================================================

def available_genres(progressions) -> List[str]:
    """Sorted unique genre tags across progressions."""
    genres = set()
    for progression in progressions:
        genres.update(progression.genre_tags)
    return sorted(genres)


def progressions_for_genre(progressions, genre: Optional[str]) -> list:
    """Progressions tagged with `genre`; all of them when no genre is given."""
    if not genre:
        return list(progressions)
    return [p for p in progressions if genre in p.genre_tags]


def find_progression(progressions, progression_id: Optional[str]):
    """The progression with a given id, or None."""
    for progression in progressions:
        if progression.id == progression_id:
            return progression
    return None
