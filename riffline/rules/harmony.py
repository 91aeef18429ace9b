"""
Harmony Module - Scale Degrees, Semitones and Chord Symbols

This module encodes the small amount of music theory the engine needs.
It can:
    1. Convert Roman-numeral scale degrees to semitone offsets from the key root
    2. Convert semitone offsets back to degree labels, annotating chromatic notes
       with the nearest degree and a signed offset (e.g. "IV+1")
    3. Snap chromatic semitones onto the major scale
    4. Parse chord symbols such as "I7", "vi" or "bVII" into degree and quality

Every pitch is expressed relative to the key root (I = 0 semitones); the
engine never needs absolute note names.
"""

import re
from typing import List, Optional, Tuple


# =============================================================================
# CONSTANTS: The Building Blocks of Music Theory
# =============================================================================

# Major-scale degrees as semitone offsets from the key root, in ascending order
DEGREE_TO_SEMITONES = {
    "I": 0,
    "II": 2,
    "III": 4,
    "IV": 5,
    "V": 7,
    "VI": 9,
    "VII": 11,
}

SEMITONES_TO_DEGREE = {semis: degree for degree, semis in DEGREE_TO_SEMITONES.items()}

MAJOR_SCALE_SEMITONES = list(DEGREE_TO_SEMITONES.values())

ROMAN_TO_ARABIC = {
    "I": "1",
    "II": "2",
    "III": "3",
    "IV": "4",
    "V": "5",
    "VI": "6",
    "VII": "7",
}

# Diatonic fifth above each root degree (the fifth of IV wraps to the octave)
FIFTH_OF_DEGREE = {
    "1": "5",
    "2": "6",
    "3": "7",
    "4": "1",
    "5": "2",
    "6": "3",
    "7": "4",
}

ACCIDENTALS = {"b": -1, "#": 1}

# Longest numerals first so "VII" is not read as "V" + "II"
CHORD_SYMBOL_REGEX = re.compile(r"^([b#]?)(VII|VI|IV|V|III|II|I)(.*)$", re.IGNORECASE)

DEGREE_LABEL_REGEX = re.compile(r"^([b#]?)(VII|VI|IV|V|III|II|I)([+-]\d+)?$")


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def circular_distance(a: int, b: int) -> int:
    """Shortest distance between two pitch classes (0-6)."""
    distance = abs(a - b) % 12
    return min(distance, 12 - distance)


def degree_to_semitones(degree: str) -> int:
    """
    Convert a degree label to a semitone offset in [0, 11].

    Accepts the seven major-scale numerals, an optional accidental prefix
    ("bVII") and the chromatic annotations produced by
    `semitones_to_scale_degree` ("IV+1"). Anything else maps to 0.

    Examples:
        >>> degree_to_semitones("V")
        7
        >>> degree_to_semitones("IV+1")
        6
        >>> degree_to_semitones("?")
        0
    """
    if not degree:
        return 0
    if degree in DEGREE_TO_SEMITONES:
        return DEGREE_TO_SEMITONES[degree]

    match = DEGREE_LABEL_REGEX.match(degree)
    if not match:
        return 0

    accidental, numeral, offset = match.groups()
    semitones = DEGREE_TO_SEMITONES[numeral] + ACCIDENTALS.get(accidental, 0)
    if offset:
        semitones += int(offset)
    return semitones % 12


def semitones_to_scale_degree(semitones: int) -> str:
    """
    Convert a semitone offset to a degree label.

    Scale tones return their numeral. Chromatic tones return the nearest
    scale degree (by circular distance, ties to the lower table entry)
    followed by the signed offset, normalised to (-6, 6].

    Examples:
        >>> semitones_to_scale_degree(7)
        'V'
        >>> semitones_to_scale_degree(6)
        'IV+1'
    """
    normalized = semitones % 12

    if normalized in SEMITONES_TO_DEGREE:
        return SEMITONES_TO_DEGREE[normalized]

    nearest_degree = "I"
    min_distance = 12
    for degree, semis in DEGREE_TO_SEMITONES.items():
        distance = circular_distance(normalized, semis)
        if distance < min_distance:
            min_distance = distance
            nearest_degree = degree

    offset = normalized - DEGREE_TO_SEMITONES[nearest_degree]
    if offset > 6:
        offset -= 12
    elif offset <= -6:
        offset += 12

    if offset == 0:
        return nearest_degree
    if offset > 0:
        return f"{nearest_degree}+{offset}"
    return f"{nearest_degree}{offset}"


def snap_to_scale(semitones: int) -> int:
    """Snap a semitone offset to the nearest major-scale tone (ties go low)."""
    normalized = semitones % 12
    nearest = 0
    min_distance = 12
    for scale_tone in MAJOR_SCALE_SEMITONES:
        distance = circular_distance(normalized, scale_tone)
        if distance < min_distance:
            min_distance = distance
            nearest = scale_tone
    return nearest


def is_roman_degree(label: Optional[str]) -> bool:
    """True for key-degree labels such as "IV", "bVII" or "V-1"."""
    return bool(label) and DEGREE_LABEL_REGEX.match(label) is not None


# =============================================================================
# CHORD SYMBOLS
# =============================================================================

def parse_chord_symbol(symbol: str) -> Optional[Tuple[str, str]]:
    """
    Split a Roman-numeral chord symbol into (degree, quality).

    Lower-case numerals mean a minor chord, so "vi" becomes ("VI", "m")
    and "ii7" becomes ("II", "m7"). Returns None for symbols without a
    recognizable root.

    Examples:
        >>> parse_chord_symbol("I7")
        ('I', '7')
        >>> parse_chord_symbol("bVII")
        ('bVII', '')
        >>> parse_chord_symbol("X") is None
        True
    """
    if not symbol:
        return None
    match = CHORD_SYMBOL_REGEX.match(symbol.strip())
    if not match:
        return None

    accidental, numeral, suffix = match.groups()
    quality = suffix
    if numeral.islower() and not suffix.startswith(("m", "dim", "°")):
        quality = "m" + suffix
    return accidental + numeral.upper(), quality


def chord_symbol_to_root_degree(symbol: str) -> str:
    """Arabic root degree ("1".."7") of a chord symbol, "1" when rootless."""
    parsed = parse_chord_symbol(symbol)
    if parsed is None:
        return "1"
    numeral = parsed[0].lstrip("b#")
    return ROMAN_TO_ARABIC.get(numeral, "1")


def fifth_of_degree(root_degree: str) -> str:
    """Arabic degree a diatonic fifth above `root_degree`."""
    return FIFTH_OF_DEGREE.get(root_degree, "5")


def rootless_symbols(symbols: List[str]) -> List[str]:
    """Chord symbols that do not start with a Roman numeral."""
    return [symbol for symbol in symbols if parse_chord_symbol(symbol) is None]
