"""
Rules Subpackage - Note-Sequence Generation

Two engines share the harmony helpers:
    - bass_generator.py: Simple engine (atomic rules, one note per beat)
    - pipeline.py: Timeline engine (riffs and walks bound to slots)

Supporting modules:
    - harmony.py: Degree/semitone arithmetic and chord-symbol parsing
    - timeline.py: Progression to bars, chord boundaries and slots
    - rule_engine.py: Rule filtering and role partitioning
    - pitch.py: PitchRef and register resolution
    - walk.py: Parametric walk resolver
    - lead_preview.py: Lick-based lead line preview
    - validation.py: Selection checks and diagnostic types

Usage:
    from riffline.rules import execute_pipeline, generate_bass_line
"""

from riffline.rules.bass_generator import generate_bass_line, BassLineResult
from riffline.rules.pipeline import execute_pipeline, AppliedRuleSet, PipelineResult
from riffline.rules.timeline import build_timeline, enumerate_slots
from riffline.rules.validation import ValidationResult, DataConsistencyWarning
