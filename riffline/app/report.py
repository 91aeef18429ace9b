"""
Text and JSON Reports
=====================

Human-readable renderings of engine output for the console, plus JSON
renderings for scripting. Every formatter returns a string; printing is
left to the caller.
"""

import json
from typing import Any, Dict, Iterable, List

from riffline.data.schema import Rule
from riffline.rules.bass_generator import BassLineResult
from riffline.rules.lead_preview import LeadPreview
from riffline.rules.pipeline import PipelineResult
from riffline.rules.timeline import slot_span


RULE_WIDTH = 60


def _num(value) -> str:
    """Render 4.0 as "4" and 0.5 as "0.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _banner(title: str) -> List[str]:
    return ["=" * RULE_WIDTH, title, "=" * RULE_WIDTH, ""]


def _rule_line(rule: Rule) -> str:
    return f"  - {rule.id} ({rule.role.value}): {rule.action}"


# =============================================================================
# PIPELINE
# =============================================================================

def format_note_events_as_text(result: PipelineResult) -> str:
    """
    Timeline structure followed by each part's resolved events.

    Example output:
        Bar 1 (beats 1-4): I
        ...
        Part: Bass (bass)
        ------------------------------------------------------------
          Beat 1 (Bar 1, Beat 1): I (octave 2) [duration: 4 beats]
    """
    timeline = result.timeline
    lines = _banner("RESOLVED NOTE EVENTS")
    lines.append(f"Key: {timeline.key}")
    lines.append(f"Total Bars: {len(timeline.bars)}")
    lines.append("")

    lines.append("Timeline Structure:")
    lines.append("-" * RULE_WIDTH)
    for bar in timeline.bars:
        lines.append(f"Bar {bar.index + 1} (beats {bar.start_beat}-{bar.end_beat}): {bar.chord_degree}")
    lines.append("")

    for part_events in result.note_events:
        lines.append("")
        lines.append(f"Part: {part_events.part.name} ({part_events.part.id})")
        lines.append("-" * RULE_WIDTH)

        if not part_events.events:
            lines.append("  (no events)")
            continue

        for event in part_events.events:
            plural = "" if event.duration == 1 else "s"
            lines.append(
                f"  Beat {_num(event.start_beat)} (Bar {event.bar_number}, Beat {_num(event.beat_in_bar)}): "
                f"{event.degree} (octave {event.octave}) "
                f"[duration: {_num(event.duration)} beat{plural}]"
            )

    if result.diagnostics:
        lines.append("")
        lines.append("Diagnostics:")
        for diagnostic in result.diagnostics:
            lines.append(f"  ! {diagnostic}")

    lines.append("")
    lines.append("=" * RULE_WIDTH)
    return "\n".join(lines)


def format_slots_as_text(slots: Iterable, timeline) -> str:
    """One line per bindable slot with its specificity and beat span."""
    lines = ["Rule slots:"]
    for slot in slots:
        span = slot_span(slot, timeline)
        if slot.type in ("bar", "chord"):
            label = f"{slot.type} {slot.index}"
        elif slot.type == "transition":
            label = f"transition {slot.from_}->{slot.to}"
        else:
            label = slot.type
        beats = f"beats {span.start_beat}-{span.end_beat}" if span else "outside timeline"
        lines.append(f"  {label:<18} specificity {slot.specificity}  {beats}")
    return "\n".join(lines)


# =============================================================================
# BASS GENERATOR
# =============================================================================

def format_bass_line_as_text(result: BassLineResult) -> str:
    """One "Bar N Beat K: DEGREE" line per note, then the rules behind each beat."""
    if not result.is_valid:
        return "\n".join(["Cannot generate bass line:"] + [f"  - {e}" for e in result.validation.errors])

    lines = [f"Bar {event.bar} Beat {event.beat}: {event.degree}" for event in result.note_events]
    if not lines:
        lines.append("No notes generated.")

    if result.applied_rules:
        lines.append("")
        lines.append("Applied rules:")
        for trace in result.applied_rules:
            lines.append(f"  Bar {trace.bar} Beat {trace.beat}:")
            for rule in trace.rules:
                lines.append(f"    - {rule.id} ({rule.role.value})")

    if result.validation.warnings:
        lines.append("")
        lines.append("Warnings:")
        lines.extend(f"  ! {warning}" for warning in result.validation.warnings)

    return "\n".join(lines)


# =============================================================================
# LEAD PREVIEW
# =============================================================================

def format_lead_preview_as_text(preview: LeadPreview) -> str:
    if not preview.validation.is_valid:
        return "\n".join(["Cannot preview lead line:"] + [f"  - {e}" for e in preview.validation.errors])

    lines = [f"Found {len(preview.rules)} applicable lead rules:"]
    lines.extend(_rule_line(rule) for rule in preview.rules)

    lines.append(f"Found {len(preview.licks)} applicable licks:")
    for lick in preview.licks:
        lines.append(f"  - {lick.id}: {lick.explanation}")
        lines.append(f"    Notes: {', '.join(note.degree for note in lick.notes)}")

    if preview.scales:
        lines.append("Scales:")
        for scale in preview.scales:
            lines.append(f"  - {scale.id}: {' '.join(scale.degrees)}")

    return "\n".join(lines)


# =============================================================================
# JSON
# =============================================================================

def pipeline_result_to_dict(result: PipelineResult) -> Dict[str, Any]:
    return {
        "timeline": result.timeline.model_dump(mode="json", by_alias=True),
        "noteEvents": [
            {
                "part": part_events.part.model_dump(mode="json", by_alias=True),
                "events": [e.model_dump(mode="json", by_alias=True) for e in part_events.events],
            }
            for part_events in result.note_events
        ],
        "diagnostics": [str(d) for d in result.diagnostics],
    }


def bass_line_to_dict(result: BassLineResult) -> Dict[str, Any]:
    return {
        "isValid": result.is_valid,
        "errors": result.validation.errors,
        "warnings": result.validation.warnings,
        "noteEvents": [e.model_dump(mode="json", by_alias=True) for e in result.note_events],
        "appliedRules": [
            {"bar": t.bar, "beat": t.beat, "rules": [rule.id for rule in t.rules]}
            for t in result.applied_rules
        ],
    }


def to_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2)

