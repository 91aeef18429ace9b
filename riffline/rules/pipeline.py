"""
Execution Pipeline - Applied Rules to Note Events

The timeline engine. For every part it:

    1. collects the applied rules bound to that part (or to every part)
    2. resolves each binding to its rule, riff and beat span
    3. orders bindings by slot specificity, most specific first
    4. instantiates riffs (walks are resolved per chord context first)
    5. keeps an event only if no more specific slot already owns its beat

Specificity: bar(4) > chord(3) > transition(2) > lastChord(1) > global(0).
The outcome is independent of the order in which rules were bound.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from riffline.data.catalog import Catalog, load_default_catalog
from riffline.data.schema import (
    BEATS_PER_BAR,
    AppliedRule,
    BarSlot,
    ChordSlot,
    GlobalSlot,
    NoteEvent,
    Part,
    PitchRef,
    Progression,
    RichRule,
    Riff,
    Timeline,
)
from riffline.errors import DataConsistencyWarning
from riffline.logger_config import logger
from riffline.rules.harmony import semitones_to_scale_degree
from riffline.rules.pitch import PitchContext, octave_for_register, resolve_pitch_ref, resolve_register
from riffline.rules.timeline import SlotSpan, build_timeline, slot_span
from riffline.rules.walk import resolve_walk_rule


DEFAULT_OCTAVE_STRATEGY = "nearest"


# =============================================================================
# APPLIED RULE SET
# =============================================================================

class AppliedRuleSet:
    """
    The user's slot bindings, at most one rule per (slot, part).

    Binding a rule to an occupied (slot, part) replaces the previous
    binding. Iteration yields bindings in the order they were made.
    """

    def __init__(self, applied_rules: Iterable[AppliedRule] = ()):
        self._bindings: List[AppliedRule] = []
        for applied_rule in applied_rules:
            self.bind(applied_rule)

    def __iter__(self) -> Iterator[AppliedRule]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def bind(self, applied_rule: AppliedRule) -> Optional[AppliedRule]:
        """Add a binding; returns the binding it replaced, if any."""
        replaced = self.unbind(applied_rule.slot, applied_rule.part_id)
        self._bindings.append(applied_rule)
        return replaced

    def unbind(self, slot, part_id: Optional[str] = None) -> Optional[AppliedRule]:
        for i, existing in enumerate(self._bindings):
            if existing.slot == slot and existing.part_id == part_id:
                return self._bindings.pop(i)
        return None

    def remove_part(self, part_id: str) -> int:
        """Drop every binding owned by a part; returns how many were removed."""
        before = len(self._bindings)
        self._bindings = [r for r in self._bindings if r.part_id != part_id]
        return before - len(self._bindings)

    def for_part(self, part_id: str) -> List[AppliedRule]:
        """Bindings that apply to a part, including those bound to every part."""
        return [r for r in self._bindings if r.part_id is None or r.part_id == part_id]

    def find_for_slot(self, slot, part_id: Optional[str] = None) -> Optional[AppliedRule]:
        for existing in self._bindings:
            if existing.slot == slot and existing.part_id == part_id:
                return existing
        return None

    def covering_binding(self, timeline: Timeline, bar_index: int, part_id: str) -> Optional[AppliedRule]:
        """
        The most specific binding that covers a bar for a part.

        Checks bar, then the bar's chord, then global; a binding owned by
        the part wins over one bound to every part at the same slot.
        """
        if not 0 <= bar_index < len(timeline.bars):
            return None
        bar = timeline.bars[bar_index]
        candidates = [BarSlot(index=bar_index), ChordSlot(index=bar.chord_index), GlobalSlot()]

        for slot in candidates:
            found = self.find_for_slot(slot, part_id) or self.find_for_slot(slot, None)
            if found is not None:
                return found
        return None

    def snapshot(self) -> Tuple[AppliedRule, ...]:
        return tuple(self._bindings)


# =============================================================================
# RESULT CONTAINERS
# =============================================================================

@dataclass
class PartEvents:
    part: Part
    events: List[NoteEvent] = field(default_factory=list)


@dataclass
class PipelineResult:
    """
    Output of execute_pipeline.

    Attributes:
        timeline: Timeline derived from the progression
        note_events: One entry per non-muted part, in part order
        diagnostics: Data-consistency problems met while executing
    """
    timeline: Timeline
    note_events: List[PartEvents] = field(default_factory=list)
    diagnostics: List[DataConsistencyWarning] = field(default_factory=list)

    def events_for(self, part_id: str) -> List[NoteEvent]:
        for part_events in self.note_events:
            if part_events.part.id == part_id:
                return part_events.events
        return []


@dataclass(frozen=True)
class InstantiatedEvent:
    """A riff event placed at an absolute beat, pitch still unresolved."""
    start_beat: float
    duration: float
    pitch_ref: PitchRef
    octave_strategy: str = DEFAULT_OCTAVE_STRATEGY


@dataclass
class _Binding:
    applied_rule: AppliedRule
    rule: RichRule
    riff: Optional[Riff]
    span: SlotSpan


# =============================================================================
# RIFF INSTANTIATION
# =============================================================================

def _as_beat(value: float):
    return int(value) if float(value).is_integer() else value


def instantiate_riff(riff: Riff, start_beat: float) -> List[InstantiatedEvent]:
    """
    Place a riff's events on the timeline.

    Riff beats are 1-based and relative, so an event at relative beat b
    lands on absolute beat start_beat + b - 1.
    """
    return [
        InstantiatedEvent(
            start_beat=_as_beat(start_beat + event.start_beat - 1),
            duration=_as_beat(event.duration),
            pitch_ref=event.pitch_ref,
            octave_strategy=event.octave_strategy or DEFAULT_OCTAVE_STRATEGY,
        )
        for event in riff.events
    ]


def resolve_note_event(
    event: InstantiatedEvent,
    context: PitchContext,
    register: str,
    part: Part,
) -> NoteEvent:
    semitones = resolve_pitch_ref(event.pitch_ref, context)
    return NoteEvent(
        start_beat=event.start_beat,
        duration=event.duration,
        degree=semitones_to_scale_degree(semitones),
        octave=octave_for_register(register),
        part_id=part.id,
        part_name=part.name,
    )


# =============================================================================
# PIPELINE
# =============================================================================

def _warn(diagnostics: List[DataConsistencyWarning], message: str) -> None:
    if any(str(d) == message for d in diagnostics):
        return
    logger.warning("Pipeline: %s", message)
    diagnostics.append(DataConsistencyWarning(message))


def _collect_bindings(
    part: Part,
    applied_rules: Iterable[AppliedRule],
    timeline: Timeline,
    catalog: Catalog,
    diagnostics: List[DataConsistencyWarning],
) -> List[_Binding]:
    bindings = []

    for applied_rule in applied_rules:
        if applied_rule.part_id is not None and applied_rule.part_id != part.id:
            continue

        rule = catalog.rich_rules.get(applied_rule.rule_id)
        if rule is None:
            _warn(diagnostics, f"Unknown rule '{applied_rule.rule_id}' skipped")
            continue

        riff = None
        if rule.is_walk:
            template = rule.timeline_template
            length = template.length_beats if template else BEATS_PER_BAR
        else:
            riff = catalog.riffs.get(rule.riff_id or "")
            if riff is None:
                _warn(diagnostics, f"Rule '{rule.id}' references unknown riff '{rule.riff_id}', skipped")
                continue
            length = riff.length_beats

        span = slot_span(applied_rule.slot, timeline, length)
        if span is None:
            _warn(diagnostics, f"Rule '{rule.id}' is bound to a {applied_rule.slot.type} slot outside the timeline")
            continue

        bindings.append(_Binding(applied_rule, rule, riff, span))

    # Stable: equal (specificity, start) keep binding order
    bindings.sort(key=lambda b: (-b.span.specificity, b.span.start_beat))
    return bindings


def _riff_for_context(binding: _Binding, context: PitchContext) -> Riff:
    if binding.rule.is_walk:
        return resolve_walk_rule(binding.rule, binding.applied_rule.parameters, context)
    return binding.riff


def _place(
    riff: Riff,
    start_beat: int,
    fallback_chord_index: int,
    specificity: int,
    register: str,
    part: Part,
    timeline: Timeline,
    coverage: Dict[float, int],
    events: List[NoteEvent],
) -> None:
    for placed in instantiate_riff(riff, start_beat):
        owner = coverage.get(placed.start_beat)
        if owner is not None and owner > specificity:
            continue
        coverage[placed.start_beat] = specificity

        chord_index = timeline.chord_index_at(placed.start_beat)
        if chord_index is None:
            chord_index = fallback_chord_index
        context = PitchContext(
            timeline=timeline,
            current_chord_index=chord_index,
            current_beat=placed.start_beat,
            next_chord_index=timeline.next_chord_index(chord_index),
        )
        events.append(resolve_note_event(placed, context, register, part))


def _run_part(
    part: Part,
    applied_rules: Iterable[AppliedRule],
    timeline: Timeline,
    catalog: Catalog,
    diagnostics: List[DataConsistencyWarning],
) -> List[NoteEvent]:
    coverage: Dict[float, int] = {}
    events: List[NoteEvent] = []

    for binding in _collect_bindings(part, applied_rules, timeline, catalog, diagnostics):
        register = resolve_register(binding.applied_rule, part, binding.rule)
        specificity = binding.span.specificity

        if binding.applied_rule.slot.type == "global":
            # Global rules repeat once per bar, each bar in its own chord context
            for bar in timeline.bars:
                context = PitchContext(timeline, bar.chord_index, bar.start_beat,
                                       timeline.next_chord_index(bar.chord_index))
                riff = _riff_for_context(binding, context)
                _place(riff, bar.start_beat, bar.chord_index, specificity, register,
                       part, timeline, coverage, events)
            continue

        span = binding.span
        next_index = span.next_chord_index
        if next_index >= len(timeline.chord_boundaries):
            next_index = span.current_chord_index
        context = PitchContext(timeline, span.current_chord_index, span.start_beat, next_index)
        riff = _riff_for_context(binding, context)
        _place(riff, span.start_beat, span.current_chord_index, specificity, register,
               part, timeline, coverage, events)

    events.sort(key=lambda e: e.start_beat)
    return events


def execute_pipeline(
    progression: Progression,
    parts: Iterable[Part],
    applied_rules: Iterable[AppliedRule],
    catalog: Optional[Catalog] = None,
) -> PipelineResult:
    """
    Execute applied rules against a progression's timeline.

    Args:
        progression: Timeline-form progression
        parts: Parts to generate for; muted parts are skipped
        applied_rules: Slot bindings (an AppliedRuleSet or any iterable);
            a later binding on the same (slot, part) replaces an earlier one
        catalog: Rich rules and riffs; the bundled catalog when omitted

    Returns:
        PipelineResult with per-part note events sorted by start beat.
        Unknown rule or riff ids are skipped and reported in diagnostics.

    Example:
        >>> result = execute_pipeline(progression, [Part(id="bass", name="Bass")],
        ...                           [AppliedRule(rule_id="default_root_hold", slot=GlobalSlot())])
        >>> [(e.start_beat, e.degree) for e in result.events_for("bass")]
        [(1, 'I'), (5, 'IV'), (9, 'V'), (13, 'I')]
    """
    catalog = catalog or load_default_catalog()
    applied_rules = AppliedRuleSet(applied_rules).snapshot()
    timeline = build_timeline(progression)
    result = PipelineResult(timeline=timeline)

    for part in parts:
        if part.muted:
            logger.debug("Part %s is muted, skipping", part.id)
            continue
        events = _run_part(part, applied_rules, timeline, catalog, result.diagnostics)
        logger.debug("Part %s: %d note events", part.id, len(events))
        result.note_events.append(PartEvents(part=part, events=events))

    return result
