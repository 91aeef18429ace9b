"""
Lead Line Preview

Lead generation is not built yet; this gathers what it will work from:
the lead rules active for the selection, the licks written for the
selected genre and level, and the scales named by constraint rules.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from riffline.data.schema import Lick, LegacyProgression, Rule, RuleRole, Scale, Selection
from riffline.logger_config import logger
from riffline.rules.rule_engine import get_active_rules
from riffline.rules.validation import ValidationResult, validate_selection


@dataclass
class LeadPreview:
    rules: List[Rule] = field(default_factory=list)
    licks: List[Lick] = field(default_factory=list)
    scales: List[Scale] = field(default_factory=list)
    validation: ValidationResult = field(default_factory=ValidationResult)


def applicable_licks(licks: Iterable[Lick], genre: Optional[str], level: Optional[int]) -> List[Lick]:
    """Licks tagged with the genre and written for exactly this level."""
    return [lick for lick in licks if genre in lick.genre_tags and lick.level == level]


def scales_for_rules(rules: Iterable[Rule], scales: Iterable[Scale]) -> List[Scale]:
    """
    Scales whose name (id with hyphens as spaces) appears in a constraint's action.

    A name that is part of a longer matched name is dropped, so "use minor
    pentatonic scale" yields minor-pentatonic and not minor.
    """
    constraints = [rule for rule in rules if rule.role == RuleRole.CONSTRAINT]
    matched = [
        scale for scale in scales
        if any(scale.id.replace("-", " ") in rule.action for rule in constraints)
    ]
    names = [scale.id.replace("-", " ") for scale in matched]
    return [
        scale for scale, name in zip(matched, names)
        if not any(name != other and name in other for other in names)
    ]


def preview_lead_line(
    selection: Selection,
    progression: Optional[LegacyProgression],
    rules: List[Rule],
    licks: Iterable[Lick],
    scales: Iterable[Scale] = (),
) -> LeadPreview:
    """
    Collect the lead rules, licks and scales a lead line would use.

    The selection's part is forced to "lead" for rule filtering.
    """
    validation = validate_selection(selection, progression)
    if not validation.is_valid:
        return LeadPreview(validation=validation)

    lead_selection = selection.model_copy(update={"part": "lead"})
    active = get_active_rules(lead_selection, rules)
    preview = LeadPreview(
        rules=active,
        licks=applicable_licks(licks, selection.genre, selection.level),
        scales=scales_for_rules(active, scales),
        validation=validation,
    )

    logger.info("Lead preview: %d rules, %d licks, %d scales",
                len(preview.rules), len(preview.licks), len(preview.scales))
    return preview
