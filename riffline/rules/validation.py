"""
Validation - Selection Checks and Diagnostic Types

Three kinds of problems can come up during generation:

    ValidationError         The request cannot be generated (missing choice,
                            rootless chord, no rules enabled). Reported via a
                            ValidationResult; generation does not run.
    DataConsistencyWarning  The catalog or bindings are inconsistent (anchor
                            conflicts, unknown rule/riff ids). Logged and
                            collected; generation continues with a fallback.
    Resolution fallback     A pitch/register/parameter cannot be resolved.
                            Silently degrades to a documented default.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from riffline.data.schema import LegacyProgression, Selection
from riffline.errors import DataConsistencyWarning  # noqa: F401
from riffline.rules.harmony import rootless_symbols


@dataclass
class ValidationResult:
    """
    Container for validation results with detailed error information.

    Attributes:
        is_valid: True if all checks passed, False otherwise
        errors: List of human-readable reasons the request was rejected
        warnings: List of non-critical issues (output still usable)

    Example:
        result = validate_selection(selection, progression)
        if not result.is_valid:
            print(f"Validation failed: {result.errors}")
    """
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def __str__(self) -> str:
        lines = ["VALID" if self.is_valid else "INVALID"]

        if self.errors:
            lines.append("  Errors:")
            for err in self.errors:
                lines.append(f"    - {err}")

        if self.warnings:
            lines.append("  Warnings:")
            for warn in self.warnings:
                lines.append(f"    - {warn}")

        return "\n".join(lines)


def validate_selection(
    selection: Selection,
    progression: Optional[LegacyProgression],
) -> ValidationResult:
    """
    Check that the user has made every choice generation needs.

    Checks, in order: genre, level, progression, root string, and that
    every chord symbol of the progression has a Roman-numeral root.
    """
    result = ValidationResult()

    if not selection.genre:
        result.add_error("Please select a genre")
    if selection.level is None:
        result.add_error("Please select a level")
    if not selection.progression_id or progression is None:
        result.add_error("Please select a chord progression")
    elif progression.id != selection.progression_id:
        result.add_error(
            f"Selected progression '{selection.progression_id}' does not match '{progression.id}'"
        )
    if selection.root_string is None:
        result.add_error("Please select a root string")

    if progression is not None:
        for symbol in rootless_symbols(list(progression.bars)):
            result.add_error(f"Chord '{symbol}' has no recognizable root")

    return result
