"""
Command Line Interface for Riffline
===================================

Usage Examples:
    # Bass line for the 12-bar blues at level 1
    riffline bass --genre blues --level 1 --progression blues-12bar --root-string 6

    # Same, reproducible, as JSON
    riffline bass --genre blues --level 1 --progression blues-12bar --root-string 6 --seed 3 --json

    # Timeline engine with a session file (parts + applied rules)
    riffline pipeline --config session.yaml

    # Timeline engine with a rule bound globally to every part
    riffline pipeline --progression ii_V_I --rule oom_pah_rule

    # Lead preview, rule slots, catalog listing
    riffline lead --genre blues --level 1 --progression blues-8bar --root-string 5
    riffline slots --progression blues_12bar
    riffline catalog

    # Show help
    riffline --help
"""

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from riffline.app.report import (
    bass_line_to_dict,
    format_bass_line_as_text,
    format_lead_preview_as_text,
    format_note_events_as_text,
    format_slots_as_text,
    pipeline_result_to_dict,
    to_json,
)
from riffline.app.session import SessionConfig, SessionConfigError, load_session_config
from riffline.data.catalog import Catalog, load_default_catalog, validate_catalog
from riffline.data.schema import AppliedRule, GlobalSlot, Progression
from riffline.logger_config import logger, set_verbose
from riffline.rules.bass_generator import generate_bass_line
from riffline.rules.lead_preview import preview_lead_line
from riffline.rules.pipeline import AppliedRuleSet, execute_pipeline
from riffline.rules.timeline import build_timeline, enumerate_slots, progression_from_legacy


# =============================================================================
# PART 1: ARGUMENT PARSER SETUP
# =============================================================================

def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        help="YAML session file (selection, seed, enabled rules, parts, applied rules)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON (useful for scripting)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging"
    )


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--genre", type=str, help="Genre, e.g. blues or pop")
    parser.add_argument("--level", type=int, help="Skill level (1 or higher)")
    parser.add_argument("--progression", type=str, help="Progression id")
    parser.add_argument("--root-string", type=int, choices=range(1, 7), help="Root string (1-6)")
    parser.add_argument(
        "--randomness",
        type=int,
        help="Chance (0-100) of a uniform pick instead of a weighted one"
    )
    parser.add_argument("--seed", type=int, help="Seed for reproducible output")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser object
    """
    parser = argparse.ArgumentParser(
        prog="riffline",
        description="Rule-driven bass and lead line generator for chord progressions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    bass = subparsers.add_parser("bass", help="Generate a bass line from the atomic rule catalog")
    _add_common_arguments(bass)
    _add_selection_arguments(bass)

    pipeline = subparsers.add_parser("pipeline", help="Run the timeline engine over applied rules")
    _add_common_arguments(pipeline)
    pipeline.add_argument("--progression", type=str, help="Timeline or legacy progression id")
    pipeline.add_argument(
        "--rule",
        action="append",
        default=[],
        metavar="RULE_ID",
        help="Bind a rich rule to the global slot for every part (repeatable)"
    )

    lead = subparsers.add_parser("lead", help="Preview the rules and licks a lead line would use")
    _add_common_arguments(lead)
    _add_selection_arguments(lead)

    slots = subparsers.add_parser("slots", help="List the rule slots of a progression")
    _add_common_arguments(slots)
    slots.add_argument("--progression", type=str, help="Timeline or legacy progression id")

    catalog = subparsers.add_parser("catalog", help="List progressions and rules, check the catalog")
    _add_common_arguments(catalog)
    catalog.add_argument("--genre", type=str, help="Only progressions tagged with this genre")

    return parser


# =============================================================================
# PART 2: SESSION ASSEMBLY
# =============================================================================

SELECTION_FLAGS = {
    "genre": "genre",
    "level": "level",
    "progression": "progression_id",
    "root_string": "root_string",
    "randomness": "randomness",
}


def build_session(args: argparse.Namespace) -> SessionConfig:
    """Session from --config (or defaults) with command-line flags layered on top."""
    session = load_session_config(args.config) if args.config else SessionConfig()

    updates = {
        field: getattr(args, flag)
        for flag, field in SELECTION_FLAGS.items()
        if getattr(args, flag, None) is not None
    }
    if updates:
        try:
            selection = session.selection.model_validate(
                {**session.selection.model_dump(), **updates}
            )
        except ValidationError as e:
            raise SessionConfigError(f"Invalid selection:\n{e}") from e
        session = session.model_copy(update={"selection": selection})

    if getattr(args, "seed", None) is not None:
        session = session.model_copy(update={"seed": args.seed})

    return session


def resolve_progression(catalog: Catalog, progression_id: str) -> Optional[Progression]:
    """Timeline progression by id, falling back to a converted legacy progression."""
    if progression_id in catalog.progressions:
        return catalog.progressions[progression_id]
    legacy = catalog.find_legacy_progression(progression_id)
    if legacy is not None:
        return progression_from_legacy(legacy)
    return None


# =============================================================================
# PART 3: COMMANDS
# =============================================================================

def run_bass(args: argparse.Namespace, session: SessionConfig, catalog: Catalog) -> int:
    selection = session.selection
    progression = catalog.find_legacy_progression(selection.progression_id)
    rules = session.enabled_rule_list(catalog)

    result = generate_bass_line(selection, progression, rules, rng=session.make_rng())

    if args.json:
        print(to_json(bass_line_to_dict(result)))
    else:
        print(format_bass_line_as_text(result))
    return 0 if result.is_valid else 1


def run_pipeline(args: argparse.Namespace, session: SessionConfig, catalog: Catalog) -> int:
    progression_id = args.progression or session.progression
    progression = resolve_progression(catalog, progression_id)
    if progression is None:
        print(f"Unknown progression '{progression_id}'")
        return 1

    applied = AppliedRuleSet(session.applied_rules)
    for rule_id in args.rule:
        applied.bind(AppliedRule(rule_id=rule_id, slot=GlobalSlot()))

    result = execute_pipeline(progression, session.parts, applied, catalog)

    if args.json:
        print(to_json(pipeline_result_to_dict(result)))
    else:
        print(format_note_events_as_text(result))
    return 0


def run_lead(args: argparse.Namespace, session: SessionConfig, catalog: Catalog) -> int:
    selection = session.selection
    progression = catalog.find_legacy_progression(selection.progression_id)
    preview = preview_lead_line(
        selection, progression, session.enabled_rule_list(catalog), catalog.licks, catalog.scales
    )

    if args.json:
        print(to_json({
            "isValid": preview.validation.is_valid,
            "errors": preview.validation.errors,
            "rules": [rule.id for rule in preview.rules],
            "licks": [lick.model_dump(mode="json", by_alias=True) for lick in preview.licks],
            "scales": [scale.id for scale in preview.scales],
        }))
    else:
        print(format_lead_preview_as_text(preview))
    return 0 if preview.validation.is_valid else 1


def run_slots(args: argparse.Namespace, session: SessionConfig, catalog: Catalog) -> int:
    progression_id = args.progression or session.progression
    progression = resolve_progression(catalog, progression_id)
    if progression is None:
        print(f"Unknown progression '{progression_id}'")
        return 1

    timeline = build_timeline(progression)
    slots = enumerate_slots(timeline)

    if args.json:
        print(to_json({"slots": [slot.model_dump(mode="json", by_alias=True) for slot in slots]}))
    else:
        print(format_slots_as_text(slots, timeline))
    return 0


def run_catalog(args: argparse.Namespace, session: SessionConfig, catalog: Catalog) -> int:
    problems = validate_catalog(catalog)
    genre = args.genre

    legacy = [p for p in catalog.legacy_progressions if not genre or genre in p.genre_tags]
    timeline_form = [p for p in catalog.progressions.values() if not genre or genre in p.genre_tags]

    if args.json:
        print(to_json({
            "legacyProgressions": [p.id for p in legacy],
            "progressions": [p.id for p in timeline_form],
            "rules": [rule.id for rule in catalog.rules],
            "richRules": list(catalog.rich_rules),
            "problems": [str(p) for p in problems],
        }))
        return 0

    print("Progressions (one chord per bar):")
    for p in legacy:
        print(f"  {p.id:<16} {' '.join(p.bars)}")
    print("Progressions (timeline):")
    for p in timeline_form:
        chords = " ".join(f"{c.degree}{c.quality or ''}x{c.bars_held}" for c in p.chords)
        print(f"  {p.id:<16} key {p.key}: {chords}")
    print("Rules:")
    for rule in catalog.rules:
        print(f"  {rule.id} ({rule.role.value}, {rule.part}): {rule.action}")
    print("Rich rules:")
    for rich_rule in catalog.rich_rules.values():
        print(f"  {rich_rule.id} [{rich_rule.category}]: {rich_rule.description}")
    print(f"Catalog check: {len(problems)} problem(s)")
    for problem in problems:
        print(f"  ! {problem}")
    return 0


COMMANDS = {
    "bass": run_bass,
    "pipeline": run_pipeline,
    "lead": run_lead,
    "slots": run_slots,
    "catalog": run_catalog,
}


# =============================================================================
# PART 4: MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Process exit code: 0 on success, 1 when the request was rejected
        or the session file is invalid, 2 when no command was given
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    set_verbose(args.verbose)

    try:
        session = build_session(args)
    except SessionConfigError as e:
        logger.error("%s", e)
        print(f"Error: {e}")
        return 1

    return COMMANDS[args.command](args, session, load_default_catalog())


# =============================================================================
# SCRIPT EXECUTION
# =============================================================================

if __name__ == "__main__":
    sys.exit(main())
