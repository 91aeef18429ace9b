"""
Session Configuration
=====================

The explicit per-call state a generation run needs: the user's
selection, which atomic rules are enabled, the parts and their slot
bindings, and the random seed. Nothing here is global; callers build a
SessionConfig (directly or from YAML) and pass its pieces to the engine.

Example YAML:

    selection:
      genre: blues
      level: 1
      progression_id: blues-12bar
      root_string: 6
      randomness: 30
    seed: 7
    enabled_rules: [bass-blues-anchor-beat1]
    progression: I_IV_V_I
    parts:
      - {id: bass, name: Bass, default_register: low}
    applied_rules:
      - rule_id: default_root_hold
        slot: {type: global}
      - rule_id: walk_to_next_chord
        slot: {type: transition, from: 0, to: 1}
        part_id: bass
        parameters: {steps: 2, direction: up}
"""

import random
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from riffline.data.catalog import Catalog
from riffline.data.schema import AppliedRule, Part, Rule, Selection
from riffline.errors import RifflineError
from riffline.logger_config import logger


DEFAULT_PROGRESSION = "I_IV_V_I"


def default_parts() -> List[Part]:
    return [
        Part(id="bass", name="Bass", default_register="low"),
        Part(id="rhythm", name="Rhythm", default_register="mid"),
    ]


class SessionConfigError(RifflineError):
    """A session file could not be read or does not describe a valid session."""


class SessionConfig(BaseModel):
    """
    Everything one generation call depends on.

    Attributes:
        selection: Genre, level, progression, root string, randomness, part
        seed: Seed for the preference random source; None = unseeded
        enabled_rules: Enabled atomic rule ids; None = all, [] = none
        progression: Timeline-form progression id used by the pipeline
        parts: Parts the pipeline generates for
        applied_rules: Slot bindings of rich rules
    """
    model_config = ConfigDict(populate_by_name=True)

    selection: Selection = Field(default_factory=Selection)
    seed: Optional[int] = None
    enabled_rules: Optional[List[str]] = None
    progression: str = DEFAULT_PROGRESSION
    parts: List[Part] = Field(default_factory=default_parts)
    applied_rules: List[AppliedRule] = Field(default_factory=list)

    def make_rng(self) -> random.Random:
        return random.Random(self.seed) if self.seed is not None else random.Random()

    def enabled_rule_list(self, catalog: Catalog) -> List[Rule]:
        """Enabled atomic rules in catalog order."""
        if self.enabled_rules is None:
            return list(catalog.rules)
        enabled = set(self.enabled_rules)
        unknown = enabled - {rule.id for rule in catalog.rules}
        for rule_id in sorted(unknown):
            logger.warning("Session enables unknown rule '%s'", rule_id)
        return [rule for rule in catalog.rules if rule.id in enabled]


def load_session_config(path: Union[str, Path]) -> SessionConfig:
    """
    Read a session from a YAML file.

    An empty file gives the default session.

    Raises:
        SessionConfigError: unreadable file, invalid YAML, or a document
            that does not validate as a SessionConfig
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise SessionConfigError(f"Cannot read session file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SessionConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SessionConfigError(f"Session file {path} must contain a mapping")

    try:
        config = SessionConfig.model_validate(data)
    except ValidationError as e:
        raise SessionConfigError(f"Invalid session in {path}:\n{e}") from e

    logger.debug("Loaded session from %s", path)
    return config
