from __future__ import annotations

import logging
import sys

LOGGER_NAME = "riffline"

logger = logging.getLogger(LOGGER_NAME)
if not logger.handlers:
    # stderr keeps stdout clean for reports and --json output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


def set_verbose(verbose: bool) -> None:
    """Switch the package logger between INFO and DEBUG."""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
