"""Exception and warning types shared across Riffline subpackages."""


class RifflineError(Exception):
    """Base class for errors raised by Riffline."""


class DataConsistencyWarning(UserWarning):
    """Non-fatal inconsistency in catalog data or rule bindings."""
