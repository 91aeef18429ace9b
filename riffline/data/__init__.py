"""
Data Subpackage

This package holds everything the engine reads:
    - schema.py: Pydantic models for progressions, rules, riffs, slots and events
    - catalog.py: Bundled reference data and lookups

Catalog records are validated once and shared read-only; see
`riffline.data.catalog.load_default_catalog`.
"""

from riffline.data.schema import AppliedRule, NoteEvent, Progression, Selection
