"""
Riffline - Rule-Driven Bass and Lead Line Generator

Generates note sequences (bass/lead lines) for a chord progression by
evaluating a declarative catalog of music-theory rules against a timeline
derived from the progression.

Subpackages:
    - riffline.data: Pydantic schemas and the static read-only catalogs
    - riffline.rules: Timeline, rule engine, pitch/walk resolution, generators
    - riffline.app: Session configuration, text reports and the CLI

Example usage:
    from riffline.data.catalog import load_default_catalog
    from riffline.rules.pipeline import execute_pipeline

    catalog = load_default_catalog()
    result = execute_pipeline(catalog.progressions["I_IV_V_I"], parts, applied_rules)
"""

__version__ = "0.1.0"
