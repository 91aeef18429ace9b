"""
App Subpackage

The caller-facing surface of the engine:
    - session.py: SessionConfig, the explicit per-call state (YAML loadable)
    - report.py: Text and JSON renderings of engine output
    - cli.py: The `riffline` command-line tool

Usage options:
    - CLI: riffline bass --genre blues --level 1 --progression blues-12bar --root-string 6
    - Module: python -m riffline.app.cli --help
"""
