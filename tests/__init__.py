"""
Test Package

Contains unit tests for all modules.
Run with: pytest tests/ -v

Test files follow the pattern:
    test_<module_name>.py

Example:
    tests/test_harmony.py     - Tests for riffline/rules/harmony.py
    tests/test_pipeline.py    - Tests for riffline/rules/pipeline.py
    tests/test_cli.py         - Tests for riffline/app/cli.py
"""
