"""
Tests for riffline/app/cli.py

Run with: pytest tests/test_cli.py -v
"""

import json

from riffline.app.cli import build_session, create_argument_parser, main, resolve_progression
from riffline.data.catalog import load_default_catalog


BLUES = ["--genre", "blues", "--level", "1", "--progression", "blues-12bar", "--root-string", "6"]


class TestBassCommand:

    def test_text_output(self, capsys):
        assert main(["bass", *BLUES, "--seed", "1"]) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0] == "Bar 1 Beat 1: 1"
        assert "Applied rules:" in out

    def test_json_output(self, capsys):
        assert main(["bass", *BLUES, "--seed", "1", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["isValid"] is True
        assert len(data["noteEvents"]) == 48

    def test_same_seed_same_line(self, capsys):
        main(["bass", *BLUES, "--seed", "4", "--randomness", "80", "--json"])
        first = capsys.readouterr().out
        main(["bass", *BLUES, "--seed", "4", "--randomness", "80", "--json"])
        assert capsys.readouterr().out == first

    def test_missing_choice_is_rejected(self, capsys):
        assert main(["bass", "--genre", "blues"]) == 1
        out = capsys.readouterr().out
        assert "Please select a level" in out

    def test_config_with_no_rules(self, tmp_path, capsys):
        path = tmp_path / "session.yaml"
        path.write_text("enabled_rules: []\n")
        assert main(["bass", *BLUES, "--config", str(path)]) == 1
        assert "No rules enabled" in capsys.readouterr().out

    def test_bad_randomness(self, capsys):
        assert main(["bass", *BLUES, "--randomness", "300"]) == 1
        assert "Error:" in capsys.readouterr().out


class TestPipelineCommand:

    def test_rule_flag(self, capsys):
        assert main(["pipeline", "--progression", "I_IV_V_I", "--rule", "default_root_hold"]) == 0
        out = capsys.readouterr().out
        assert "Part: Bass (bass)" in out
        assert "Part: Rhythm (rhythm)" in out
        assert "Beat 5 (Bar 2, Beat 1): IV (octave 2)" in out
        assert "Beat 5 (Bar 2, Beat 1): IV (octave 3)" in out

    def test_config_bindings_as_json(self, tmp_path, capsys):
        path = tmp_path / "session.yaml"
        path.write_text(
            "progression: I_IV_V_I\n"
            "parts: [{id: bass, name: Bass, default_register: low}]\n"
            "applied_rules:\n"
            "  - rule_id: walk_to_next_chord\n"
            "    slot: {type: transition, from: 0, to: 1}\n"
            "    parameters: {steps: 2, direction: up}\n"
        )
        assert main(["pipeline", "--config", str(path), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        degrees = [e["degree"] for e in data["noteEvents"][0]["events"]]
        assert degrees == ["I", "II", "II+1", "III", "IV"]

    def test_legacy_progression_accepted(self, capsys):
        assert main(["pipeline", "--progression", "blues-8bar", "--rule", "root_pulse_rule", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data["timeline"]["bars"]) == 8

    def test_unknown_progression(self, capsys):
        assert main(["pipeline", "--progression", "nope"]) == 1
        assert "Unknown progression 'nope'" in capsys.readouterr().out


class TestOtherCommands:

    def test_lead(self, capsys):
        assert main(["lead", *BLUES]) == 0
        out = capsys.readouterr().out
        assert "Found 2 applicable lead rules:" in out
        assert "minor-pentatonic" in out

    def test_slots(self, capsys):
        assert main(["slots", "--progression", "ii_V_I", "--json"]) == 0
        slots = json.loads(capsys.readouterr().out)["slots"]
        assert slots[0] == {"type": "global"}
        assert {"type": "transition", "from": 0, "to": 1} in slots

    def test_catalog(self, capsys):
        assert main(["catalog", "--genre", "blues"]) == 0
        out = capsys.readouterr().out
        assert "blues-12bar" in out
        assert "pop-I-V-vi-IV" not in out
        assert "Catalog check: 0 problem(s)" in out

    def test_no_command(self, capsys):
        assert main([]) == 2
        assert "usage:" in capsys.readouterr().out


class TestHelpers:

    def test_flags_override_config(self, tmp_path):
        path = tmp_path / "session.yaml"
        path.write_text("selection: {genre: pop, level: 2}\nseed: 1\n")
        args = create_argument_parser().parse_args(["bass", "--config", str(path), "--level", "3", "--seed", "9"])
        session = build_session(args)

        assert session.selection.genre == "pop"
        assert session.selection.level == 3
        assert session.seed == 9

    def test_resolve_progression(self):
        catalog = load_default_catalog()
        assert resolve_progression(catalog, "ii_V_I").key == "F"
        assert resolve_progression(catalog, "blues-12bar").total_bars == 12
        assert resolve_progression(catalog, "nope") is None
