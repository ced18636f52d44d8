"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..session import SaveSnapshot


class TestSimulate:
    def test_simulate_and_save(self, tmp_path, capsys):
        """A short run prints each day and writes a loadable save."""
        save_path = tmp_path / "run.json"

        code = main(["simulate", "--seed", "cli-seed", "--days", "2", "--save", str(save_path)])

        out = capsys.readouterr().out
        assert code == 0
        assert "Seed: cli-seed" in out
        assert "Day 1:" in out
        assert "Day 2:" in out

        snapshot = SaveSnapshot.from_json(save_path.read_text(encoding="utf-8"))
        assert snapshot.random_seed == "cli-seed"
        assert snapshot.game_state.current_day == 3

    def test_unknown_difficulty(self, capsys):
        with pytest.raises(SystemExit):
            main(["simulate", "--difficulty", "impossible"])
        assert "unknown difficulty" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit):
            main([])


class TestInspect:
    def test_inspect_summary(self, tmp_path, capsys):
        save_path = tmp_path / "run.json"
        main(["simulate", "--seed", "inspect-me", "--days", "1", "--save", str(save_path)])
        capsys.readouterr()

        assert main(["inspect", str(save_path)]) == 0
        out = capsys.readouterr().out
        assert "Seed: inspect-me" in out
        assert "Day 2" in out

    def test_invalid_save(self, tmp_path, capsys):
        """Validation errors are listed by field."""
        save_path = tmp_path / "bad.json"
        save_path.write_text(json.dumps({"save_id": "x", "difficulty": "normal"}), encoding="utf-8")

        with pytest.raises(SystemExit):
            main(["inspect", str(save_path)])
        out = capsys.readouterr().out
        assert "Invalid save file" in out
        assert "game_state" in out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit):
            main(["inspect", str(tmp_path / "nope.json")])
        assert "File not found" in capsys.readouterr().out
