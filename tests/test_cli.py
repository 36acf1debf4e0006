"""Tests for the scenesync command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from scenesync import __version__
from scenesync.cli import app

runner = CliRunner()


class TestCli:
    """Tests for the typer app."""

    def test_version(self) -> None:
        """--version should print the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self) -> None:
        """info should list scheduler defaults."""
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "Drift check interval: 1.0s" in result.output
        assert "Max scenes: 24" in result.output

    def test_locate(self, plan_file: Path) -> None:
        """locate should print the index and id of the active scene."""
        result = runner.invoke(app, ["locate", str(plan_file), "10"])
        assert result.exit_code == 0
        assert result.output.startswith("2\ts2\t")

    def test_locate_invalid_plan(self, temp_dir: Path) -> None:
        """A malformed plan should exit with an error."""
        path = temp_dir / "bad.json"
        path.write_text(json.dumps({"durationSec": 10, "scenes": []}))

        result = runner.invoke(app, ["locate", str(path), "1"])

        assert result.exit_code == 1
        assert "Invalid scene plan" in result.output

    def test_normalize_to_stdout(self, raw_plan_file: Path) -> None:
        """normalize should print a gapless plan."""
        result = runner.invoke(app, ["normalize", str(raw_plan_file)])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [(s["startSec"], s["endSec"]) for s in data["scenes"]] == [(0, 9), (9, 20)]
        assert data["scenes"][0]["steps"] == 100

    def test_normalize_to_file(self, raw_plan_file: Path, temp_dir: Path) -> None:
        """normalize -o should write the plan to a file."""
        output = temp_dir / "plan.json"

        result = runner.invoke(
            app, ["normalize", str(raw_plan_file), "--duration", "30", "-o", str(output)]
        )

        assert result.exit_code == 0
        assert "Output written to" in result.output
        assert json.loads(output.read_text())["durationSec"] == 30

    def test_normalize_rejects_garbage(self, temp_dir: Path) -> None:
        """Invalid JSON should exit with an error."""
        path = temp_dir / "raw.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["normalize", str(path)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_normalize_missing_scenes(self, temp_dir: Path) -> None:
        """A plan without scenes should exit with an error."""
        path = temp_dir / "raw.json"
        path.write_text(json.dumps({"durationSec": 10}))

        result = runner.invoke(app, ["normalize", str(path)])

        assert result.exit_code == 1
        assert "scenes array" in result.output

    def test_simulate(self, plan_file: Path, no_drift_env: None) -> None:
        """simulate should play through every scene in order."""
        result = runner.invoke(app, ["simulate", str(plan_file), "--speed", "100", "--quiet"])

        assert result.exit_code == 0, result.output
        assert "Scene sequence: 1 -> 2 -> 3" in result.output

    def test_normalize_invalid_numbers_exits_cleanly(self, temp_dir: Path) -> None:
        """Unusable numbers in a plan should end in an error message, not a traceback."""
        path = temp_dir / "raw.json"
        path.write_text('{"durationSec": 10, "scenes": [{"startSec": 0, "endSec": 1e999}]}')

        result = runner.invoke(app, ["normalize", str(path)])

        assert result.exit_code == 1
        assert "No valid scenes" in result.output
        assert not isinstance(result.exception, OverflowError)
