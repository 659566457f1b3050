"""Unit tests for the pyspup command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest

from pyspup import __version__
from pyspup.cli import main


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Configuration of a DEM on a 2x3 point table."""
    pd.DataFrame(
        {
            "x": [0.0, 30.0, 60.0, 0.0, 30.0, 60.0],
            "y": [30.0, 30.0, 30.0, 0.0, 0.0, 0.0],
            "elevation": [100.0, 101.0, 102.0, 99.0, 100.0, 101.0],
            "sd": [1.0, 1.0, 2.0, 2.0, 1.0, 1.0],
        }
    ).to_csv(tmp_path / "dem.csv", index=False)
    document = {
        "sampling": {"n": 6, "method": "ugs", "seed": 1},
        "variables": [
            {
                "id": "dem",
                "distribution": "norm",
                "distr_param": [
                    {"file": "dem.csv", "column": "elevation"},
                    {"file": "dem.csv", "column": "sd"},
                ],
                "crm": {"sill": 0.78, "range": 321, "family": "Exp"},
            }
        ],
    }
    path = tmp_path / "dem.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestMain:
    """Tests for main() CLI entry point."""

    def test_no_args_returns_0(self) -> None:
        """Test that no subcommand prints help and returns 0."""
        assert main([]) == 0

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --version flag."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_sample_help_exits(self) -> None:
        """Test sample --help exits cleanly."""
        with pytest.raises(SystemExit) as exc_info:
            main(["sample", "--help"])
        assert exc_info.value.code == 0

    def test_unknown_command_exits(self) -> None:
        """Test that an unknown subcommand exits."""
        with pytest.raises(SystemExit):
            main(["nonexistent_command"])

    @patch("pyspup.cli.sample.run_sample")
    def test_dispatches_to_sample(self, mock_run_sample) -> None:
        """Test dispatch to the sample handler."""
        mock_run_sample.return_value = 0
        result = main(["sample", "--config", "c.json", "--output", "out.csv"])
        mock_run_sample.assert_called_once()
        assert result == 0

    @patch("pyspup.cli.correlogram.run_correlogram")
    def test_dispatches_to_correlogram(self, mock_run) -> None:
        """Test dispatch to the correlogram handler."""
        mock_run.return_value = 0
        result = main(["correlogram", "--sill", "0.5", "--range", "10"])
        mock_run.assert_called_once()
        assert result == 0


class TestSampleCommand:
    """Tests for ``pyspup sample``."""

    def test_writes_sample(
        self, config_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test writing a sample table from a config file."""
        output = tmp_path / "out" / "dem_sample.csv"
        result = main(["sample", "--config", str(config_file), "--output", str(output)])
        assert result == 0
        frame = pd.read_csv(output)
        assert list(frame.columns) == ["x", "y"] + [f"sim{i}" for i in range(1, 7)]
        assert len(frame) == 6
        assert "Wrote 6 realizations" in capsys.readouterr().out

    def test_overrides(self, config_file: Path, tmp_path: Path) -> None:
        """Test command-line options override the config file."""
        output = tmp_path / "s.csv"
        result = main(
            [
                "sample",
                "--config",
                str(config_file),
                "--output",
                str(output),
                "--n",
                "4",
                "--method",
                "randomSampling",
                "--seed",
                "3",
                "--no-coordinates",
            ]
        )
        assert result == 0
        assert list(pd.read_csv(output).columns) == ["sim1", "sim2", "sim3", "sim4"]

    def test_missing_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test missing config file reports an error."""
        result = main(
            ["sample", "--config", str(tmp_path / "none.json"), "--output", "x.csv"]
        )
        assert result == 1
        assert "configuration file not found" in capsys.readouterr().err

    def test_sampling_error(
        self, config_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test sampling errors are reported on stderr."""
        result = main(
            [
                "sample",
                "--config",
                str(config_file),
                "--output",
                str(tmp_path / "s.csv"),
                "--method",
                "stratifiedSampling",
            ]
        )
        assert result == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_invalid_method_choice(self, config_file: Path) -> None:
        """Test that an unknown method is rejected by argparse."""
        with pytest.raises(SystemExit):
            main(["sample", "--config", str(config_file), "--output", "x", "--method", "mcmc"])


class TestCorrelogramCommand:
    """Tests for ``pyspup correlogram``."""

    def test_prints_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test printing the correlation table."""
        result = main(
            ["correlogram", "--sill", "0.8", "--range", "100", "--max-distance", "100"]
        )
        assert result == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("CorrelogramModel(family=Exp")
        assert len(lines) == 2 + 11
        assert lines[2].split() == ["0.00", "0.8000"]

    def test_saves_plot(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test saving the correlogram plot."""
        output = tmp_path / "crm.png"
        result = main(["correlogram", "--sill", "0.8", "--range", "100", "--output", str(output)])
        assert result == 0
        assert output.exists()
        assert "Saved correlogram plot" in capsys.readouterr().out

    def test_invalid_sill(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that an invalid sill returns 1."""
        result = main(["correlogram", "--sill", "1.5", "--range", "100"])
        assert result == 1
        assert "Error:" in capsys.readouterr().err
