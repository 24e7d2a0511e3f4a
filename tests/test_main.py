"""
Test Suite for the Command-Line Runner
======================================
"""

import sys

import pytest

import main


class TestMain:
    """Tests for main."""

    def test_missing_config_exits(self, monkeypatch, tmp_path):
        """Test that a missing config file exits with status 1."""
        monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(tmp_path / "missing.yaml")])

        with pytest.raises(SystemExit) as excinfo:
            main.main()
        assert excinfo.value.code == 1

    def test_unexpected_error_returns_one(self, monkeypatch, tmp_path, capsys):
        """Test that any pipeline failure returns status 1."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("data:\n  path: listings.parquet\n")

        def fail(data_path, config_path):
            raise RuntimeError("Java gateway exited")

        monkeypatch.setattr(main, "run_full_pipeline", fail)
        monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(config_path)])

        assert main.main() == 1
        assert "Java gateway exited" in capsys.readouterr().out
