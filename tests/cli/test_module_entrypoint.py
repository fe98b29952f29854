"""Tests for running flowprof as a module (`python -m flowprof`)."""

from __future__ import annotations

import runpy
from unittest.mock import patch

import pytest


def test_module_help_exits_zero() -> None:
    with patch("sys.argv", ["flowprof", "--help"]):
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("flowprof", run_name="__main__")
    assert exc_info.value.code == 0


def test_module_subcommand_help_exits_zero() -> None:
    with patch("sys.argv", ["flowprof", "report", "--help"]):
        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("flowprof", run_name="__main__")
    assert exc_info.value.code == 0


def test_module_inspect_runs(input_files, capsys) -> None:
    with patch("sys.argv", ["flowprof", "inspect", "--ops", str(input_files["ops"])]):
        runpy.run_module("flowprof", run_name="__main__")
    assert "FLOWPROF TOPOLOGY INSPECTION" in capsys.readouterr().out
