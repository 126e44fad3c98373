"""Tests for the pipeline/weekly_summary.py command-line entry point."""

# Standard Library
import os
import sys
from datetime import datetime
from datetime import timedelta

import pytest

# add pipeline directory to path for weekly_summary and digestlib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

import weekly_summary


#============================================
def test_parse_args_defaults() -> None:
	"""
	With no flags the run fetches, sends and uses the wall clock.
	"""
	args = weekly_summary.parse_args([])
	assert args.settings == "settings.yaml"
	assert args.repo_path == "."
	assert args.now is None
	assert args.fetch is None
	assert args.send is True
	assert args.output == ""


#============================================
def test_parse_args_flags() -> None:
	"""
	Switches turn off fetch and send; --now is parsed into a datetime.
	"""
	args = weekly_summary.parse_args(["--no-fetch", "--no-send", "--now", "2026-10-14T12:00:00"])
	assert args.fetch is False
	assert args.send is False
	assert args.now == datetime(2026, 10, 14, 12, 0)


#============================================
def test_malformed_now_is_an_argument_error(capsys) -> None:
	"""
	A bad --now value is rejected by argparse with usage text, not a traceback.
	"""
	with pytest.raises(SystemExit) as excinfo:
		weekly_summary.parse_args(["--now", "last tuesday"])
	assert excinfo.value.code == 2
	err = capsys.readouterr().err
	assert "--now" in err
	assert "invalid ISO 8601 instant" in err


#============================================
def test_localize_now_naive_uses_digest_zone() -> None:
	"""
	Naive --now values are read in the configured zone.
	"""
	parsed = weekly_summary.localize_now(datetime(2026, 10, 14, 12, 0), "America/Los_Angeles")
	assert parsed.utcoffset() == timedelta(hours=-7)


#============================================
def test_localize_now_keeps_explicit_offset() -> None:
	"""
	Values with an offset are left alone, and a missing value stays None.
	"""
	parsed = weekly_summary.localize_now(weekly_summary.parse_now_arg("2026-10-14T19:00:00Z"), "America/Los_Angeles")
	assert parsed.utcoffset() == timedelta(0)
	assert weekly_summary.localize_now(None, "UTC") is None


#============================================
def test_missing_credential_exits_nonzero(tmp_path, monkeypatch) -> None:
	"""
	Configuration errors stop the run with exit status 1.
	"""
	monkeypatch.delenv("OPENAI_API_KEY", raising=False)
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text("digest:\n  repo: acme/app\n", encoding="utf-8")
	with pytest.raises(SystemExit) as excinfo:
		weekly_summary.main(["--settings", str(settings_path)])
	assert excinfo.value.code == 1


#============================================
def test_write_report_creates_directories(tmp_path) -> None:
	"""
	The report file's parent directories are created as needed.
	"""
	target = tmp_path / "out" / "weekly.md"
	weekly_summary.write_report(str(target), "report body")
	assert target.read_text(encoding="utf-8") == "report body\n"
