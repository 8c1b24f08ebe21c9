"""Tests for zlb.cli module."""
from __future__ import annotations

from unittest.mock import patch

import pytest

from zlb import __version__
from zlb.cli import main


def _run(argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


def test_positional_arguments(capsys):
    with patch("zlb.backup.run_backup", return_value=0) as run_backup:
        rc = _run(["-n", "backup", "TEST", "tank/var/log", "tank/home"])
    assert rc == 0
    kwargs = run_backup.call_args.kwargs
    assert kwargs["dry_run"] is True
    assert kwargs["config"].backup_pool == "backup"
    assert kwargs["config"].label == "TEST"
    assert kwargs["config"].datasets == ["tank/var/log", "tank/home"]
    assert f"zlb - {__version__}" in capsys.readouterr().out


def test_config_file(tmp_path):
    path = tmp_path / "job.yaml"
    path.write_text("destination:\n  pool: backup\nlabel: DAILY\ndatasets:\n  - tank/home\n")
    with patch("zlb.backup.run_backup", return_value=1) as run_backup:
        rc = _run(["--config", str(path)])
    assert rc == 1
    config = run_backup.call_args.kwargs["config"]
    assert config.label == "DAILY"
    assert config.datasets == ["tank/home"]


def test_positionals_override_config_file(tmp_path):
    path = tmp_path / "job.yaml"
    path.write_text("destination:\n  pool: backup\nlabel: DAILY\ndatasets:\n  - tank/home\n")
    with patch("zlb.backup.run_backup", return_value=0) as run_backup:
        _run(["-c", str(path), "other", "WEEKLY"])
    config = run_backup.call_args.kwargs["config"]
    assert config.backup_pool == "other"
    assert config.label == "WEEKLY"
    assert config.datasets == ["tank/home"]


def test_missing_datasets_is_usage_error():
    assert _run(["backup", "TEST"]) == 2


def test_invalid_config_exits_1(tmp_path, capsys):
    with patch("zlb.backup.run_backup") as run_backup:
        rc = _run(["backup", "a@b", "tank/var/log"])
    assert rc == 1
    run_backup.assert_not_called()
    assert "Config error" in capsys.readouterr().err


def test_version(capsys):
    assert _run(["--version"]) == 0
    assert __version__ in capsys.readouterr().out
