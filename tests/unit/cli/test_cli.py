"""Tests for the command line interface."""

import json

import click
import pytest
import yaml

from treasurebot.adapters.dummy import DummyGameClient
from treasurebot.cli.__main__ import main
from treasurebot.cli.run import import_factory
from treasurebot.config import BOT_ENV_FIELDS


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every command from an empty directory without bot variables."""
    monkeypatch.chdir(tmp_path)
    names = ("TREASUREBOT_CONFIG", "TREASUREBOT_ENVIRONMENT", "TREASUREBOT_NUM_HERO_WORK")
    for name in names:
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_version(capsys):
    assert main(["version"]) == 0
    assert "treasurebot 0.1.0" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert main(["dance"]) == 1
    assert "Unknown command: dance" in capsys.readouterr().out


def test_config_init_then_validate(isolated_cwd, capsys):
    assert main(["config", "init"]) == 0
    assert (isolated_cwd / "treasurebot.yaml").exists()

    assert main(["config", "init"]) == 1
    assert main(["config", "validate", "treasurebot.yaml"]) == 0
    assert "Configuration is valid" in capsys.readouterr().out


def test_config_validate_reports_errors(isolated_cwd, capsys):
    path = isolated_cwd / "bad.yaml"
    path.write_text(yaml.safe_dump({"environment": "production", "debug": True}))

    assert main(["config", "validate", str(path)]) == 1
    assert "Debug mode" in capsys.readouterr().out


def test_config_show_json(isolated_cwd, capsys, monkeypatch):
    monkeypatch.setenv("TREASUREBOT_NUM_HERO_WORK", "4")

    assert main(["config", "show", "--format=json"]) == 0

    shown = json.loads(capsys.readouterr().out)
    assert shown["bot"]["num_hero_work"] == 4


def test_config_env_lists_every_variable(capsys, monkeypatch):
    monkeypatch.setenv("TREASUREBOT_NUM_HERO_WORK", "4")

    assert main(["config", "env", "--all"]) == 0

    out = capsys.readouterr().out
    assert "Environment: development" in out
    assert "Config file: None found" in out
    assert "  TREASUREBOT_NUM_HERO_WORK=4" in out
    for name in BOT_ENV_FIELDS:
        assert f"  {name}=" in out
    assert "  TREASUREBOT_CONFIG=(not set)" in out


def test_config_env_rejects_missing_config_file(isolated_cwd, capsys, monkeypatch):
    monkeypatch.setenv("TREASUREBOT_CONFIG", str(isolated_cwd / "absent.yaml"))

    assert main(["config", "env"]) == 1
    assert "missing file" in capsys.readouterr().out


def test_import_factory():
    assert import_factory("treasurebot.adapters.dummy:DummyGameClient") is DummyGameClient

    with pytest.raises(click.BadParameter):
        import_factory("treasurebot.adapters.dummy")
    with pytest.raises(click.BadParameter):
        import_factory("treasurebot.adapters.dummy:Missing")


def test_run_with_unknown_client(capsys):
    assert main(["run", "--client", "no_such_module:factory"]) == 1
    assert "Cannot import" in capsys.readouterr().out
