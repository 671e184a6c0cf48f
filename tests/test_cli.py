"""Tests for the CLI interface."""

import json
import sys

import pytest
from click.testing import CliRunner

from claude_switch import __version__
from claude_switch.cli import cli

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX symlinks")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, claude_dir):
    """Run the CLI against the sandboxed ~/.claude."""

    def _invoke(*args):
        return runner.invoke(cli, ["--claude-dir", str(claude_dir), *args])

    return _invoke


@pytest.fixture
def ready(invoke):
    result = invoke("init")
    assert result.exit_code == 0, result.output
    return invoke


def output_json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestVersion:
    def test_version_flag(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "claude-switch" in result.output
        assert __version__ in result.output


class TestInit:
    def test_init_then_list(self, invoke):
        data = output_json(invoke("init"))
        assert data["success"] is True
        assert data["message"] == "Profile system initialized with symlink support"

        profiles = output_json(invoke("list"))
        assert [p["name"] for p in profiles] == ["clean", "current"]

    def test_claude_dir_from_environment(self, runner, claude_dir):
        result = runner.invoke(cli, ["init"], env={"CLAUDE_DIR_OVERRIDE": str(claude_dir)})
        assert result.exit_code == 0, result.output
        assert (claude_dir / "profiles" / "profiles.json").exists()


class TestProfileCommands:
    def test_create_and_get(self, ready):
        created = output_json(ready("create", "dev", "--copy=plugins,hooks", "--desc", "Development"))
        assert created["profile"]["description"] == "Development"

        details = output_json(ready("get", "dev"))
        assert details["name"] == "dev"
        assert details["hooksList"] == ["PreToolUse"]
        assert details["active"] is False

    def test_invalid_name_is_an_error(self, ready):
        result = ready("create", "bad name")
        assert result.exit_code == 1
        assert "error" in result.output
        assert "letters, numbers" in result.output

    def test_unknown_copy_item(self, ready):
        result = ready("create", "dev", "--copy", "bogus")
        assert result.exit_code == 1
        assert "Invalid copy items" in result.output

    def test_switch_and_list_active(self, ready):
        data = output_json(ready("switch", "clean"))
        assert data["profile"] == "clean"
        profiles = output_json(ready("list"))
        assert [p["name"] for p in profiles if p["active"]] == ["clean"]

    def test_delete_rules(self, ready):
        result = ready("delete", "current")
        assert result.exit_code == 1
        assert "system snapshot" in result.output

        output_json(ready("create", "tmp"))
        data = output_json(ready("delete", "tmp"))
        assert data["success"] is True

    def test_rename(self, ready):
        output_json(ready("create", "a"))
        data = output_json(ready("rename", "a", "b"))
        assert "renamed from 'a' to 'b'" in data["message"]
        assert ready("get", "a").exit_code == 1

    def test_export_default_and_named(self, ready):
        data = output_json(ready("export"))
        assert data["profile"] == "current"
        output_json(ready("export", "snap", "--desc", "Snapshot"))
        assert output_json(ready("get", "snap"))["description"] == "Snapshot"

    def test_unknown_profile(self, ready):
        result = ready("switch", "ghost")
        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestBackupCommands:
    def test_backup_list_restore(self, ready):
        created = output_json(ready("backup"))
        name = created["backup"].rsplit("/", 1)[-1]

        listed = output_json(ready("backups"))
        assert listed[0]["name"] == name

        restored = output_json(ready("restore", name))
        assert "settings.json" in restored["restored"]

    def test_restore_unknown(self, ready):
        result = ready("restore", "backup-none")
        assert result.exit_code == 1


class TestSpreadCommands:
    def test_spread_command(self, ready, claude_dir):
        output_json(ready("create", "dev"))
        data = output_json(ready("spread", "commands", "review", "--profiles=dev"))
        assert data["summary"] == {"copied": 1, "skipped": 0}
        assert (claude_dir / "profiles" / "dev" / "commands" / "review.md").exists()

    def test_spread_invalid_type(self, ready):
        result = ready("spread", "badtype", "x", "--all")
        assert result.exit_code == 1
        assert "Invalid spread type" in result.output

    def test_install_and_uninstall_all(self, ready, claude_dir):
        data = output_json(ready("install-all", "new@market", "--all"))
        assert data["summary"]["updated"] == 2
        settings = json.loads((claude_dir / "settings.json").read_text())
        assert settings["enabledPlugins"]["new@market"] is True

        data = output_json(ready("uninstall-all", "new@market", "--profiles", "clean"))
        assert data["results"] == [{"profile": "clean", "status": "updated"}]

    def test_uninstall_self_refused(self, ready):
        result = ready("uninstall-all", "claude-switch@claude-switch", "--all")
        assert result.exit_code == 1
        assert "required to switch profiles" in result.output
