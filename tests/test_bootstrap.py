"""Tests for first-run initialization."""

import json
import sys

import pytest

from claude_switch.bootstrap import initialize

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX symlinks")


class TestInitialize:
    def test_creates_builtin_profiles(self, paths, store, links):
        result = initialize(paths, store, links)

        assert result["success"] is True
        assert result["profilesDir"] == str(paths.state_dir)
        assert [p["name"] for p in result["profiles"]] == ["clean", "current"]

        registry = json.loads(paths.registry_path.read_text())
        assert registry["activeProfile"] == "current"
        assert registry["profiles"] == ["current", "clean"]
        assert registry["version"] == "2.0.0"
        assert registry["symlinkEnabled"] is True
        assert paths.backups_dir.is_dir()

    def test_moves_live_dirs_into_current(self, paths, store, links):
        result = initialize(paths, store, links)

        for kind in ("commands", "skills", "agents"):
            live_dir = paths.live_component_dir(kind)
            assert links.is_link(live_dir)
            assert live_dir.resolve() == paths.profile_component_dir("current", kind).resolve()
        assert (paths.profile_component_dir("current", "commands") / "review.md").exists()
        assert (paths.live_component_dir("skills") / "pdf.skill").exists()

        actions = {(r["dir"], r["action"]) for r in result["symlinks"]}
        assert ("commands", "moved") in actions
        assert ("agents", "created_empty") in actions
        assert ("agents", "symlink_created") in actions
        created = [r for r in result["symlinks"] if r["action"] == "symlink_created"]
        assert {r["type"] for r in created} == {links.display_name}
        assert result["message"] == f"Profile system initialized with {links.display_name} support"

    def test_clean_profile(self, paths, store, links):
        initialize(paths, store, links)
        clean = store.load("clean")
        assert clean.settings.enabled_plugins == {}
        assert clean.settings.status_line is None
        assert clean.mcp_servers == {}
        assert {sel.mode for sel in clean.components.values()} == {"whitelist"}
        commands = paths.profile_component_dir("clean", "commands")
        assert [p.name for p in commands.iterdir()] == ["profile.md"]
        assert list(paths.profile_component_dir("clean", "skills").iterdir()) == []

    def test_current_snapshot(self, paths, store, links, live_seed):
        initialize(paths, store, links)
        current = store.load("current")
        assert current.settings.env == live_seed["settings"]["env"]
        assert current.mcp_servers == live_seed["claude_json"]["mcpServers"]
        assert paths.profile_doc("current").read_text() == live_seed["doc"]

    def test_idempotent(self, paths, store, links):
        initialize(paths, store, links)
        registry_before = paths.registry_path.read_bytes()
        clean_before = paths.profile_record("clean").read_bytes()

        result = initialize(paths, store, links)

        assert {r["action"] for r in result["symlinks"]} == {"already_symlink"}
        assert paths.registry_path.read_bytes() == registry_before
        assert paths.profile_record("clean").read_bytes() == clean_before

    def test_existing_profile_dir_is_parked(self, paths, store, links):
        stale = paths.profile_component_dir("current", "commands")
        stale.mkdir(parents=True)
        (stale / "old.md").write_text("old")

        initialize(paths, store, links)

        parked = [p for p in paths.profile_dir("current").iterdir() if p.name.startswith("commands.backup-")]
        assert len(parked) == 1
        assert (parked[0] / "old.md").read_text() == "old"
        assert (paths.live_component_dir("commands") / "review.md").exists()
