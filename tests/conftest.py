"""Shared test fixtures: a sandboxed ~/.claude under tmp_path."""

import json
import logging

import pytest

from claude_switch.backup import BackupManager
from claude_switch.bootstrap import initialize
from claude_switch.config import SELF_PLUGIN, LiveStatePaths
from claude_switch.links import create_link_manager
from claude_switch.lock import ProcessLock
from claude_switch.profiles import ProfileStore
from claude_switch.spread import ProfileSpreader
from claude_switch.switch import SwitchEngine

LIVE_SETTINGS = {
    "enabledPlugins": {"formatter@tools": True, "linter@tools": False, SELF_PLUGIN: True},
    "hooks": {"PreToolUse": [{"type": "command", "command": "echo pre"}]},
    "statusLine": {"type": "command", "command": "echo status"},
    "env": {"EDITOR": "vim"},
    "permissions": {"defaultMode": "acceptEdits", "allow": ["Bash(ls)"]},
    "alwaysThinkingEnabled": False,
    "autoUpdatesChannel": "stable",
    "model": "opus",
}

LIVE_CLAUDE_JSON = {
    "numStartups": 7,
    "mcpServers": {"docs": {"command": "docs-server", "args": ["--port", "1"]}},
}

LIVE_DOC = "# Live instructions\n"


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI invocations attach a stderr handler; drop it between tests."""
    yield
    logger = logging.getLogger("claude_switch")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def claude_dir(tmp_path):
    """A populated live configuration directory, before `init`."""
    root = tmp_path / "home" / ".claude"
    root.mkdir(parents=True)
    (root / "settings.json").write_text(json.dumps(LIVE_SETTINGS, indent=2))
    (root / "CLAUDE.md").write_text(LIVE_DOC)
    (root.parent / ".claude.json").write_text(json.dumps(LIVE_CLAUDE_JSON, indent=2))

    commands = root / "commands"
    commands.mkdir()
    (commands / "profile.md").write_text("Switch profiles\n")
    (commands / "review.md").write_text("Review the diff\n")
    skills = root / "skills"
    skills.mkdir()
    (skills / "pdf.skill").write_text("pdf skill\n")
    return root


@pytest.fixture
def paths(claude_dir):
    return LiveStatePaths.for_claude_dir(claude_dir)


@pytest.fixture
def lock(paths):
    return ProcessLock(paths.lock_path, timeout=2.0)


@pytest.fixture
def links():
    return create_link_manager()


@pytest.fixture
def store(paths, lock, links):
    return ProfileStore(paths, lock, links)


@pytest.fixture
def backups(paths, lock):
    return BackupManager(paths, lock)


@pytest.fixture
def engine(paths, store, backups, links, lock):
    return SwitchEngine(paths, store, backups, links, lock)


@pytest.fixture
def spreader(store):
    return ProfileSpreader(store)


@pytest.fixture
def initialized(paths, store, links):
    """The sandbox after `init`: profiles current + clean, live dirs linked."""
    initialize(paths, store, links)
    return paths


@pytest.fixture
def live_seed():
    """The values the sandbox was seeded with."""
    return {"settings": LIVE_SETTINGS, "claude_json": LIVE_CLAUDE_JSON, "doc": LIVE_DOC}
