"""Configuration for claude-switch: live-state locations and policy constants."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

CLAUDE_DIR = Path.home() / ".claude"
CLAUDE_JSON = Path.home() / ".claude.json"

CLAUDE_DIR_ENV = "CLAUDE_DIR_OVERRIDE"
CLAUDE_JSON_ENV = "CLAUDE_JSON_OVERRIDE"

PROFILE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_PROFILE_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200

PROTECTED_PROFILE = "current"
CLEAN_PROFILE = "clean"
SELF_PLUGIN = "claude-switch@claude-switch"
SWITCH_COMMAND = "profile"

COMPONENT_KINDS = ("commands", "skills", "agents")

MAX_BACKUPS = 10
LOCK_TIMEOUT = 30.0
LOCK_STALE_AFTER = 60.0

REGISTRY_VERSION = "2.0.0"


@dataclass(frozen=True)
class LiveStatePaths:
    """Where the live configuration and the profile tree live on disk."""

    settings_path: Path
    mcp_config_path: Path
    doc_path: Path
    component_root: Path
    state_dir: Path
    manifest_path: Path

    @classmethod
    def for_claude_dir(
        cls, claude_dir: Path | str, claude_json: Path | str | None = None
    ) -> LiveStatePaths:
        root = Path(claude_dir).expanduser()
        if claude_json is None:
            claude_json = root.parent / ".claude.json"
        return cls(
            settings_path=root / "settings.json",
            mcp_config_path=Path(claude_json).expanduser(),
            doc_path=root / "CLAUDE.md",
            component_root=root,
            state_dir=root / "profiles",
            manifest_path=root / "active-manifest.json",
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LiveStatePaths:
        """Default layout under ~/.claude, honouring the override variables."""
        environ = os.environ if environ is None else environ
        claude_dir = environ.get(CLAUDE_DIR_ENV) or CLAUDE_DIR
        claude_json = environ.get(CLAUDE_JSON_ENV) or None
        if claude_json is None and not environ.get(CLAUDE_DIR_ENV):
            claude_json = CLAUDE_JSON
        return cls.for_claude_dir(claude_dir, claude_json)

    @property
    def registry_path(self) -> Path:
        return self.state_dir / "profiles.json"

    @property
    def lock_path(self) -> Path:
        return self.state_dir / ".lock"

    @property
    def backups_dir(self) -> Path:
        return self.state_dir / ".backups"

    def profile_dir(self, name: str) -> Path:
        return self.state_dir / name

    def profile_record(self, name: str) -> Path:
        return self.profile_dir(name) / "profile.json"

    def profile_doc(self, name: str) -> Path:
        return self.profile_dir(name) / self.doc_path.name

    def profile_component_dir(self, name: str, kind: str) -> Path:
        return self.profile_dir(name) / kind

    def live_component_dir(self, kind: str) -> Path:
        return self.component_root / kind
