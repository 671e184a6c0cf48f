"""Switch engine: swap the live configuration to a stored profile.

A switch runs entirely under the process lock:

1. snapshot the live state (BackupManager)
2. back-sync live edits into the outgoing profile (failure is only logged)
3. capture the raw bytes of every live file and the target of every link
4. apply the target profile: settings, doc file, MCP servers, links
5. fail if any link could not be switched
6. commit: manifest, registry pointer, summaries

Any error in steps 3-6 restores what step 3 captured and is re-raised as a
SwitchError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from claude_switch import live
from claude_switch.atomic import read_bytes_or_none, write_atomic, write_json
from claude_switch.backup import BackupManager
from claude_switch.components import component_counts
from claude_switch.config import SELF_PLUGIN, LiveStatePaths
from claude_switch.errors import NotFoundError, SwitchError
from claude_switch.links import LinkManager
from claude_switch.lock import ProcessLock
from claude_switch.profiles import ProfileStore
from claude_switch.schema import Profile, merge_live_settings, utc_now_iso

logger = logging.getLogger(__name__)

# Marks a live component path that was a real directory when captured.
REAL_DIRECTORY = object()


@dataclass
class RollbackState:
    """Everything needed to put the live state back as it was."""

    files: dict[Path, bytes | None] = field(default_factory=dict)
    links: dict[Path, Any] = field(default_factory=dict)


class SwitchEngine:
    def __init__(
        self,
        paths: LiveStatePaths,
        store: ProfileStore,
        backups: BackupManager,
        links: LinkManager,
        lock: ProcessLock,
    ):
        self.paths = paths
        self.store = store
        self.backups = backups
        self.links = links
        self.lock = lock

    def switch(self, name: str) -> dict[str, Any]:
        """Make profile ``name`` the live configuration."""
        with self.lock:
            if not self.store.exists(name):
                raise NotFoundError(f"Profile '{name}' does not exist")

            previous = self.store.active_profile
            backup_path = self.backups.snapshot()
            self._back_sync(previous)

            state = self.capture()
            try:
                profile, link_results = self._apply(name)
                self._commit(name, profile, link_results)
            except Exception as e:
                logger.error("Switch to %s failed, rolling back: %s", name, e)
                self.rollback(state)
                raise SwitchError(name, e) from e

        logger.info("Switched profile %s -> %s", previous, name)
        return {
            "success": True,
            "profile": name,
            "previousProfile": previous,
            "backup": str(backup_path),
            "settings": live.summarize(self.paths),
            "components": component_counts(self.paths.profile_dir(name)),
            "symlinks": link_results,
            "message": (
                f"Switched to profile '{name}'. "
                "Please restart Claude Code for changes to take effect."
            ),
        }

    def _back_sync(self, active: str) -> None:
        if not self.store.exists(active):
            return
        try:
            self.store.export_live(active)
        except Exception as e:
            # Back-sync is best-effort.
            logger.warning("Could not sync live settings back to '%s': %s", active, e)

    def capture(self) -> RollbackState:
        state = RollbackState()
        for path in live.managed_paths(self.paths):
            state.files[path] = read_bytes_or_none(path)
        for live_dir in live.managed_links(self.paths).values():
            if self.links.is_link(live_dir):
                state.links[live_dir] = self.links.read_target(live_dir)
            elif live_dir.exists():
                state.links[live_dir] = REAL_DIRECTORY
            else:
                state.links[live_dir] = None
        return state

    def _apply(self, name: str) -> tuple[Profile, list[dict[str, Any]]]:
        profile = self.store.load(name)

        merged = merge_live_settings(live.read_settings(self.paths), profile.settings, SELF_PLUGIN)
        live.write_settings(self.paths, merged)

        live.install_doc(self.paths, self.paths.profile_doc(name))
        live.write_mcp_servers(self.paths, profile.mcp_servers)

        # Raises one LinkError covering every kind that failed.
        link_results = self.links.ensure_links(self.paths, name)
        return profile, link_results

    def _commit(self, name: str, profile: Profile, link_results: list[dict[str, Any]]) -> None:
        write_json(
            self.paths.manifest_path,
            {
                "profile": name,
                "updatedAt": utc_now_iso(),
                "components": {kind: sel.to_dict() for kind, sel in profile.components.items()},
                "symlinks": link_results,
            },
        )
        registry = self.store.load_registry()
        registry.active_profile = name
        registry.last_switch = utc_now_iso()
        registry.add(name)
        self.store.save_registry(registry)

    def rollback(self, state: RollbackState) -> None:
        """Put back captured files and links. Never raises."""
        for path, content in state.files.items():
            try:
                if content is None:
                    path.unlink(missing_ok=True)
                else:
                    write_atomic(path, content)
            except Exception as e:
                # Best-effort; keep restoring the rest.
                logger.warning("Rollback could not restore %s: %s", path, e)

        for live_dir, target in state.links.items():
            if target is REAL_DIRECTORY:
                continue
            try:
                if target is None:
                    if self.links.is_link(live_dir):
                        self.links.remove(live_dir)
                else:
                    self.links.restore_link(live_dir, target)
            except Exception as e:
                # Best-effort; keep restoring the rest.
                logger.warning("Rollback could not restore link %s: %s", live_dir, e)
