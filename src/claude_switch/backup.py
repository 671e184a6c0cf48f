"""Snapshots of the live configuration taken before every switch.

Each snapshot is a ``backup-<timestamp>`` directory holding fixed filenames,
so directory names sort in creation order. Only the newest ``max_backups``
are kept.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from claude_switch import live
from claude_switch.atomic import read_json_lenient, write_atomic, write_json
from claude_switch.config import MAX_BACKUPS, LiveStatePaths
from claude_switch.errors import NotFoundError, ValidationError
from claude_switch.lock import ProcessLock
from claude_switch.schema import Settings, utc_now_iso

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "backup-"
SETTINGS_FILE = "settings.json"
MCP_FILE = "mcpServers.json"
MANIFEST_FILE = "active-manifest.json"
META_FILE = "meta.json"


def _timestamp() -> str:
    now = datetime.now(timezone.utc).isoformat(timespec="microseconds")
    return now.replace("+00:00", "Z").replace(":", "-").replace(".", "-")


class BackupManager:
    """Create, prune, list and restore live-state snapshots."""

    def __init__(self, paths: LiveStatePaths, lock: ProcessLock, max_backups: int = MAX_BACKUPS):
        self.paths = paths
        self.lock = lock
        self.max_backups = max_backups

    @property
    def doc_file(self) -> str:
        return self.paths.doc_path.name

    def snapshot(self) -> Path:
        """Copy the live state into a new snapshot directory and prune old ones."""
        with self.lock:
            backup_dir = self._new_backup_dir()

            if self.paths.settings_path.is_file():
                shutil.copyfile(self.paths.settings_path, backup_dir / SETTINGS_FILE)
            if self.paths.manifest_path.is_file():
                shutil.copyfile(self.paths.manifest_path, backup_dir / MANIFEST_FILE)
            if self.paths.doc_path.is_file():
                shutil.copyfile(self.paths.doc_path, backup_dir / self.doc_file)
            write_json(backup_dir / MCP_FILE, live.read_mcp_servers(self.paths))

            registry = read_json_lenient(self.paths.registry_path)
            previous = registry.get("activeProfile") if isinstance(registry, dict) else None
            write_json(
                backup_dir / META_FILE,
                {"previousProfile": previous, "backupTime": utc_now_iso()},
            )

            self.prune()

        logger.info("Backed up live settings to %s", backup_dir)
        return backup_dir

    def _new_backup_dir(self) -> Path:
        self.paths.backups_dir.mkdir(parents=True, exist_ok=True)
        base = f"{BACKUP_PREFIX}{_timestamp()}"
        candidate = self.paths.backups_dir / base
        suffix = 1
        while True:
            try:
                candidate.mkdir()
                return candidate
            except FileExistsError:
                candidate = self.paths.backups_dir / f"{base}-{suffix}"
                suffix += 1

    def _backup_names(self) -> list[str]:
        if not self.paths.backups_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.paths.backups_dir.iterdir()
            if entry.is_dir() and entry.name.startswith(BACKUP_PREFIX)
        )

    def prune(self) -> list[str]:
        """Delete all but the newest ``max_backups`` snapshots."""
        names = self._backup_names()
        stale = names[: max(len(names) - self.max_backups, 0)]
        for name in stale:
            shutil.rmtree(self.paths.backups_dir / name, ignore_errors=True)
            logger.debug("Pruned backup %s", name)
        return stale

    def _resolve(self, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValidationError(f"Invalid backup name: {name}")
        backup_dir = self.paths.backups_dir / name
        if not backup_dir.is_dir():
            raise NotFoundError(f"Backup '{name}' does not exist")
        return backup_dir

    def restore(self, name: str) -> dict[str, Any]:
        """Copy a snapshot's files back over the live state.

        Settings-level undo only: component links are not touched.
        """
        backup_dir = self._resolve(name)
        restored = []

        with self.lock:
            settings = backup_dir / SETTINGS_FILE
            if settings.is_file():
                write_atomic(self.paths.settings_path, settings.read_bytes())
                restored.append(SETTINGS_FILE)

            manifest = backup_dir / MANIFEST_FILE
            if manifest.is_file():
                write_atomic(self.paths.manifest_path, manifest.read_bytes())
                restored.append(MANIFEST_FILE)

            doc = backup_dir / self.doc_file
            if doc.is_file():
                write_atomic(self.paths.doc_path, doc.read_bytes())
                restored.append(self.doc_file)

            servers = read_json_lenient(backup_dir / MCP_FILE)
            if isinstance(servers, dict):
                live.write_mcp_servers(self.paths, servers)
                restored.append(MCP_FILE)

            meta = read_json_lenient(backup_dir / META_FILE)
            previous = meta.get("previousProfile") if isinstance(meta, dict) else None
            if previous:
                registry = read_json_lenient(self.paths.registry_path)
                registry = registry if isinstance(registry, dict) else {}
                registry["activeProfile"] = previous
                write_json(self.paths.registry_path, registry)

        logger.info("Restored backup %s (%s)", name, ", ".join(restored) or "nothing")
        return {
            "success": True,
            "restored": restored,
            "activeProfile": previous,
            "message": f"Restored from backup '{name}'",
        }

    def list(self) -> list[dict[str, Any]]:
        """Snapshots newest first, with summaries derived from their files."""
        summaries = []
        for name in reversed(self._backup_names()):
            backup_dir = self.paths.backups_dir / name
            meta = read_json_lenient(backup_dir / META_FILE)
            meta = meta if isinstance(meta, dict) else {}
            settings = Settings.from_live(read_json_lenient(backup_dir / SETTINGS_FILE))
            servers = read_json_lenient(backup_dir / MCP_FILE)
            summaries.append(
                {
                    "name": name,
                    "previousProfile": meta.get("previousProfile"),
                    "backupTime": meta.get("backupTime"),
                    "enabledPlugins": settings.active_plugins,
                    "disabledPlugins": [
                        plugin for plugin, enabled in settings.enabled_plugins.items() if not enabled
                    ],
                    "hooks": list(settings.hooks),
                    "mcpServers": list(servers) if isinstance(servers, dict) else [],
                    "hasClaudeMd": (backup_dir / self.doc_file).is_file(),
                    "sizeBytes": sum(
                        f.stat().st_size for f in backup_dir.rglob("*") if f.is_file()
                    ),
                }
            )
        return summaries
