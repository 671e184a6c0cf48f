"""Profile storage: one directory per profile under ~/.claude/profiles."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Any, Iterable

from claude_switch import live
from claude_switch.atomic import read_json, read_json_lenient, write_atomic, write_json
from claude_switch.components import component_counts, copy_item, copy_tree, find_item
from claude_switch.config import (
    COMPONENT_KINDS,
    MAX_DESCRIPTION_LENGTH,
    MAX_PROFILE_NAME_LENGTH,
    PROFILE_NAME_PATTERN,
    PROTECTED_PROFILE,
    SWITCH_COMMAND,
    LiveStatePaths,
)
from claude_switch.errors import (
    ClaudeSwitchError,
    ConflictError,
    NotFoundError,
    ProfileCorruptedError,
    ValidationError,
)
from claude_switch.links import LinkManager
from claude_switch.lock import ProcessLock
from claude_switch.schema import Profile, Registry, Settings

logger = logging.getLogger(__name__)

# Items `create --copy` understands, mapped to what they copy.
COPY_ITEMS = {
    "plugins": "enabledPlugins",
    "hooks": "hooks",
    "statusline": "statusLine",
    "env": "env",
    "permissions": "permissions",
    "mcp": "mcpServers",
    "claudemd": "CLAUDE.md",
    "commands": "commands",
    "skills": "skills",
    "agents": "agents",
}


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise ValidationError("Profile name required")
    if len(name) > MAX_PROFILE_NAME_LENGTH:
        raise ValidationError(
            f"Profile name must be at most {MAX_PROFILE_NAME_LENGTH} characters"
        )
    if not PROFILE_NAME_PATTERN.match(name):
        raise ValidationError(
            "Profile name can only contain letters, numbers, hyphens, and underscores"
        )
    return name


def clean_description(description: str | None) -> str:
    return (description or "").strip()[:MAX_DESCRIPTION_LENGTH]


def resolve_copy_items(copy: Iterable[str] | str | None, from_current: bool = False) -> list[str]:
    """Turn a --copy value into the ordered list of items to copy."""
    if isinstance(copy, str):
        copy = copy.split(",")
    requested = [item.strip() for item in (copy or []) if item and item.strip()]

    if not requested:
        return list(COPY_ITEMS) if from_current else []
    if "all" in requested:
        return list(COPY_ITEMS)

    invalid = [item for item in requested if item not in COPY_ITEMS]
    if invalid:
        raise ValidationError(
            f"Invalid copy items: {', '.join(invalid)}. "
            f"Valid items: {', '.join(COPY_ITEMS)}, all"
        )
    return list(dict.fromkeys(requested))


class ProfileStore:
    """CRUD over profile directories and the profiles.json registry.

    Mutating operations run under ``lock``; reads do not take it.
    """

    def __init__(
        self,
        paths: LiveStatePaths,
        lock: ProcessLock,
        links: LinkManager | None = None,
    ):
        self.paths = paths
        self.lock = lock
        self.links = links

    # -- records -----------------------------------------------------------

    def exists(self, name: str) -> bool:
        """A profile exists iff its profile.json does."""
        if not isinstance(name, str) or not PROFILE_NAME_PATTERN.match(name):
            return False
        return self.paths.profile_record(name).is_file()

    def load(self, name: str) -> Profile:
        if not self.exists(name):
            raise NotFoundError(f"Profile '{name}' does not exist")
        try:
            data = read_json(self.paths.profile_record(name))
            return Profile.from_dict(data, name=name)
        except ValueError as e:
            raise ProfileCorruptedError(f"Profile '{name}' is unreadable: {e}") from e

    def save(self, profile: Profile) -> None:
        write_json(self.paths.profile_record(profile.name), profile.to_dict())

    def load_registry(self) -> Registry:
        return Registry.from_dict(read_json_lenient(self.paths.registry_path))

    def save_registry(self, registry: Registry) -> None:
        write_json(self.paths.registry_path, registry.to_dict())

    @property
    def active_profile(self) -> str:
        return self.load_registry().active_profile

    # -- views -------------------------------------------------------------

    def list(self) -> list[dict[str, Any]]:
        """Summaries of every readable profile, sorted by name."""
        if not self.paths.state_dir.is_dir():
            return []

        active = self.active_profile
        summaries = []
        for entry in sorted(self.paths.state_dir.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            data = read_json_lenient(entry / "profile.json")
            if not isinstance(data, dict):
                continue
            profile = Profile.from_dict(data, name=entry.name)
            settings = profile.settings
            summaries.append(
                {
                    "name": entry.name,
                    "description": profile.description,
                    "active": active == entry.name,
                    "createdAt": profile.created_at,
                    "pluginCount": len(settings.active_plugins),
                    "hasHooks": bool(settings.hooks),
                    "hasStatusLine": bool(settings.status_line),
                    "mcpServerCount": len(profile.mcp_servers),
                    "hasClaudeMd": self.paths.profile_doc(entry.name).is_file(),
                    "components": component_counts(entry),
                }
            )
        return summaries

    def get(self, name: str) -> dict[str, Any]:
        profile = self.load(name)
        details = profile.to_dict()
        details.update(
            {
                "active": self.active_profile == name,
                "enabledPluginsList": profile.settings.active_plugins,
                "hooksList": list(profile.settings.hooks),
                "mcpServersList": list(profile.mcp_servers),
                "hasClaudeMd": self.paths.profile_doc(name).is_file(),
                "components": component_counts(self.paths.profile_dir(name)),
            }
        )
        return details

    # -- mutations ---------------------------------------------------------

    def create(
        self,
        name: str,
        *,
        description: str = "",
        copy: Iterable[str] | str | None = (),
        from_current: bool = False,
        clean: bool = False,
    ) -> dict[str, Any]:
        """Create a profile, optionally seeded from the live configuration."""
        validate_name(name)
        items = resolve_copy_items(copy, from_current)
        description = clean_description(description) or (
            f"Copied: {', '.join(items)}" if items else "Custom profile"
        )

        with self.lock:
            if self.exists(name):
                raise ConflictError(f"Profile '{name}' already exists")

            profile_dir = self.paths.profile_dir(name)
            created_dir = not profile_dir.exists()
            try:
                profile = self._build(name, description, items, clean)
            except BaseException:
                if created_dir:
                    shutil.rmtree(profile_dir, ignore_errors=True)
                raise

        logger.info("Created profile %s (copied: %s)", name, ", ".join(items) or "nothing")
        return {
            "success": True,
            "profile": profile.to_dict(),
            "components": component_counts(profile_dir),
            "message": f"Profile '{name}' created",
        }

    def _build(self, name: str, description: str, items: list[str], clean: bool) -> Profile:
        profile = Profile.new(name, description, clean=clean)
        captured = Settings.from_live(live.read_settings(self.paths))
        settings = profile.settings
        if "plugins" in items:
            settings.enabled_plugins = captured.enabled_plugins
        if "hooks" in items:
            settings.hooks = captured.hooks
        if "statusline" in items:
            settings.status_line = captured.status_line
        if "env" in items:
            settings.env = captured.env
        if "permissions" in items:
            settings.permissions = captured.permissions
        if "mcp" in items:
            profile.mcp_servers = live.read_mcp_servers(self.paths)
        self.save(profile)

        if "claudemd" in items:
            live.capture_doc(self.paths, self.paths.profile_doc(name))

        registry = self.load_registry()
        source = registry.active_profile or PROTECTED_PROFILE
        for kind in COMPONENT_KINDS:
            target_dir = self.paths.profile_component_dir(name, kind)
            source_dir = self.paths.profile_component_dir(source, kind)
            if kind in items and source_dir.is_dir():
                copy_tree(source_dir, target_dir)
            else:
                target_dir.mkdir(parents=True, exist_ok=True)

        self.ensure_switch_command(source, name)

        registry.add(name)
        self.save_registry(registry)
        return profile

    def ensure_switch_command(self, source: str, name: str) -> bool:
        """Copy the profile-switching command from ``source`` if ``name`` lacks it.

        Without it a profile could not switch away from itself.
        """
        source_dir = self.paths.profile_component_dir(source, "commands")
        target_dir = self.paths.profile_component_dir(name, "commands")
        item = find_item(source_dir, "commands", SWITCH_COMMAND)
        if item is None or find_item(target_dir, "commands", SWITCH_COMMAND) is not None:
            return False
        copy_item(item, target_dir)
        return True

    def rename(self, old: str, new: str) -> dict[str, Any]:
        if old == PROTECTED_PROFILE:
            raise ConflictError(
                f"Cannot rename '{PROTECTED_PROFILE}' profile - it's a system snapshot"
            )
        validate_name(new)

        with self.lock:
            if not self.exists(old):
                raise NotFoundError(f"Profile '{old}' does not exist")
            if self.exists(new) or self.paths.profile_dir(new).exists():
                raise ConflictError(f"Profile '{new}' already exists")

            # Nothing moves until the record is known to be readable.
            profile = self.load(old)
            original_record = self.paths.profile_record(old).read_bytes()
            original_registry = self.load_registry()

            os.rename(self.paths.profile_dir(old), self.paths.profile_dir(new))
            try:
                profile.name = new
                profile.touch()
                self.save(profile)

                registry = self.load_registry()
                registry.rename(old, new)
                self.save_registry(registry)

                if registry.active_profile == new:
                    self._repoint_links(new)
            except BaseException:
                self._undo_rename(old, new, original_record, original_registry)
                raise

        logger.info("Renamed profile %s to %s", old, new)
        return {"success": True, "message": f"Profile renamed from '{old}' to '{new}'"}

    def _undo_rename(self, old: str, new: str, record: bytes, registry: Registry) -> None:
        """Move a half-renamed profile back under its old name."""
        try:
            os.rename(self.paths.profile_dir(new), self.paths.profile_dir(old))
            write_atomic(self.paths.profile_record(old), record)
            if self.load_registry().to_dict() != registry.to_dict():
                self.save_registry(registry)
            if registry.active_profile == old:
                self._repoint_links(old)
        except (OSError, ClaudeSwitchError) as e:
            logger.error("Could not undo rename of %s to %s: %s", old, new, e)

    def _repoint_links(self, name: str) -> None:
        """Follow an active profile's rename with the live links."""
        if self.links is None:
            return
        for kind in COMPONENT_KINDS:
            live_dir = self.paths.live_component_dir(kind)
            if self.links.is_link(live_dir):
                self.links.ensure_link(live_dir, self.paths.profile_component_dir(name, kind))

    def delete(self, name: str) -> dict[str, Any]:
        if name == PROTECTED_PROFILE:
            raise ConflictError(
                f"Cannot delete '{PROTECTED_PROFILE}' profile - it's a system snapshot"
            )

        with self.lock:
            if not self.exists(name):
                raise NotFoundError(f"Profile '{name}' does not exist")
            registry = self.load_registry()
            if registry.active_profile == name:
                raise ConflictError(
                    f"Cannot delete active profile '{name}'. Switch to another profile first."
                )

            shutil.rmtree(self.paths.profile_dir(name))
            registry.remove(name)
            self.save_registry(registry)

        logger.info("Deleted profile %s", name)
        return {"success": True, "message": f"Profile '{name}' deleted"}

    def export_live(self, name: str = PROTECTED_PROFILE, description: str | None = None) -> dict[str, Any]:
        """Write the live settings, MCP servers and doc file into profile ``name``.

        Creates the profile if needed. Used both by `export` and by the
        back-sync step of a switch.
        """
        validate_name(name)

        with self.lock:
            captured = Settings.from_live(live.read_settings(self.paths))
            if self.exists(name):
                profile = self.load(name)
                if description is not None:
                    profile.description = clean_description(description)
                captured.extra = profile.settings.extra
            else:
                profile = Profile.new(
                    name, clean_description(description) or "Snapshot of current settings"
                )

            profile.settings = captured
            profile.mcp_servers = live.read_mcp_servers(self.paths)
            profile.touch()
            self.save(profile)
            live.capture_doc(self.paths, self.paths.profile_doc(name))

            registry = self.load_registry()
            if name not in registry.profiles:
                registry.add(name)
                self.save_registry(registry)

        logger.info("Exported live settings to profile %s", name)
        return {
            "success": True,
            "profile": name,
            "message": f"Settings exported to profile '{name}'",
        }
