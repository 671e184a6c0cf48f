"""Copy single items from the active profile into other profiles.

Three families of item are understood:

* component items (a command, skill or agent) copied as files/directories
* keyed entries of a profile map (a hook event, an MCP server, an env var,
  a plugin flag)
* whole values (the status line, the permissions block, the CLAUDE.md file)

Plugin enable/disable across many profiles lives here too, since it targets
profiles the same way.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterable

from claude_switch import live
from claude_switch.atomic import write_atomic
from claude_switch.components import copy_item, find_item
from claude_switch.config import COMPONENT_KINDS, SELF_PLUGIN
from claude_switch.errors import ConflictError, NotFoundError, ValidationError
from claude_switch.profiles import ProfileStore
from claude_switch.schema import Profile

logger = logging.getLogger(__name__)

KEYED_ITEMS: dict[str, Callable[[Profile], dict[str, Any]]] = {
    "hooks": lambda profile: profile.settings.hooks,
    "mcp": lambda profile: profile.mcp_servers,
    "env": lambda profile: profile.settings.env,
    "plugins": lambda profile: profile.settings.enabled_plugins,
}
VALUE_ITEMS = ("statusline", "permissions", "claudemd")
SPREAD_TYPES = COMPONENT_KINDS + tuple(KEYED_ITEMS) + VALUE_ITEMS


def _split(profiles: Iterable[str] | str | None) -> list[str]:
    if isinstance(profiles, str):
        profiles = profiles.split(",")
    return list(dict.fromkeys(p.strip() for p in (profiles or []) if p and p.strip()))


def _summary(results: list[dict[str, Any]], done: str) -> dict[str, int]:
    skipped = sum(1 for r in results if r["status"] == "skipped")
    return {done: len(results) - skipped, "skipped": skipped}


class ProfileSpreader:
    """Batch operations that write into several profiles at once."""

    def __init__(self, store: ProfileStore):
        self.store = store
        self.paths = store.paths

    def resolve_targets(
        self,
        profiles: Iterable[str] | str | None,
        all_profiles: bool,
        active: str,
        include_active: bool = False,
    ) -> list[str]:
        if all_profiles:
            names = [summary["name"] for summary in self.store.list()]
            targets = [n for n in names if include_active or n != active]
        else:
            targets = _split(profiles)
            for name in targets:
                if not self.store.exists(name):
                    raise NotFoundError(f"Profile '{name}' does not exist")
            if active in targets and not include_active:
                raise ConflictError(
                    f"Cannot spread to the active profile '{active}' - it is the source"
                )

        if not targets:
            raise ValidationError("No target profiles. Use --profiles=a,b or --all")
        return targets

    def spread(
        self,
        item_type: str,
        name: str | None = None,
        *,
        profiles: Iterable[str] | str | None = None,
        all_profiles: bool = False,
        force: bool = False,
    ) -> dict[str, Any]:
        """Copy one item from the active profile into the target profiles."""
        if item_type not in SPREAD_TYPES:
            raise ValidationError(
                f"Invalid spread type: {item_type}. Valid types: {', '.join(SPREAD_TYPES)}"
            )
        if item_type not in VALUE_ITEMS and not name:
            raise ValidationError(f"Item name required for spread {item_type}")

        with self.store.lock:
            active = self.store.active_profile
            targets = self.resolve_targets(profiles, all_profiles, active)

            if item_type in COMPONENT_KINDS:
                results = self._spread_component(active, item_type, name, targets, force)
            elif item_type in KEYED_ITEMS:
                results = self._spread_keyed(active, item_type, name, targets, force)
            else:
                results = self._spread_value(active, item_type, targets, force)

        summary = _summary(results, "copied")
        logger.info(
            "Spread %s %s from %s: %d copied, %d skipped",
            item_type, name or "", active, summary["copied"], summary["skipped"],
        )
        return {
            "success": True,
            "type": item_type,
            "name": name,
            "source": active,
            "results": results,
            "summary": summary,
        }

    def _spread_component(self, active, kind, name, targets, force):
        source = find_item(self.paths.profile_component_dir(active, kind), kind, name)
        if source is None:
            raise NotFoundError(f"{kind} item '{name}' not found in profile '{active}'")
        return [
            {
                "profile": target,
                "status": copy_item(source, self.paths.profile_component_dir(target, kind), force),
            }
            for target in targets
        ]

    def _spread_keyed(self, active, item_type, key, targets, force):
        section = KEYED_ITEMS[item_type]
        source = section(self.store.load(active))
        if key not in source:
            raise NotFoundError(f"{item_type} entry '{key}' not found in profile '{active}'")

        results = []
        for target in targets:
            profile = self.store.load(target)
            entries = section(profile)
            existed = key in entries
            if existed and not force:
                results.append({"profile": target, "status": "skipped"})
                continue
            entries[key] = copy.deepcopy(source[key])
            profile.touch()
            self.store.save(profile)
            results.append({"profile": target, "status": "overwritten" if existed else "copied"})
        return results

    def _spread_value(self, active, item_type, targets, force):
        if item_type == "claudemd":
            return self._spread_doc(active, targets, force)

        source = self.store.load(active).settings
        value = source.status_line if item_type == "statusline" else source.permissions
        if not value:
            raise NotFoundError(f"Profile '{active}' has no {item_type} to spread")

        results = []
        for target in targets:
            profile = self.store.load(target)
            settings = profile.settings
            existed = bool(settings.status_line if item_type == "statusline" else settings.permissions)
            if existed and not force:
                results.append({"profile": target, "status": "skipped"})
                continue
            if item_type == "statusline":
                settings.status_line = copy.deepcopy(value)
            else:
                settings.permissions = copy.deepcopy(value)
            profile.touch()
            self.store.save(profile)
            results.append({"profile": target, "status": "overwritten" if existed else "copied"})
        return results

    def _spread_doc(self, active, targets, force):
        source = self.paths.profile_doc(active)
        if not source.is_file():
            raise NotFoundError(f"Profile '{active}' has no {source.name}")
        content = source.read_bytes()

        results = []
        for target in targets:
            destination = self.paths.profile_doc(target)
            existed = destination.is_file()
            if existed and not force:
                results.append({"profile": target, "status": "skipped"})
                continue
            write_atomic(destination, content)
            results.append({"profile": target, "status": "overwritten" if existed else "copied"})
        return results

    # -- plugins -----------------------------------------------------------

    def install_all(
        self,
        plugin: str,
        *,
        profiles: Iterable[str] | str | None = None,
        all_profiles: bool = False,
    ) -> dict[str, Any]:
        """Enable ``plugin`` in every targeted profile (active one included)."""
        return self._set_plugin(plugin, True, profiles, all_profiles)

    def uninstall_all(
        self,
        plugin: str,
        *,
        profiles: Iterable[str] | str | None = None,
        all_profiles: bool = False,
    ) -> dict[str, Any]:
        """Remove ``plugin`` from every targeted profile (active one included)."""
        if plugin == SELF_PLUGIN:
            raise ValidationError(
                f"Cannot uninstall {SELF_PLUGIN}: it is required to switch profiles"
            )
        return self._set_plugin(plugin, False, profiles, all_profiles)

    def _set_plugin(self, plugin, enable, profiles, all_profiles) -> dict[str, Any]:
        if not plugin:
            raise ValidationError("Plugin name required")

        results = []
        with self.store.lock:
            active = self.store.active_profile
            targets = self.resolve_targets(profiles, all_profiles, active, include_active=True)

            for target in targets:
                profile = self.store.load(target)
                plugins = profile.settings.enabled_plugins
                unchanged = plugins.get(plugin) is True if enable else plugin not in plugins
                if unchanged:
                    results.append({"profile": target, "status": "skipped"})
                    continue
                if enable:
                    plugins[plugin] = True
                else:
                    del plugins[plugin]
                profile.touch()
                self.store.save(profile)
                results.append({"profile": target, "status": "updated"})

            if active in targets:
                self._set_live_plugin(plugin, enable)

        summary = _summary(results, "updated")
        logger.info(
            "%s %s: %d updated, %d skipped",
            "Enabled" if enable else "Removed", plugin, summary["updated"], summary["skipped"],
        )
        return {"success": True, "plugin": plugin, "results": results, "summary": summary}

    def _set_live_plugin(self, plugin: str, enable: bool) -> None:
        settings = live.read_settings(self.paths)
        plugins = settings.get("enabledPlugins")
        plugins = dict(plugins) if isinstance(plugins, dict) else {}
        if enable:
            if plugins.get(plugin) is True:
                return
            plugins[plugin] = True
        else:
            if plugin not in plugins:
                return
            del plugins[plugin]
        settings["enabledPlugins"] = plugins
        live.write_settings(self.paths, settings)
