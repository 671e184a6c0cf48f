"""Record types for profiles, the registry and live settings.

Decoding is permissive: missing fields get their defaults and unknown fields
are kept in ``extra`` so they survive a load/save cycle. Encoding is
canonical: known fields first, in a fixed order, then ``extra``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from claude_switch.config import COMPONENT_KINDS, REGISTRY_VERSION, SELF_PLUGIN

MODE_ALL = "all"
MODE_WHITELIST = "whitelist"
COMPONENT_MODES = (MODE_ALL, MODE_WHITELIST)


def utc_now_iso() -> str:
    """Current UTC time as ``2024-01-31T12:00:00.000Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def default_permissions() -> dict[str, Any]:
    return {"defaultMode": "default"}


def _mapping(value: Any) -> dict[str, Any]:
    return copy.deepcopy(value) if isinstance(value, dict) else {}


def _extra(data: dict[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in data.items() if k not in known}


@dataclass
class Settings:
    """The part of settings.json a profile owns."""

    enabled_plugins: dict[str, bool] = field(default_factory=dict)
    hooks: dict[str, Any] = field(default_factory=dict)
    status_line: Any = None
    env: dict[str, Any] = field(default_factory=dict)
    permissions: dict[str, Any] = field(default_factory=default_permissions)
    always_thinking_enabled: bool = True
    auto_updates_channel: str = "latest"
    extra: dict[str, Any] = field(default_factory=dict)

    KEYS = (
        "enabledPlugins",
        "hooks",
        "statusLine",
        "env",
        "permissions",
        "alwaysThinkingEnabled",
        "autoUpdatesChannel",
    )

    @classmethod
    def from_dict(cls, data: Any) -> Settings:
        data = data if isinstance(data, dict) else {}
        permissions = data.get("permissions")
        thinking = data.get("alwaysThinkingEnabled")
        channel = data.get("autoUpdatesChannel")
        return cls(
            enabled_plugins=_mapping(data.get("enabledPlugins")),
            hooks=_mapping(data.get("hooks")),
            status_line=copy.deepcopy(data.get("statusLine")) or None,
            env=_mapping(data.get("env")),
            permissions=_mapping(permissions) if isinstance(permissions, dict) else default_permissions(),
            always_thinking_enabled=thinking if isinstance(thinking, bool) else True,
            auto_updates_channel=channel if isinstance(channel, str) and channel else "latest",
            extra=_extra(data, cls.KEYS),
        )

    @classmethod
    def from_live(cls, live: Any) -> Settings:
        """Capture the owned fields of a live settings.json, ignoring the rest."""
        settings = cls.from_dict(live)
        settings.extra = {}
        return settings

    def owned(self) -> dict[str, Any]:
        return {
            "enabledPlugins": copy.deepcopy(self.enabled_plugins),
            "hooks": copy.deepcopy(self.hooks),
            "statusLine": copy.deepcopy(self.status_line),
            "env": copy.deepcopy(self.env),
            "permissions": copy.deepcopy(self.permissions),
            "alwaysThinkingEnabled": self.always_thinking_enabled,
            "autoUpdatesChannel": self.auto_updates_channel,
        }

    def to_dict(self) -> dict[str, Any]:
        data = self.owned()
        data.update(copy.deepcopy(self.extra))
        return data

    @property
    def active_plugins(self) -> list[str]:
        return [name for name, enabled in self.enabled_plugins.items() if enabled]


def merge_live_settings(
    live: dict[str, Any] | None,
    settings: Settings,
    force_plugin: str | None = SELF_PLUGIN,
) -> dict[str, Any]:
    """Return ``live`` with the profile-owned keys replaced by ``settings``.

    Keys the profile does not own are kept as they are. A null statusLine
    removes the key. ``force_plugin`` is always left enabled.
    """
    merged = dict(live or {})
    merged.update(settings.owned())
    if merged.get("statusLine") is None:
        merged.pop("statusLine", None)
    if force_plugin:
        plugins = dict(merged["enabledPlugins"])
        plugins[force_plugin] = True
        merged["enabledPlugins"] = plugins
    return merged


@dataclass
class ComponentSelection:
    mode: str = MODE_ALL
    include: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ComponentSelection:
        data = data if isinstance(data, dict) else {}
        mode = data.get("mode")
        include = data.get("include")
        return cls(
            mode=mode if mode in COMPONENT_MODES else MODE_ALL,
            include=[str(i) for i in include] if isinstance(include, list) else [],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.mode, "include": list(self.include)}


def default_components(mode: str = MODE_ALL) -> dict[str, ComponentSelection]:
    return {kind: ComponentSelection(mode=mode) for kind in COMPONENT_KINDS}


@dataclass
class Profile:
    """A stored profile record (profile.json)."""

    name: str
    description: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    settings: Settings = field(default_factory=Settings)
    mcp_servers: dict[str, Any] = field(default_factory=dict)
    components: dict[str, ComponentSelection] = field(default_factory=default_components)
    extra: dict[str, Any] = field(default_factory=dict)

    KEYS = (
        "name",
        "description",
        "createdAt",
        "updatedAt",
        "settings",
        "mcpServers",
        "components",
    )

    @classmethod
    def new(cls, name: str, description: str = "", clean: bool = False) -> Profile:
        now = utc_now_iso()
        return cls(
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
            components=default_components(MODE_WHITELIST if clean else MODE_ALL),
        )

    @classmethod
    def from_dict(cls, data: Any, name: str | None = None) -> Profile:
        if not isinstance(data, dict):
            raise ValueError("profile record must be a JSON object")
        stored = data.get("components")
        stored = stored if isinstance(stored, dict) else {}
        components = default_components()
        for kind, selection in stored.items():
            components[kind] = ComponentSelection.from_dict(selection)
        return cls(
            name=str(data.get("name") or name or ""),
            description=str(data.get("description") or ""),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            settings=Settings.from_dict(data.get("settings")),
            mcp_servers=_mapping(data.get("mcpServers")),
            components=components,
            extra=_extra(data, cls.KEYS),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "settings": self.settings.to_dict(),
            "mcpServers": copy.deepcopy(self.mcp_servers),
            "components": {kind: sel.to_dict() for kind, sel in self.components.items()},
        }
        data.update(copy.deepcopy(self.extra))
        return data

    def touch(self) -> None:
        self.updated_at = utc_now_iso()


@dataclass
class Registry:
    """The installation-wide profiles.json."""

    active_profile: str = "current"
    profiles: list[str] = field(default_factory=list)
    last_switch: str | None = None
    created_at: str | None = None
    version: str | None = REGISTRY_VERSION
    extra: dict[str, Any] = field(default_factory=dict)

    KEYS = ("activeProfile", "profiles", "lastSwitch", "createdAt", "version")

    @classmethod
    def from_dict(cls, data: Any) -> Registry:
        data = data if isinstance(data, dict) else {}
        names: list[str] = []
        for entry in data.get("profiles") or []:
            # Older registries stored {"name": ...} objects.
            name = entry.get("name") if isinstance(entry, dict) else entry
            if isinstance(name, str) and name not in names:
                names.append(name)
        return cls(
            active_profile=data.get("activeProfile") or "current",
            profiles=names,
            last_switch=data.get("lastSwitch"),
            created_at=data.get("createdAt"),
            version=data.get("version"),
            extra=_extra(data, cls.KEYS),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "activeProfile": self.active_profile,
            "profiles": list(self.profiles),
        }
        if self.last_switch is not None:
            data["lastSwitch"] = self.last_switch
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.version is not None:
            data["version"] = self.version
        data.update(copy.deepcopy(self.extra))
        return data

    def add(self, name: str) -> None:
        if name not in self.profiles:
            self.profiles.append(name)

    def remove(self, name: str) -> None:
        self.profiles = [p for p in self.profiles if p != name]

    def rename(self, old: str, new: str) -> None:
        self.profiles = [new if p == old else p for p in self.profiles]
        if new not in self.profiles:
            self.profiles.append(new)
        if self.active_profile == old:
            self.active_profile = new
