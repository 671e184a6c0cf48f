"""Tests for profile, registry and settings records."""

import re

import pytest

from claude_switch.config import SELF_PLUGIN
from claude_switch.schema import (
    MODE_ALL,
    MODE_WHITELIST,
    Profile,
    Registry,
    Settings,
    merge_live_settings,
    utc_now_iso,
)


def test_utc_now_iso_format():
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", utc_now_iso())


class TestSettings:
    def test_defaults_for_missing_fields(self):
        settings = Settings.from_dict({})
        assert settings.enabled_plugins == {}
        assert settings.status_line is None
        assert settings.permissions == {"defaultMode": "default"}
        assert settings.always_thinking_enabled is True
        assert settings.auto_updates_channel == "latest"

    def test_unknown_fields_survive_round_trip(self):
        data = Settings().to_dict()
        data["futureFlag"] = {"x": 1}
        assert Settings.from_dict(data).to_dict() == data

    def test_from_live_ignores_unowned_keys(self, live_seed):
        settings = Settings.from_live(live_seed["settings"])
        assert settings.extra == {}
        assert "model" not in settings.to_dict()
        assert settings.env == {"EDITOR": "vim"}

    def test_active_plugins(self, live_seed):
        settings = Settings.from_live(live_seed["settings"])
        assert settings.active_plugins == ["formatter@tools", SELF_PLUGIN]


class TestMergeLiveSettings:
    def test_keeps_unowned_keys(self):
        merged = merge_live_settings({"model": "opus", "hooks": {"A": []}}, Settings())
        assert merged["model"] == "opus"
        assert merged["hooks"] == {}

    def test_null_status_line_removes_key(self):
        merged = merge_live_settings({"statusLine": {"type": "command"}}, Settings())
        assert "statusLine" not in merged

    def test_forces_self_plugin(self):
        settings = Settings(enabled_plugins={SELF_PLUGIN: False, "x@y": True})
        merged = merge_live_settings({}, settings)
        assert merged["enabledPlugins"] == {SELF_PLUGIN: True, "x@y": True}
        # The profile record itself is not modified.
        assert settings.enabled_plugins[SELF_PLUGIN] is False


class TestProfile:
    def test_new_profile_components(self):
        assert Profile.new("a").components["commands"].mode == MODE_ALL
        clean = Profile.new("b", clean=True)
        assert {sel.mode for sel in clean.components.values()} == {MODE_WHITELIST}

    def test_canonical_key_order_then_extra(self):
        data = Profile.new("dev", "Development").to_dict()
        data["custom"] = True
        encoded = Profile.from_dict(data).to_dict()
        assert list(encoded) == [
            "name",
            "description",
            "createdAt",
            "updatedAt",
            "settings",
            "mcpServers",
            "components",
            "custom",
        ]

    def test_permissive_decode(self):
        profile = Profile.from_dict({"settings": None, "components": {"commands": "bad"}}, name="x")
        assert profile.name == "x"
        assert profile.settings.hooks == {}
        assert profile.components["commands"].mode == MODE_ALL

    def test_non_object_rejected(self):
        with pytest.raises(ValueError):
            Profile.from_dict(["not", "a", "profile"])


class TestRegistry:
    def test_legacy_object_entries(self):
        registry = Registry.from_dict({"profiles": [{"name": "a"}, "b", "a"]})
        assert registry.profiles == ["a", "b"]
        assert registry.active_profile == "current"

    def test_to_dict_omits_unset_fields(self):
        registry = Registry(active_profile="x", profiles=["x"], version=None)
        assert registry.to_dict() == {"activeProfile": "x", "profiles": ["x"]}

    def test_rename_moves_active_pointer(self):
        registry = Registry(active_profile="old", profiles=["current", "old"])
        registry.rename("old", "new")
        assert registry.profiles == ["current", "new"]
        assert registry.active_profile == "new"

    def test_extra_fields_kept(self):
        registry = Registry.from_dict({"activeProfile": "a", "symlinkEnabled": True})
        assert registry.to_dict()["symlinkEnabled"] is True
