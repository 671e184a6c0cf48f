"""First-run setup: the profile tree, the two built-in profiles and the live links."""

from __future__ import annotations

import logging
import shutil
from typing import Any

from claude_switch.config import (
    CLEAN_PROFILE,
    COMPONENT_KINDS,
    PROTECTED_PROFILE,
    REGISTRY_VERSION,
    LiveStatePaths,
)
from claude_switch.links import LinkManager
from claude_switch.profiles import ProfileStore
from claude_switch.schema import Profile, Registry, Settings, utc_now_iso

logger = logging.getLogger(__name__)

CLEAN_DESCRIPTION = "Clean slate - no plugins, hooks, MCP, commands, skills, or agents"


def _stamp() -> str:
    return utc_now_iso().replace(":", "-").replace(".", "-")


def initialize(paths: LiveStatePaths, store: ProfileStore, links: LinkManager) -> dict[str, Any]:
    """Set up the profile system. Safe to run again on an initialized tree."""
    with store.lock:
        paths.state_dir.mkdir(parents=True, exist_ok=True)
        paths.backups_dir.mkdir(parents=True, exist_ok=True)

        if not paths.registry_path.exists():
            store.save_registry(
                Registry(
                    active_profile=PROTECTED_PROFILE,
                    profiles=[PROTECTED_PROFILE, CLEAN_PROFILE],
                    created_at=utc_now_iso(),
                    version=REGISTRY_VERSION,
                    extra={"symlinkEnabled": True},
                )
            )

        if not store.exists(PROTECTED_PROFILE):
            store.export_live(PROTECTED_PROFILE, "Snapshot of current settings")

        results = []
        for kind in COMPONENT_KINDS:
            results.extend(_adopt_component_dir(paths, links, kind))

        if not store.exists(CLEAN_PROFILE):
            _create_clean(paths, store)

    logger.info("Initialized profile system in %s", paths.state_dir)
    return {
        "success": True,
        "message": f"Profile system initialized with {links.display_name} support",
        "profilesDir": str(paths.state_dir),
        "symlinks": results,
        "profiles": store.list(),
    }


def _adopt_component_dir(paths: LiveStatePaths, links: LinkManager, kind: str) -> list[dict[str, Any]]:
    """Move a live component directory into 'current' and link it back."""
    live_dir = paths.live_component_dir(kind)
    profile_dir = paths.profile_component_dir(PROTECTED_PROFILE, kind)

    if links.is_link(live_dir):
        return [{"dir": kind, "action": "already_symlink", "target": links.read_target(live_dir)}]

    results = []
    if live_dir.exists():
        if profile_dir.exists():
            # Never merge: park the old copy next to it.
            parked = profile_dir.with_name(f"{kind}.backup-{_stamp()}")
            profile_dir.rename(parked)
            logger.warning("Moved existing %s aside to %s", profile_dir, parked)
        profile_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(live_dir), str(profile_dir))
        results.append({"dir": kind, "action": "moved", "from": str(live_dir), "to": str(profile_dir)})
    else:
        profile_dir.mkdir(parents=True, exist_ok=True)
        results.append({"dir": kind, "action": "created_empty", "path": str(profile_dir)})

    links.create(profile_dir, live_dir)
    results.append(
        {
            "dir": kind,
            "action": "symlink_created",
            "type": links.display_name,
            "link": str(live_dir),
            "target": str(profile_dir),
        }
    )
    return results


def _create_clean(paths: LiveStatePaths, store: ProfileStore) -> None:
    profile = Profile.new(CLEAN_PROFILE, CLEAN_DESCRIPTION, clean=True)
    profile.settings = Settings()
    store.save(profile)
    for kind in COMPONENT_KINDS:
        paths.profile_component_dir(CLEAN_PROFILE, kind).mkdir(parents=True, exist_ok=True)
    store.ensure_switch_command(PROTECTED_PROFILE, CLEAN_PROFILE)

    registry = store.load_registry()
    registry.add(CLEAN_PROFILE)
    store.save_registry(registry)
