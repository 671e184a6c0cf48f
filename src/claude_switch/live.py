"""Reading and writing the live files Claude Code itself loads."""

from __future__ import annotations

import copy
from typing import Any

from claude_switch.atomic import read_json_lenient, write_atomic, write_json
from claude_switch.config import COMPONENT_KINDS, LiveStatePaths
from claude_switch.schema import Settings


def read_settings(paths: LiveStatePaths) -> dict[str, Any]:
    """Live settings.json as a dict; missing or unreadable gives {}."""
    data = read_json_lenient(paths.settings_path)
    return data if isinstance(data, dict) else {}


def write_settings(paths: LiveStatePaths, settings: dict[str, Any]) -> None:
    write_json(paths.settings_path, settings)


def read_mcp_servers(paths: LiveStatePaths) -> dict[str, Any]:
    data = read_json_lenient(paths.mcp_config_path)
    servers = data.get("mcpServers") if isinstance(data, dict) else None
    return copy.deepcopy(servers) if isinstance(servers, dict) else {}


def write_mcp_servers(paths: LiveStatePaths, servers: dict[str, Any]) -> None:
    """Replace the mcpServers section, keeping every other key of the file."""
    data = read_json_lenient(paths.mcp_config_path)
    data = data if isinstance(data, dict) else {}
    data["mcpServers"] = copy.deepcopy(servers)
    write_json(paths.mcp_config_path, data)


def install_doc(paths: LiveStatePaths, source) -> bool:
    """Make the live doc file a copy of ``source``, or delete it if ``source`` is absent.

    Returns True if a doc file is now present.
    """
    if source is not None and source.is_file():
        write_atomic(paths.doc_path, source.read_bytes())
        return True
    paths.doc_path.unlink(missing_ok=True)
    return False


def capture_doc(paths: LiveStatePaths, destination) -> bool:
    """Copy the live doc file to ``destination``, or remove ``destination``."""
    if paths.doc_path.is_file():
        write_atomic(destination, paths.doc_path.read_bytes())
        return True
    destination.unlink(missing_ok=True)
    return False


def summarize(paths: LiveStatePaths) -> dict[str, Any]:
    """Counts describing what the live configuration currently enables."""
    settings = Settings.from_live(read_settings(paths))
    return {
        "plugins": len(settings.active_plugins),
        "hooks": len(settings.hooks),
        "hasStatusLine": bool(settings.status_line),
        "mcpServers": len(read_mcp_servers(paths)),
    }


def managed_paths(paths: LiveStatePaths) -> list:
    """Live files a switch rewrites, in the order they are applied."""
    return [paths.settings_path, paths.doc_path, paths.mcp_config_path, paths.manifest_path]


def managed_links(paths: LiveStatePaths) -> dict:
    return {kind: paths.live_component_dir(kind) for kind in COMPONENT_KINDS}
