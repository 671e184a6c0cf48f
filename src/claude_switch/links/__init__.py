"""Link managers for the live component directories."""

import sys

from claude_switch.links.base import LinkManager
from claude_switch.links.posix import PosixLinkManager
from claude_switch.links.windows import WindowsLinkManager


def create_link_manager(platform: str | None = None) -> LinkManager:
    """Factory: pick the link flavour for the running platform."""
    platform = platform or sys.platform
    if platform == "win32":
        return WindowsLinkManager()
    return PosixLinkManager()


__all__ = [
    "LinkManager",
    "PosixLinkManager",
    "WindowsLinkManager",
    "create_link_manager",
]
