"""Abstract base class for component link managers."""

from __future__ import annotations

import logging
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from claude_switch.config import COMPONENT_KINDS, LiveStatePaths
from claude_switch.errors import IntegrityError, LinkError

logger = logging.getLogger(__name__)


class LinkManager(ABC):
    """Keeps a live directory pointing at a profile's component directory."""

    @abstractmethod
    def is_link(self, path: Path) -> bool:
        """True if ``path`` is a link (dangling or not)."""

    @abstractmethod
    def create(self, target: Path, link: Path) -> None:
        """Create ``link`` pointing at ``target``. ``link`` must not exist."""

    @abstractmethod
    def create_raw(self, raw_target: str, link: Path) -> None:
        """Create ``link`` with exactly the target text previously read from a link."""

    @abstractmethod
    def remove(self, link: Path) -> None:
        """Remove the link itself, never what it points at."""

    @abstractmethod
    def replace(self, link: Path, create_new) -> None:
        """Swap the existing link at ``link`` for one made by ``create_new(path)``."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name of the link flavour."""

    def read_target(self, path: Path) -> str | None:
        try:
            return os.readlink(path)
        except OSError:
            return None

    def ensure_link(self, live_path: Path, target_dir: Path) -> None:
        """Point ``live_path`` at ``target_dir``, refusing to touch real directories."""
        live_path = Path(live_path)
        if self.is_link(live_path):
            self.replace(live_path, lambda tmp: self.create(target_dir, tmp))
        elif live_path.exists():
            raise IntegrityError(
                f"'{live_path}' is a real directory, not a symlink. Run 'init' first."
            )
        else:
            live_path.parent.mkdir(parents=True, exist_ok=True)
            self.create(target_dir, live_path)

    def restore_link(self, live_path: Path, raw_target: str) -> None:
        """Put back a link exactly as it was captured by read_target()."""
        live_path = Path(live_path)
        if self.is_link(live_path):
            if self.read_target(live_path) == raw_target:
                return
            self.replace(live_path, lambda tmp: self.create_raw(raw_target, tmp))
        elif not live_path.exists():
            self.create_raw(raw_target, live_path)

    def ensure_links(self, paths: LiveStatePaths, profile_name: str) -> list[dict[str, Any]]:
        """Link every component kind to ``profile_name``.

        All kinds are attempted; failures are collected and raised together
        as one LinkError afterwards.
        """
        results: list[dict[str, Any]] = []
        failures: dict[str, str] = {}

        for kind in COMPONENT_KINDS:
            live_dir = paths.live_component_dir(kind)
            target_dir = paths.profile_component_dir(profile_name, kind)
            try:
                if not target_dir.exists():
                    target_dir.mkdir(parents=True)
                    results.append({"dir": kind, "action": "created_target", "path": str(target_dir)})
                self.ensure_link(live_dir, target_dir)
                results.append(
                    {
                        "dir": kind,
                        "action": "switched",
                        "type": self.display_name,
                        "link": str(live_dir),
                        "target": str(target_dir),
                    }
                )
            except Exception as e:
                logger.warning("Linking %s failed: %s", kind, e)
                failures[kind] = str(e)
                results.append({"dir": kind, "action": "error", "error": str(e)})

        if failures:
            raise LinkError(failures, results)
        return results

    @staticmethod
    def _temp_sibling(path: Path, tag: str) -> Path:
        return path.with_name(f".{path.name}.{tag}-{uuid.uuid4().hex[:8]}")
