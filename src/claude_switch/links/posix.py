"""Symlink manager for POSIX systems."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path

from claude_switch.links.base import LinkManager


class PosixLinkManager(LinkManager):
    """Relative symlinks, so the whole tree can move without breaking links."""

    def is_link(self, path: Path) -> bool:
        return os.path.islink(path)

    def create(self, target: Path, link: Path) -> None:
        link = Path(link)
        rel_target = os.path.relpath(Path(target), link.parent)
        os.symlink(rel_target, link, target_is_directory=True)

    def create_raw(self, raw_target: str, link: Path) -> None:
        os.symlink(raw_target, link, target_is_directory=True)

    def remove(self, link: Path) -> None:
        os.unlink(link)

    def replace(self, link: Path, create_new) -> None:
        # rename(2) over an existing symlink swaps it in a single step.
        link = Path(link)
        tmp = self._temp_sibling(link, "new")
        create_new(tmp)
        try:
            os.replace(tmp, link)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise

    @property
    def display_name(self) -> str:
        return "symlink"
