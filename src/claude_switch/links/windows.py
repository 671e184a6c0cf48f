"""Directory-junction manager for Windows."""

from __future__ import annotations

import contextlib
import logging
import os
import stat
from pathlib import Path

from claude_switch.links.base import LinkManager

logger = logging.getLogger(__name__)


class WindowsLinkManager(LinkManager):
    """Directory junctions, which need no admin rights but require absolute paths.

    A junction that another process has open cannot be overwritten in place,
    so replacement renames the old one aside before moving the new one in.
    """

    def is_link(self, path: Path) -> bool:
        try:
            st = os.lstat(path)
        except OSError:
            return False
        # st_reparse_tag is only populated on Windows.
        if getattr(st, "st_reparse_tag", 0) == stat.IO_REPARSE_TAG_MOUNT_POINT:
            return True
        return stat.S_ISLNK(st.st_mode)

    def create(self, target: Path, link: Path) -> None:
        import _winapi

        _winapi.CreateJunction(str(Path(target).resolve()), str(Path(link).absolute()))

    def create_raw(self, raw_target: str, link: Path) -> None:
        target = raw_target
        if target.startswith("\\\\?\\"):
            target = target[4:]
        self.create(Path(target), link)

    def remove(self, link: Path) -> None:
        try:
            os.rmdir(link)
        except OSError:
            os.unlink(link)

    def replace(self, link: Path, create_new) -> None:
        link = Path(link)
        new = self._temp_sibling(link, "new")
        old = self._temp_sibling(link, "old")
        create_new(new)
        try:
            os.rename(link, old)
        except BaseException:
            with contextlib.suppress(OSError):
                self.remove(new)
            raise
        try:
            os.rename(new, link)
        except BaseException:
            # Put the previous junction back so the live path is never left empty.
            with contextlib.suppress(OSError):
                os.rename(old, link)
            with contextlib.suppress(OSError):
                self.remove(new)
            raise
        try:
            self.remove(old)
        except OSError as e:
            logger.warning("Could not remove old junction %s: %s", old, e)

    @property
    def display_name(self) -> str:
        return "junction"
