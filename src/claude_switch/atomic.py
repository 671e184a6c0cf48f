"""Atomic file writes and JSON helpers.

Readers never observe a partially written file: content goes to a temp file
in the destination directory and is renamed over the target in one step.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".tmp-"


def write_atomic(path: Path, content: str | bytes) -> None:
    """Replace ``path`` with ``content`` via temp file + rename.

    Windows may refuse to rename onto a destination that another process has
    open. In that case the destination is removed right before a second
    rename, which leaves a brief window where the file is absent. That window
    exists on Windows only.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8") if isinstance(content, str) else content

    with tempfile.NamedTemporaryFile(
        mode="wb", dir=path.parent, prefix=TEMP_PREFIX, suffix=".tmp", delete=False
    ) as tmp_file:
        temp_path = Path(tmp_file.name)
        try:
            tmp_file.write(data)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        except BaseException:
            tmp_file.close()
            with contextlib.suppress(OSError):
                temp_path.unlink()
            raise

    try:
        _copy_mode(path, temp_path)
        _replace(temp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            temp_path.unlink()
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(data))


def _copy_mode(dst: Path, temp_path: Path) -> None:
    """Give the temp file the mode the destination has, or would get if new."""
    try:
        shutil.copymode(dst, temp_path)
    except FileNotFoundError:
        # NamedTemporaryFile creates 0600; new files get the umask default.
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(temp_path, 0o666 & ~umask)


def _replace(src: Path, dst: Path) -> None:
    try:
        os.replace(src, dst)
    except PermissionError:
        if sys.platform != "win32" or not dst.exists():
            raise
        dst.unlink()
        os.replace(src, dst)


def read_json(path: Path, default: Any = None) -> Any:
    """Load JSON from ``path``. Missing file returns ``default``; corrupt raises."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    return json.loads(text)


def read_json_lenient(path: Path) -> Any:
    """Like read_json, but corrupt or unreadable files also return None."""
    try:
        return read_json(path)
    except (ValueError, OSError):
        return None


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json(path: Path, data: Any) -> None:
    write_atomic(path, dump_json(data))


def read_bytes_or_none(path: Path) -> bytes | None:
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return None
