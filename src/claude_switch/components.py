"""Component items (commands, skills, agents) inside profile directories.

An item named ``X`` is a directory ``X/``, a file ``X.md`` or a file with the
kind-specific extension (``X.skill`` for skills).
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from claude_switch.config import COMPONENT_KINDS

KIND_EXTENSIONS = {
    "commands": ".md",
    "skills": ".skill",
    "agents": ".md",
}


def item_suffixes(kind: str) -> tuple[str, ...]:
    ext = KIND_EXTENSIONS.get(kind, ".md")
    return (".md",) if ext == ".md" else (".md", ext)


def find_item(component_dir: Path, kind: str, name: str) -> Path | None:
    """Locate item ``name`` in ``component_dir``, or None."""
    candidates = [component_dir / name]
    candidates += [component_dir / f"{name}{suffix}" for suffix in item_suffixes(kind)]
    for candidate in candidates:
        if candidate.is_dir() or candidate.is_file():
            return candidate
    return None


def count_items(component_dir: Path, kind: str) -> int:
    if not component_dir.is_dir():
        return 0
    suffixes = item_suffixes(kind)
    count = 0
    for entry in component_dir.iterdir():
        if entry.name.startswith("."):
            continue
        if entry.is_dir() or entry.name.endswith(suffixes):
            count += 1
    return count


def component_counts(base_dir: Path) -> dict[str, int]:
    """Item counts per kind for a profile dir (or the live root)."""
    return {kind: count_items(base_dir / kind, kind) for kind in COMPONENT_KINDS}


def copy_tree(src: Path, dst: Path) -> None:
    """Recursively copy a directory, keeping symlinks as symlinks."""
    dst.mkdir(parents=True, exist_ok=True)

    for item in src.iterdir():
        item_dst = dst / item.name

        if item.is_symlink():
            if item_dst.is_symlink() or item_dst.is_file():
                item_dst.unlink()
            os.symlink(os.readlink(item), item_dst)
        elif item.is_dir():
            copy_tree(item, item_dst)
        elif item.is_file():
            shutil.copy2(item, item_dst)


def copy_item(src: Path, dest_dir: Path, force: bool = False) -> str:
    """Copy one item into ``dest_dir``.

    Returns "copied", "overwritten" or "skipped" (exists and not forced).
    """
    dst = dest_dir / src.name
    existed = dst.exists() or dst.is_symlink()
    if existed and not force:
        return "skipped"

    if existed:
        if dst.is_dir() and not dst.is_symlink():
            shutil.rmtree(dst)
        else:
            dst.unlink()

    dest_dir.mkdir(parents=True, exist_ok=True)
    if src.is_dir():
        copy_tree(src, dst)
    else:
        shutil.copy2(src, dst)
    return "overwritten" if existed else "copied"
