"""Cross-process lock guarding every mutation of profiles and live state.

The lock is a file created with O_EXCL. Its content ``{"pid", "time"}`` is
diagnostic only; presence of the file is what excludes other processes.
Locking is cooperative: a process that ignores the file is not stopped.
"""

from __future__ import annotations

import json
import logging
import os
import random
import time
from pathlib import Path
from typing import Any, Callable, TypeVar

from claude_switch.config import LOCK_STALE_AFTER, LOCK_TIMEOUT
from claude_switch.errors import LockTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProcessLock:
    """File lock with staleness detection.

    Reentrant per instance: nested ``with lock:`` blocks on the same object
    only touch the file at the outermost level.
    """

    def __init__(
        self,
        path: Path,
        timeout: float = LOCK_TIMEOUT,
        stale_after: float = LOCK_STALE_AFTER,
        retry_delay: tuple[float, float] = (0.01, 0.05),
    ):
        self.path = Path(path)
        self.timeout = timeout
        self.stale_after = stale_after
        self.retry_delay = retry_delay
        self._depth = 0

    @property
    def held(self) -> bool:
        return self._depth > 0

    def acquire(self) -> None:
        if self._depth:
            self._depth += 1
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.timeout
        while True:
            if self._try_create():
                self._depth = 1
                logger.debug("Acquired lock %s", self.path)
                return
            if self._remove_if_stale():
                continue
            if time.monotonic() >= deadline:
                raise LockTimeoutError(self.path, self.timeout)
            time.sleep(random.uniform(*self.retry_delay))

    def release(self) -> None:
        if not self._depth:
            return
        self._depth -= 1
        if self._depth:
            return
        try:
            self.path.unlink()
        except OSError as e:
            # Best-effort: a leftover file is reclaimed by the staleness check.
            logger.warning("Failed to remove lock file %s: %s", self.path, e)
        else:
            logger.debug("Released lock %s", self.path)

    def with_lock(self, action: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``action`` while holding the lock."""
        with self:
            return action(*args, **kwargs)

    def __enter__(self) -> ProcessLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        payload = json.dumps({"pid": os.getpid(), "time": int(time.time() * 1000)})
        try:
            # One write call, so readers see either nothing or the whole record.
            os.write(fd, payload.encode("utf-8"))
        finally:
            os.close(fd)
        return True

    def _remove_if_stale(self) -> bool:
        """Delete the lock file if its holder looks dead. Returns True if removed."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # Released between our create attempt and this read.
            return True
        except OSError:
            return False

        try:
            info = json.loads(raw)
            acquired_ms = float(info["time"])
        except (ValueError, TypeError, KeyError):
            if not raw:
                # Empty means the holder is mid-write, or died right after creating it.
                return self._remove_if_older(self._mtime_age(), None)
            logger.warning("Removing unreadable lock file %s", self.path)
            return self._unlink_quietly()

        pid = info.get("pid") if isinstance(info, dict) else None
        return self._remove_if_older(time.time() - acquired_ms / 1000.0, pid)

    def _mtime_age(self) -> float:
        try:
            return time.time() - self.path.stat().st_mtime
        except FileNotFoundError:
            return float("inf")

    def _remove_if_older(self, age: float, pid: Any) -> bool:
        if age <= self.stale_after:
            return False
        logger.warning("Removing stale lock %s (pid %s, %.0fs old)", self.path, pid, age)
        return self._unlink_quietly()

    def _unlink_quietly(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        return True
