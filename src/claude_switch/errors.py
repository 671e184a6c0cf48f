"""Exception hierarchy for claude-switch.

Every error raised by the core derives from ClaudeSwitchError so the CLI can
turn it into a single ``{"error": ...}`` payload.
"""

from __future__ import annotations


class ClaudeSwitchError(Exception):
    """Base exception for all profile operations."""


class ValidationError(ClaudeSwitchError, ValueError):
    """Raised for bad input, always before any mutation."""


class NotFoundError(ClaudeSwitchError, LookupError):
    """Raised when a profile, backup or component item does not exist."""


class ConflictError(ClaudeSwitchError):
    """Raised when a name is taken or a protected/active profile is targeted."""


class ProfileCorruptedError(ClaudeSwitchError):
    """Raised when a profile.json cannot be decoded."""


class LockTimeoutError(ClaudeSwitchError):
    """Raised when the process lock could not be acquired in time."""

    def __init__(self, lock_path, timeout: float):
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(
            f"Could not acquire lock {lock_path} within {timeout:g}s. "
            f"If no other claude-switch process is running, delete the lock file manually."
        )


class IntegrityError(ClaudeSwitchError):
    """Raised when a live component path is a real directory, not a link."""


class LinkError(ClaudeSwitchError):
    """Aggregated failure of one or more component links."""

    def __init__(self, failures: dict[str, str], results: list | None = None):
        self.failures = dict(failures)
        self.results = list(results or [])
        detail = "; ".join(f"{kind}: {msg}" for kind, msg in self.failures.items())
        super().__init__(f"Symlink switch failed: {detail}")


class SwitchError(ClaudeSwitchError):
    """Raised after a failed switch has been rolled back."""

    def __init__(self, profile: str, cause: BaseException):
        self.profile = profile
        super().__init__(f"Switch to '{profile}' failed and was rolled back: {cause}")
