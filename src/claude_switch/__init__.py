"""claude-switch: named, switchable configuration profiles for Claude Code."""

__version__ = "1.1.0"
