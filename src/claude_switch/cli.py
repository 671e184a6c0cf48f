"""CLI interface for claude-switch.

Every command prints its result as JSON on stdout. Failures print
``{"error": "..."}`` on stderr and exit with status 1.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any, Callable

import click

from claude_switch import __version__
from claude_switch.backup import BackupManager
from claude_switch.bootstrap import initialize
from claude_switch.config import (
    CLAUDE_DIR_ENV,
    CLAUDE_JSON_ENV,
    PROTECTED_PROFILE,
    LiveStatePaths,
)
from claude_switch.errors import ClaudeSwitchError
from claude_switch.links import LinkManager, create_link_manager
from claude_switch.lock import ProcessLock
from claude_switch.logging_setup import setup_logging
from claude_switch.profiles import COPY_ITEMS, ProfileStore
from claude_switch.spread import ProfileSpreader
from claude_switch.switch import SwitchEngine


@dataclass
class App:
    """The collaborators one invocation works with, sharing a single lock."""

    paths: LiveStatePaths
    lock: ProcessLock
    links: LinkManager
    store: ProfileStore
    backups: BackupManager
    engine: SwitchEngine
    spreader: ProfileSpreader

    @classmethod
    def build(cls, paths: LiveStatePaths) -> App:
        lock = ProcessLock(paths.lock_path)
        links = create_link_manager()
        store = ProfileStore(paths, lock, links)
        backups = BackupManager(paths, lock)
        return cls(
            paths=paths,
            lock=lock,
            links=links,
            store=store,
            backups=backups,
            engine=SwitchEngine(paths, store, backups, links, lock),
            spreader=ProfileSpreader(store),
        )


def emit(result: Any) -> None:
    click.echo(json.dumps(result, indent=2, ensure_ascii=False))


def fail(message: str) -> None:
    click.echo(json.dumps({"error": message}, ensure_ascii=False), err=True)
    sys.exit(1)


def run(action: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """Call ``action`` and print its result, or its error."""
    try:
        result = action(*args, **kwargs)
    except (ClaudeSwitchError, OSError) as e:
        fail(str(e))
    else:
        emit(result)


pass_app = click.make_pass_decorator(App)


@click.group()
@click.version_option(version=__version__, prog_name="claude-switch")
@click.option("--verbose", "-v", is_flag=True, help="Log diagnostics to stderr.")
@click.option(
    "--claude-dir",
    envvar=CLAUDE_DIR_ENV,
    default=None,
    help="Claude configuration directory (default: ~/.claude).",
)
@click.option(
    "--claude-json",
    envvar=CLAUDE_JSON_ENV,
    default=None,
    help="File holding the mcpServers section (default: ~/.claude.json).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, claude_dir: str | None, claude_json: str | None) -> None:
    """Switch Claude Code between named configuration profiles."""
    setup_logging(verbose)
    paths = LiveStatePaths.from_env(
        {CLAUDE_DIR_ENV: claude_dir or "", CLAUDE_JSON_ENV: claude_json or ""}
    )
    ctx.obj = App.build(paths)


@cli.command()
@pass_app
def init(app: App) -> None:
    """Initialize the profile system and link component directories."""
    run(initialize, app.paths, app.store, app.links)


@cli.command("list")
@pass_app
def list_cmd(app: App) -> None:
    """List all profiles."""
    run(app.store.list)


@cli.command()
@click.argument("name")
@pass_app
def get(app: App, name: str) -> None:
    """Show one profile in detail."""
    run(app.store.get, name)


@cli.command()
@click.argument("name")
@pass_app
def switch(app: App, name: str) -> None:
    """Switch to a profile."""
    run(app.engine.switch, name)


@cli.command()
@click.argument("name")
@click.option(
    "--copy",
    "copy_items",
    default="",
    help=f"Comma-separated items to copy: {','.join(COPY_ITEMS)},all.",
)
@click.option("--from-current", is_flag=True, help="Copy everything (same as --copy=all).")
@click.option("--clean", is_flag=True, help="Empty profile with whitelist components.")
@click.option("--desc", default="", help="Profile description.")
@pass_app
def create(app: App, name: str, copy_items: str, from_current: bool, clean: bool, desc: str) -> None:
    """Create a new profile."""
    run(
        app.store.create,
        name,
        description=desc,
        copy=copy_items,
        from_current=from_current,
        clean=clean,
    )


@cli.command()
@click.argument("name")
@pass_app
def delete(app: App, name: str) -> None:
    """Delete a profile."""
    run(app.store.delete, name)


@cli.command()
@click.argument("old")
@click.argument("new")
@pass_app
def rename(app: App, old: str, new: str) -> None:
    """Rename a profile."""
    run(app.store.rename, old, new)


@cli.command()
@click.argument("name", default=PROTECTED_PROFILE)
@click.option("--desc", default=None, help="Replace the profile description.")
@pass_app
def export(app: App, name: str, desc: str | None) -> None:
    """Export the live settings into a profile (default: 'current')."""
    run(app.store.export_live, name, desc)


@cli.command()
@pass_app
def backup(app: App) -> None:
    """Back up the live settings."""
    run(lambda: {"success": True, "backup": str(app.backups.snapshot())})


@cli.command()
@pass_app
def backups(app: App) -> None:
    """List backups, newest first."""
    run(app.backups.list)


@cli.command()
@click.argument("name")
@pass_app
def restore(app: App, name: str) -> None:
    """Restore the live settings from a backup."""
    run(app.backups.restore, name)


@cli.command()
@click.argument("item_type", metavar="TYPE")
@click.argument("name", required=False)
@click.option("--profiles", default="", help="Comma-separated target profiles.")
@click.option("--all", "all_profiles", is_flag=True, help="Target every other profile.")
@click.option("--force", is_flag=True, help="Overwrite existing items.")
@pass_app
def spread(
    app: App,
    item_type: str,
    name: str | None,
    profiles: str,
    all_profiles: bool,
    force: bool,
) -> None:
    """Copy one item from the active profile into other profiles.

    TYPE is one of: commands, skills, agents, hooks, mcp, env, plugins,
    statusline, permissions, claudemd.
    """
    run(
        app.spreader.spread,
        item_type,
        name,
        profiles=profiles,
        all_profiles=all_profiles,
        force=force,
    )


@cli.command("install-all")
@click.argument("plugin")
@click.option("--profiles", default="", help="Comma-separated target profiles.")
@click.option("--all", "all_profiles", is_flag=True, help="Target every profile.")
@pass_app
def install_all(app: App, plugin: str, profiles: str, all_profiles: bool) -> None:
    """Enable a plugin across profiles."""
    run(app.spreader.install_all, plugin, profiles=profiles, all_profiles=all_profiles)


@cli.command("uninstall-all")
@click.argument("plugin")
@click.option("--profiles", default="", help="Comma-separated target profiles.")
@click.option("--all", "all_profiles", is_flag=True, help="Target every profile.")
@pass_app
def uninstall_all(app: App, plugin: str, profiles: str, all_profiles: bool) -> None:
    """Remove a plugin from profiles."""
    run(app.spreader.uninstall_all, plugin, profiles=profiles, all_profiles=all_profiles)
