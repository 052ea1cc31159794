"""Typer application for changebump."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from changebump import __version__
from changebump.cli.options import (
    argument_range,
    argument_rev,
    option_directory,
    option_first_parent,
    option_merges,
    option_package_path,
    option_prefix,
    option_verbose,
)
from changebump.core.version import BumpOverrides

app = typer.Typer(
    name="changebump",
    help="Conventional commits: check messages, compute the next version, write changelogs.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def configure_logging(verbosity: int) -> logging.Handler:
    level = _LOG_LEVELS.get(verbosity, logging.DEBUG)
    handler = RichHandler(console=err_console, show_time=False, show_path=False, rich_tracebacks=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
    return handler


def _version_callback(value: bool) -> None:
    if value:
        console.out(f"changebump {__version__}", highlight=False)
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    directory: Optional[Path] = option_directory,
    verbose: int = option_verbose,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    configure_logging(verbose)
    ctx.obj = {"directory": directory}


@app.command()
def check(
    ctx: typer.Context,
    rev: str = argument_range,
    max_count: Optional[int] = typer.Option(None, "-n", "--max-count", min=0, help="Check at most N commits"),
    merges: bool = option_merges,
    first_parent: bool = option_first_parent,
    ignore_reverts: bool = typer.Option(
        False, "--ignore-reverts/--include-reverts", help="Skip revert commits"
    ),
    scope_regex: Optional[str] = typer.Option(None, "--scope-regex", help="Pattern scopes must match"),
) -> None:
    """Check that commit messages follow the conventional commits format."""
    from changebump.cli.commands.check import run_check

    run_check(
        ctx.obj["directory"],
        rev,
        max_count,
        merges,
        first_parent,
        ignore_reverts,
        scope_regex,
        console,
        err_console,
    )


@app.command()
def version(
    ctx: typer.Context,
    rev: str = argument_rev,
    prefix: Optional[str] = option_prefix,
    bump: bool = typer.Option(False, "--bump", help="Compute the next version from the commits"),
    label: bool = typer.Option(False, "--label", help="Print major, minor, patch or none"),
    major: bool = typer.Option(False, "--major", help="Force a major bump"),
    minor: bool = typer.Option(False, "--minor", help="Force a minor bump"),
    patch: bool = typer.Option(False, "--patch", help="Force a patch bump"),
    prerelease: Optional[str] = typer.Option(None, "--prerelease", help="Prerelease label, e.g. rc"),
    promote: bool = typer.Option(False, "--promote", help="Release the current prerelease"),
    package_path: Optional[str] = option_package_path,
) -> None:
    """Print the current version, or the next one with --bump."""
    from changebump.cli.commands.version import run_version

    overrides = BumpOverrides(
        major=major,
        minor=minor,
        patch=patch,
        prerelease=prerelease,
        promote=promote,
    )
    run_version(
        ctx.obj["directory"],
        rev,
        prefix,
        bump,
        label,
        overrides,
        package_path,
        console,
        err_console,
    )


@app.command()
def changelog(
    ctx: typer.Context,
    rev: str = argument_rev,
    prefix: Optional[str] = option_prefix,
    max_majors: Optional[int] = typer.Option(None, "--max-majors", min=0, help="Keep at most N major releases"),
    max_minors: Optional[int] = typer.Option(None, "--max-minors", min=0, help="Keep at most N minor releases"),
    max_patches: Optional[int] = typer.Option(None, "--max-patches", min=0, help="Keep at most N patch releases"),
    max_tags: Optional[int] = typer.Option(None, "--max-tags", min=0, help="Keep at most N releases"),
    unreleased_header: Optional[str] = typer.Option(
        None, "--unreleased-header", help="Header of unreleased changes, fields {prefix} and {next_version}"
    ),
    no_links: bool = typer.Option(False, "--no-links", help="Do not link commits and issues"),
    template: Optional[Path] = typer.Option(
        None, "--template", exists=True, dir_okay=False, help="Jinja2 template file"
    ),
    output: Optional[Path] = typer.Option(None, "-o", "--output", dir_okay=False, help="Write to this file"),
    package_path: Optional[str] = option_package_path,
    first_parent: bool = option_first_parent,
    merges: bool = option_merges,
) -> None:
    """Generate a changelog from the commit history."""
    from changebump.cli.commands.changelog import run_changelog

    changelog_overrides = {
        "max_majors": max_majors,
        "max_minors": max_minors,
        "max_patches": max_patches,
        "max_tags": max_tags,
        "unreleased_header": unreleased_header,
        "link_references": False if no_links else None,
    }
    run_changelog(
        ctx.obj["directory"],
        rev,
        changelog_overrides,
        prefix,
        package_path,
        template,
        output,
        first_parent,
        merges,
        console,
        err_console,
    )


@app.command()
def config(ctx: typer.Context) -> None:
    """Print the resolved configuration as JSON."""
    from changebump.cli.commands.config import run_config

    run_config(ctx.obj["directory"], console, err_console)
