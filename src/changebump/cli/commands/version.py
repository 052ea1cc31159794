"""Implementation of the 'version' command.

Prints the current version, or the next one when a bump is requested.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from changebump.cli.commands.common import open_repository, range_end, resolve_config
from changebump.core.commits import conventional_only, parse_commits
from changebump.core.filters import filter_for_version
from changebump.core.version import BumpOverrides, BumpType, Version, next_version
from changebump.exceptions import ChangebumpError

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

logger = logging.getLogger(__name__)


def run_version(
    path: Path | None,
    rev: str,
    prefix: str | None,
    bump: bool,
    label: bool,
    overrides: BumpOverrides,
    package_path: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the version command.

    Args:
        path: Repository directory
        rev: Revision to compute the version for (for a range, its right end)
        prefix: Tag prefix override (e.g., "v")
        bump: Compute the next version from the commits since the last tag
        label: Print the bump level instead of the version
        overrides: Explicit bump flags, prerelease label and promotion
        package_path: Only consider commits touching this path (monorepo)
        console: Console for standard output
        err_console: Console for error output
    """
    rev = range_end(rev)
    repo = open_repository(path, err_console)
    config = resolve_config(
        repo,
        err_console,
        {"version": {"tag_prefix": prefix}, "packages": {"path": package_path}},
    )
    tag_prefix = config.effective_tag_prefix

    try:
        last = repo.find_last_version(tag_prefix, rev)
        if last is None:
            initial = Version.parse(config.version.initial_version)
            console.out(str(BumpType.NONE) if label else str(initial), highlight=False)
            return

        requested = bump or overrides.forced is not None or overrides.promote or overrides.prerelease
        if not requested:
            console.out(str(BumpType.NONE) if label else str(last.version), highlight=False)
            return

        raw = repo.get_commits(f"{last.name}..{rev}", first_parent=config.commits.first_parent)
        history = filter_for_version(conventional_only(parse_commits(raw, config)), config)
        logger.info("%d of %d commit(s) since %s count towards the bump", len(history), len(raw), last.name)
        decision = next_version(history, last.version, overrides, config=config)
    except ChangebumpError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    console.out(str(decision.bump) if label else str(decision), highlight=False)
