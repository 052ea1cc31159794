"""Implementation of the 'check' command.

Strictly validates every commit in a revision range and reports the ones
that are not conventional commits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from changebump.cli.commands.common import open_repository, resolve_config
from changebump.core.commits import ParseFailure, parse_commit
from changebump.exceptions import CheckFailedError, GitError

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

SHORT_HEADER = 40


def _shorten(header: str) -> str:
    if len(header) > SHORT_HEADER:
        return f"{header[:SHORT_HEADER]}..."
    return header


def run_check(
    path: Path | None,
    rev: str,
    max_count: int | None,
    merges: bool,
    first_parent: bool,
    ignore_reverts: bool,
    scope_regex: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the check command.

    Args:
        path: Repository directory
        rev: Revision or range to check
        max_count: Check at most this many commits
        merges: Check merge commits too
        first_parent: Only follow the first parent of merges
        ignore_reverts: Skip revert commits
        scope_regex: Override the scope pattern
        console: Console for standard output
        err_console: Console for error output
    """
    repo = open_repository(path, err_console)
    config = resolve_config(
        repo,
        err_console,
        {
            "commits": {
                "include_merges": merges or None,
                "first_parent": first_parent or None,
                "scope_regex": scope_regex,
            }
        },
    )

    try:
        commits = repo.get_commits(rev, first_parent=config.commits.first_parent)
    except GitError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    total = 0
    failed = 0
    for raw in commits:
        if max_count is not None and total >= max_count:
            break
        result = parse_commit(raw, config, strict=True)
        if isinstance(result, ParseFailure):
            if not result.is_error:
                continue
            if ignore_reverts and result.header.lower().startswith("revert"):
                continue
            total += 1
            failed += 1
            console.print(
                f"[red]FAIL[/]  {raw.short_hash}  {escape(result.reason)}  {escape(_shorten(result.header))}",
                highlight=False,
                soft_wrap=True,
            )
            continue
        if ignore_reverts and result.is_revert:
            continue
        total += 1

    if failed:
        console.print(f"\n{CheckFailedError(failed, total)}")
        raise SystemExit(1)
    if total == 0:
        console.print("no commits checked")
    else:
        console.print(f"no errors in {total} commit{'s' if total != 1 else ''}")
