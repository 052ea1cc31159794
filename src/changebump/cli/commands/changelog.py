"""Implementation of the 'changelog' command."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from changebump.cli.commands.common import open_repository, range_end, resolve_config
from changebump.core.changelog import build_render_context, build_sections
from changebump.core.commits import conventional_only, parse_commit
from changebump.core.filters import filter_for_version
from changebump.core.render import render_changelog
from changebump.core.version import next_version
from changebump.exceptions import ChangebumpError

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console


def run_changelog(
    path: Path | None,
    rev: str,
    changelog_overrides: dict[str, Any],
    prefix: str | None,
    package_path: str | None,
    template: Path | None,
    output: Path | None,
    first_parent: bool,
    merges: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the changelog command.

    Args:
        path: Repository directory
        rev: Newest revision to include (for a range, its right end)
        changelog_overrides: ``[changelog]`` settings from the command line
        prefix: Tag prefix override
        package_path: Only consider commits touching this path (monorepo)
        template: Jinja2 template file replacing the default template
        output: Write here instead of standard output
        first_parent: Only follow the first parent of merges
        merges: Include merge commits
        console: Console for standard output
        err_console: Console for error output
    """
    rev = range_end(rev)
    repo = open_repository(path, err_console)
    overrides: dict[str, dict[str, Any]] = {
        "changelog": dict(changelog_overrides),
        "version": {"tag_prefix": prefix},
        "packages": {"path": package_path},
        "commits": {"first_parent": first_parent or None, "include_merges": merges or None},
    }
    if template is not None:
        try:
            overrides["changelog"]["template"] = template.read_text(encoding="utf-8")
        except OSError as e:
            err_console.print(f"[red]Error reading template:[/] {e}")
            raise SystemExit(1) from e
    config = resolve_config(repo, err_console, overrides)
    tag_prefix = config.effective_tag_prefix

    try:
        raw_history = repo.get_history_with_boundaries(
            tag_prefix, rev, first_parent=config.commits.first_parent
        )
        history = [(boundary, parse_commit(raw, config)) for boundary, raw in raw_history]

        upcoming = None
        last = repo.find_last_version(tag_prefix, rev)
        if last is not None:
            unreleased = filter_for_version(conventional_only(c for b, c in history if b is None), config)
            decision = next_version(unreleased, last.version, config=config)
            upcoming = decision.version if decision.is_bump else None

        result = build_sections(history, config, next_version=upcoming)
        text = render_changelog(build_render_context(result, config), config)
    except ChangebumpError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    if output is None:
        console.out(text, highlight=False, end="")
        return
    try:
        output.write_text(text, encoding="utf-8")
    except OSError as e:
        err_console.print(f"[red]Error writing changelog:[/] {e}")
        raise SystemExit(1) from e
    err_console.print(f"[green]Wrote changelog to[/] {output}")
