"""Helpers shared by the command implementations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from changebump.config import ChangebumpConfig, host_info_from_url, load_config, merge_overrides
from changebump.exceptions import ChangebumpError, ConfigError
from changebump.vcs import GitRepository

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

logger = logging.getLogger(__name__)


def range_end(rev: str) -> str:
    """Right end of a revision range (``A..B``, ``A...B``); a single revision is returned as is.

    >>> range_end("v1.0.0..HEAD")
    'HEAD'
    >>> range_end("v1.0.0..")
    'HEAD'
    >>> range_end("main")
    'main'
    """
    if ".." not in rev:
        return rev
    end = rev.rsplit("..", 1)[1]
    logger.debug("using %s from range %s", end or "HEAD", rev)
    return end or "HEAD"


def open_repository(path: Path | None, err_console: Console) -> GitRepository:
    try:
        return GitRepository(path)
    except ChangebumpError as e:
        err_console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e


def resolve_config(
    repo: GitRepository,
    err_console: Console,
    overrides: dict[str, dict[str, Any]] | None = None,
) -> ChangebumpConfig:
    """Load ``[tool.changebump]``, apply CLI overrides, fill the remote from ``origin``."""
    try:
        config = load_config(repo.root)
        if overrides:
            config = merge_overrides(config, overrides)
    except ChangebumpError as e:
        err_console.print(f"[red]Error loading config:[/] {e}")
        raise SystemExit(1) from e

    remote_url = repo.get_remote_url()
    if remote_url and not config.remote.is_complete:
        try:
            info = host_info_from_url(remote_url)
        except ConfigError as e:
            logger.debug("no link defaults from remote: %s", e)
        else:
            config = config.with_remote(info.host, info.owner, info.repository, info.scheme)
    return config
