"""Implementation of the 'config' command: print the resolved configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from changebump.cli.commands.common import open_repository, resolve_config

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console


def run_config(path: Path | None, console: Console, err_console: Console) -> None:
    repo = open_repository(path, err_console)
    config = resolve_config(repo, err_console)
    console.out(config.model_dump_json(indent=2), highlight=False)
