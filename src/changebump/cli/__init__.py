"""Command line interface for changebump."""

from __future__ import annotations

from changebump.cli.app import app


def main() -> None:
    app()


__all__ = ["app", "main"]
