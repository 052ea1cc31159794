"""Shared fixtures for changebump tests."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from changebump.config.models import ChangebumpConfig
from changebump.core.commits import ConventionalCommit, ParseResult, RawCommit, parse_commit

BASE_DATE = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def config() -> ChangebumpConfig:
    return ChangebumpConfig()


@pytest.fixture
def make_raw() -> Callable[..., RawCommit]:
    """Factory for RawCommit records; each call gets a fresh hash and a later date."""
    counter = {"n": 0}

    def _make(message: str, **kwargs) -> RawCommit:
        counter["n"] += 1
        n = counter["n"]
        kwargs.setdefault("hash", f"{n:040x}")
        kwargs.setdefault("author_date", BASE_DATE + timedelta(hours=n))
        return RawCommit(message=message, **kwargs)

    return _make


@pytest.fixture
def make_commit(make_raw, config) -> Callable[..., ConventionalCommit]:
    """Parse a message into a ConventionalCommit (fails the test if it does not parse)."""

    def _make(message: str, cfg: ChangebumpConfig | None = None, **kwargs) -> ConventionalCommit:
        result: ParseResult = parse_commit(make_raw(message, **kwargs), cfg or config)
        assert isinstance(result, ConventionalCommit), result
        return result

    return _make


class GitRepoBuilder:
    """Builds a throwaway repository with the git executable."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.env = {
            **os.environ,
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@example.com",
            "GIT_CONFIG_NOSYSTEM": "1",
            "HOME": str(path),
        }
        self._tick = 0
        self.git("init", "-q", "-b", "main")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            env=self.env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def commit(self, message: str, path: str | None = None) -> str:
        self._tick += 1
        file_path = self.path / (path or "file.txt")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with file_path.open("a") as f:
            f.write(f"{self._tick}\n")
        self.git("add", "-A")
        date = (BASE_DATE + timedelta(hours=self._tick)).isoformat()
        self.env["GIT_AUTHOR_DATE"] = date
        self.env["GIT_COMMITTER_DATE"] = date
        self.git("commit", "-q", "-m", message)
        return self.git("rev-parse", "HEAD")

    def tag(self, name: str, annotated: bool = False) -> None:
        if annotated:
            self.git("tag", "-a", name, "-m", f"release {name}")
        else:
            self.git("tag", name)


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepoBuilder:
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    return GitRepoBuilder(repo_path)
