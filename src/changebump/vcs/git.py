"""Git repository access through the ``git`` executable.

Read-only: changebump never creates commits or tags and never talks to a
remote. Commit records are requested with ASCII record/unit separators so
that multi-line messages survive parsing.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from changebump.core.changelog import TagBoundary
from changebump.core.commits import RawCommit
from changebump.core.version import Version, parse_version
from changebump.exceptions import GitError, InvalidVersionError

logger = logging.getLogger(__name__)

RECORD_SEP = "\x1e"
FIELD_SEP = "\x1f"

# hash, short hash, author date, parents, raw message
_LOG_FORMAT = "%x1e%H%x1f%h%x1f%aI%x1f%P%x1f%B%x1f"
# tag name, peeled commit (annotated tags), object, creator date
_TAG_FORMAT = "%(refname:short)%1f%(*objectname)%1f%(objectname)%1f%(creatordate:iso-strict)"


@dataclass(frozen=True)
class VersionTag:
    """A tag whose name (minus the prefix) is a semantic version."""

    name: str
    version: Version
    commit: str
    date: datetime | None = None

    @property
    def boundary(self) -> TagBoundary:
        return TagBoundary(name=self.name, version=self.version, date=self.date)


def _parse_date(value: str) -> datetime | None:
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("unparseable date %r", value)
        return None


class GitRepository:
    """Read-only view of a git working copy."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = (path or Path.cwd()).resolve()
        self.root = Path(self._run(["rev-parse", "--show-toplevel"]).strip())

    def _run(self, args: list[str], *, check: bool = True) -> str:
        cmd = ["git", *args]
        logger.debug("running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        if check and result.returncode != 0:
            raise GitError(f"git {args[0]} failed with exit code {result.returncode}", stderr=result.stderr)
        return result.stdout

    def has_commits(self) -> bool:
        return bool(self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False).strip())

    def _first_parent_hashes(self, rev_range: str) -> set[str]:
        return set(self._run(["rev-list", "--first-parent", rev_range]).split())

    def get_commits(
        self,
        rev_range: str = "HEAD",
        *,
        first_parent: bool = False,
        paths: list[str] | None = None,
        max_count: int | None = None,
    ) -> list[RawCommit]:
        """Commits in ``rev_range``, newest first.

        Args:
            rev_range: A revision or range such as ``v1.0.0..HEAD``
            first_parent: Only follow the first parent of merges
            paths: Restrict to commits touching these paths
            max_count: Stop after this many commits

        Returns:
            Raw commit records with their changed paths
        """
        if rev_range == "HEAD" and not self.has_commits():
            return []
        args = ["log", f"--format={_LOG_FORMAT}", "--name-only", "--topo-order"]
        if first_parent:
            args.append("--first-parent")
        if max_count is not None:
            args.append(f"--max-count={max_count}")
        args.append(rev_range)
        if paths:
            args.extend(["--", *paths])
        output = self._run(args)

        on_main_line = None if first_parent else self._first_parent_hashes(rev_range)
        commits: list[RawCommit] = []
        for record in output.split(RECORD_SEP)[1:]:
            fields = record.split(FIELD_SEP)
            if len(fields) < 6:
                logger.warning("skipping malformed git log record")
                continue
            commit_hash, short_hash, date, parents, message, files = fields[:6]
            commits.append(
                RawCommit(
                    hash=commit_hash,
                    short_hash=short_hash,
                    message=message.strip("\n"),
                    author_date=_parse_date(date),
                    parent_count=len(parents.split()),
                    changed_paths=tuple(line for line in files.splitlines() if line.strip()),
                    on_first_parent=on_main_line is None or commit_hash in on_main_line,
                )
            )
        return commits

    def _list_version_tags(self, prefix: str, merged: str | None = None) -> list[VersionTag]:
        args = ["tag", "--list", f"{prefix}*", f"--format={_TAG_FORMAT}"]
        if merged:
            args.append(f"--merged={merged}")
        tags: list[VersionTag] = []
        for line in self._run(args).splitlines():
            if not line.strip():
                continue
            name, peeled, obj, date = (line.split(FIELD_SEP) + ["", "", ""])[:4]
            try:
                version = parse_version(name, prefix)
            except InvalidVersionError:
                logger.warning("ignoring tag %s: not a semantic version", name)
                continue
            tags.append(VersionTag(name=name, version=version, commit=peeled or obj, date=_parse_date(date)))
        return sorted(tags, key=lambda t: t.version, reverse=True)

    def get_version_tags(self, prefix: str = "v") -> list[VersionTag]:
        """All version tags, highest version first."""
        return self._list_version_tags(prefix)

    def find_last_version(self, prefix: str = "v", rev: str = "HEAD") -> VersionTag | None:
        """Highest version tag (prereleases included) reachable from ``rev``."""
        if rev == "HEAD" and not self.has_commits():
            return None
        tags = self._list_version_tags(prefix, merged=rev)
        return tags[0] if tags else None

    def get_history_with_boundaries(
        self,
        prefix: str = "v",
        rev: str = "HEAD",
        *,
        first_parent: bool = False,
        include_prereleases: bool = False,
    ) -> list[tuple[TagBoundary | None, RawCommit]]:
        """Every commit reachable from ``rev`` paired with the release containing it.

        A commit belongs to the nearest tagged commit at or above it in the
        history; commits above the newest tag get ``None`` (unreleased).
        """
        by_commit: dict[str, VersionTag] = {}
        for tag in self._list_version_tags(prefix):
            if tag.version.is_prerelease and not include_prereleases:
                continue
            by_commit.setdefault(tag.commit, tag)

        current: TagBoundary | None = None
        history: list[tuple[TagBoundary | None, RawCommit]] = []
        for commit in self.get_commits(rev, first_parent=first_parent):
            if commit.hash in by_commit:
                current = by_commit[commit.hash].boundary
            history.append((current, commit))
        return history

    def get_remote_url(self, name: str = "origin") -> str | None:
        url = self._run(["remote", "get-url", name], check=False).strip()
        return url or None
