"""Decide which commits take part in version and changelog computation.

The two consumers may disagree: a hidden type (``chore``, ``docs`` ...) never
shows up in the changelog but can still bump the patch version.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from changebump.core.commits import ConventionalCommit

if TYPE_CHECKING:
    from changebump.config.models import ChangebumpConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Inclusion:
    version: bool
    changelog: bool
    reason: str | None = None

    @classmethod
    def excluded(cls, reason: str) -> Inclusion:
        return cls(version=False, changelog=False, reason=reason)


INCLUDED = Inclusion(version=True, changelog=True)


def touches_path(changed_paths: Iterable[str], prefix: str) -> bool:
    """True if any changed path is ``prefix`` itself or lies below it.

    >>> touches_path(['packages/core/a.py'], 'packages/core')
    True
    >>> touches_path(['packages/core-extra/a.py'], 'packages/core')
    False
    """
    prefix = prefix.rstrip("/")
    return any(path == prefix or path.startswith(f"{prefix}/") for path in changed_paths)


def classify(commit: ConventionalCommit, config: ChangebumpConfig) -> Inclusion:
    """Apply the inclusion rules in order, stopping at the first exclusion."""
    commits_config = config.commits
    if commit.is_revert and not commits_config.include_reverts:
        return Inclusion.excluded("revert")
    if commit.is_merge and not commits_config.include_merges:
        return Inclusion.excluded("merge")
    if commits_config.first_parent and not commit.on_first_parent:
        return Inclusion.excluded("not on first-parent chain")
    if config.packages.path is not None and not touches_path(commit.changed_paths, config.packages.path):
        return Inclusion.excluded(f"outside {config.packages.path}")
    if commits_config.is_ignored(commit.type):
        return Inclusion.excluded(f"ignored type {commit.type}")
    if commit.type in commits_config.hidden_types:
        return Inclusion(version=True, changelog=False, reason=f"hidden type {commit.type}")
    return INCLUDED


def section_label(commit: ConventionalCommit, config: ChangebumpConfig) -> str:
    """Changelog section for a commit; unknown types go to the "other" section."""
    return config.commits.section_for(commit.type)


def filter_for_version(
    commits: Iterable[ConventionalCommit], config: ChangebumpConfig
) -> list[ConventionalCommit]:
    kept: list[ConventionalCommit] = []
    for commit in commits:
        inclusion = classify(commit, config)
        if inclusion.version:
            kept.append(commit)
        else:
            logger.debug("skipping %s for version: %s", commit.short_hash, inclusion.reason)
    return kept


def filter_for_changelog(
    pairs: Iterable[tuple[T, ConventionalCommit]], config: ChangebumpConfig
) -> list[tuple[T, ConventionalCommit]]:
    """Keep ``(boundary, commit)`` pairs whose commit belongs in the changelog."""
    kept: list[tuple[T, ConventionalCommit]] = []
    for boundary, commit in pairs:
        inclusion = classify(commit, config)
        if inclusion.changelog:
            kept.append((boundary, commit))
        else:
            logger.debug("skipping %s for changelog: %s", commit.short_hash, inclusion.reason)
    return kept
