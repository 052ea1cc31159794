"""Core business logic for changebump.

This package contains the pure building blocks; none of them touch git:
- Conventional commit parsing
- Commit classification (what counts for versions and changelogs)
- Semantic version calculation
- Changelog aggregation and rendering
"""

from __future__ import annotations

from changebump.core.changelog import (
    ChangelogResult,
    ChangelogSection,
    LinkBuilder,
    TagBoundary,
    TypeGroup,
    build_render_context,
    build_sections,
    generate_changelog,
)
from changebump.core.commits import (
    CommitType,
    ConventionalCommit,
    FailureKind,
    Footer,
    ParseFailure,
    RawCommit,
    get_breaking_changes,
    parse,
    parse_commit,
    parse_commits,
    validate,
)
from changebump.core.filters import Inclusion, classify, filter_for_changelog, filter_for_version
from changebump.core.render import render_changelog
from changebump.core.version import BumpOverrides, BumpType, Version, VersionDecision, next_version, parse_version

__all__ = [
    # Version
    "BumpOverrides",
    "BumpType",
    # Changelog
    "ChangelogResult",
    "ChangelogSection",
    # Commits
    "CommitType",
    "ConventionalCommit",
    "FailureKind",
    "Footer",
    # Filters
    "Inclusion",
    "LinkBuilder",
    "ParseFailure",
    "RawCommit",
    "TagBoundary",
    "TypeGroup",
    "Version",
    "VersionDecision",
    "build_render_context",
    "build_sections",
    "classify",
    "filter_for_changelog",
    "filter_for_version",
    "generate_changelog",
    "get_breaking_changes",
    "next_version",
    "parse",
    "parse_commit",
    "parse_commits",
    "parse_version",
    "render_changelog",
    "validate",
]
