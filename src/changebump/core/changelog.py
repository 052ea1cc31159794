"""Changelog aggregation.

Commits arrive newest first, each paired with the release (tag) it belongs
to, or ``None`` when it is not released yet. They are grouped per release,
then per changelog section, and turned into a plain-data render context for
the template in :mod:`changebump.core.render`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Union

from changebump.core.commits import ConventionalCommit, ParseFailure
from changebump.core.filters import classify
from changebump.core.version import BumpType, Version

if TYPE_CHECKING:
    from changebump.config.models import ChangebumpConfig

logger = logging.getLogger(__name__)

_FAMILY_URL_FORMATS: dict[str, tuple[str, str, str]] = {
    "github": (
        "{host}/{owner}/{repository}/commit/{hash}",
        "{host}/{owner}/{repository}/issues/{id}",
        "{host}/{owner}/{repository}/compare/{previous}...{current}",
    ),
    "gitlab": (
        "{host}/{owner}/{repository}/-/commit/{hash}",
        "{host}/{owner}/{repository}/-/issues/{id}",
        "{host}/{owner}/{repository}/-/compare/{previous}...{current}",
    ),
    "bitbucket": (
        "{host}/{owner}/{repository}/commits/{hash}",
        "{host}/{owner}/{repository}/issues/{id}",
        "{host}/{owner}/{repository}/branches/compare/{current}%0D{previous}",
    ),
}


@dataclass(frozen=True)
class TagBoundary:
    """A release tag that closes a range of commits."""

    name: str
    version: Version | None = None
    date: datetime | None = None


HistoryItem = tuple[Union[TagBoundary, None], Union[ConventionalCommit, ParseFailure]]


@dataclass(frozen=True)
class LinkBuilder:
    """Builds commit, issue and compare URLs for one hosting service."""

    host: str | None = None
    owner: str | None = None
    repository: str | None = None
    commit_format: str | None = None
    issue_format: str | None = None
    compare_format: str | None = None

    @classmethod
    def from_config(cls, config: ChangebumpConfig) -> LinkBuilder:
        remote = config.remote
        if not (config.changelog.link_references and remote.is_complete):
            return cls()
        commit_format, issue_format, compare_format = _FAMILY_URL_FORMATS[remote.effective_family]
        return cls(
            host=remote.base_url,
            owner=remote.owner,
            repository=remote.repository,
            commit_format=remote.commit_url_format or commit_format,
            issue_format=remote.issue_url_format or issue_format,
            compare_format=(
                (remote.compare_url_format or compare_format) if config.changelog.link_compare else None
            ),
        )

    def _format(self, template: str | None, **values: str) -> str | None:
        if template is None:
            return None
        return template.format(host=self.host, owner=self.owner, repository=self.repository, **values)

    def commit_url(self, commit_hash: str) -> str | None:
        if not commit_hash:
            return None
        return self._format(self.commit_format, hash=commit_hash)

    def issue_url(self, ref: str) -> str | None:
        issue_id = ref.lstrip("#")
        if not issue_id:
            return None
        return self._format(self.issue_format, id=issue_id)

    def compare_url(self, previous: str | None, current: str | None) -> str | None:
        if not previous or not current:
            return None
        return self._format(self.compare_format, previous=previous, current=current)


@dataclass(frozen=True)
class TypeGroup:
    label: str
    types: tuple[str, ...]
    commits: tuple[ConventionalCommit, ...]


@dataclass(frozen=True)
class ChangelogSection:
    version: str
    is_unreleased: bool
    groups: tuple[TypeGroup, ...] = ()
    breaking_changes: tuple[ConventionalCommit, ...] = ()
    tag: str | None = None
    previous_tag: str | None = None
    date: date | None = None
    release_level: BumpType | None = None

    @property
    def is_empty(self) -> bool:
        return not self.groups and not self.breaking_changes


@dataclass(frozen=True)
class ChangelogResult:
    sections: tuple[ChangelogSection, ...]
    links: LinkBuilder
    skipped: int = 0


@dataclass
class _Bucket:
    boundary: TagBoundary | None
    entries: dict[str, list[tuple[int, ConventionalCommit]]] = field(default_factory=dict)
    breaking: list[ConventionalCommit] = field(default_factory=list)
    newest: datetime | None = None


def _newest_first(entries: Iterable[tuple[int, ConventionalCommit]]) -> list[ConventionalCommit]:
    by_history = sorted(entries, key=lambda entry: entry[0])
    ordered = sorted(
        by_history,
        key=lambda entry: entry[1].author_date.timestamp() if entry[1].author_date else float("-inf"),
        reverse=True,
    )
    return [commit for _, commit in ordered]


def _type_priority(config: ChangebumpConfig) -> dict[str, int]:
    return {type_config.type: position for position, type_config in enumerate(config.commits.types)}


def _unreleased_label(config: ChangebumpConfig, next_version: Version | None) -> str:
    return config.changelog.unreleased_header.format(
        prefix=config.effective_tag_prefix,
        next_version=str(next_version) if next_version else "",
    ).strip()


def _make_section(
    bucket: _Bucket,
    config: ChangebumpConfig,
    priority: dict[str, int],
    next_version: Version | None,
) -> ChangelogSection:
    first_seen = {label: position for position, label in enumerate(bucket.entries)}
    # a group ranks by its best listed type; groups of unlisted types go last
    rank = {
        label: min(priority.get(commit.type, len(priority)) for _, commit in entries)
        for label, entries in bucket.entries.items()
    }
    labels = sorted(bucket.entries, key=lambda label: (rank[label], first_seen[label]))
    limit = config.changelog.max_commits_per_group
    groups = []
    for label in labels:
        commits = _newest_first(bucket.entries[label])
        if limit is not None:
            commits = commits[:limit]
        types = tuple(dict.fromkeys(c.type for c in commits))
        groups.append(TypeGroup(label=label, types=types, commits=tuple(commits)))
    breaking = tuple(bucket.breaking)

    boundary = bucket.boundary
    if boundary is None:
        return ChangelogSection(
            version=_unreleased_label(config, next_version),
            is_unreleased=True,
            groups=tuple(groups),
            breaking_changes=breaking,
            date=bucket.newest.date() if bucket.newest else None,
        )
    version = boundary.version
    when = boundary.date or bucket.newest
    return ChangelogSection(
        version=str(version) if version else boundary.name,
        is_unreleased=False,
        groups=tuple(groups),
        breaking_changes=breaking,
        tag=boundary.name,
        date=when.date() if when else None,
        release_level=version.release_level if version and not version.is_prerelease else None,
    )


def _apply_limits(sections: list[ChangelogSection], config: ChangebumpConfig) -> list[ChangelogSection]:
    changelog = config.changelog
    limits = {
        BumpType.MAJOR: changelog.max_majors,
        BumpType.MINOR: changelog.max_minors,
        BumpType.PATCH: changelog.max_patches,
    }
    counts = dict.fromkeys(limits, 0)
    tags = 0
    kept: list[ChangelogSection] = []
    for section in sections:
        if section.is_unreleased:
            kept.append(section)
            continue
        tags += 1
        if changelog.max_tags is not None and tags > changelog.max_tags:
            break
        level = section.release_level
        if level is not None:
            counts[level] += 1
            limit = limits[level]
            if limit is not None and counts[level] > limit:
                break
        kept.append(section)
    return kept


def _link_previous_tags(sections: list[ChangelogSection]) -> list[ChangelogSection]:
    linked: list[ChangelogSection] = []
    for position, section in enumerate(sections):
        older = next((s.tag for s in sections[position + 1 :] if s.tag), None)
        linked.append(
            ChangelogSection(
                version=section.version,
                is_unreleased=section.is_unreleased,
                groups=section.groups,
                breaking_changes=section.breaking_changes,
                tag=section.tag,
                previous_tag=older,
                date=section.date,
                release_level=section.release_level,
            )
        )
    return linked


def build_sections(
    history: Sequence[HistoryItem],
    config: ChangebumpConfig,
    *,
    next_version: Version | None = None,
) -> ChangelogResult:
    """Group commits into changelog sections, most recent release first.

    Args:
        history: ``(boundary, commit)`` pairs, newest first; ``None`` marks
            unreleased commits. Parse failures are skipped and counted.
        config: Resolved configuration
        next_version: Upcoming version, available to the Unreleased header

    Returns:
        The sections plus the number of skipped (non-conventional) commits
    """
    links = LinkBuilder.from_config(config)
    buckets: dict[str | None, _Bucket] = {}
    if config.changelog.show_unreleased:
        buckets[None] = _Bucket(boundary=None)
    skipped = 0

    for index, (boundary, item) in enumerate(history):
        key = boundary.name if boundary else None
        if key is None and not config.changelog.show_unreleased:
            continue
        bucket = buckets.setdefault(key, _Bucket(boundary=boundary))
        if isinstance(item, ParseFailure):
            if item.is_error:
                skipped += 1
                logger.debug("skipping %s: %s", item.short_hash or item.header, item.reason)
            continue
        inclusion = classify(item, config)
        if inclusion.changelog:
            label = config.commits.section_for(item.type)
            bucket.entries.setdefault(label, []).append((index, item))
        if item.breaking and (inclusion.changelog or inclusion.version):
            bucket.breaking.append(item)
        if (inclusion.changelog or inclusion.version) and item.author_date:
            if bucket.newest is None or item.author_date > bucket.newest:
                bucket.newest = item.author_date

    priority = _type_priority(config)
    sections = [_make_section(bucket, config, priority, next_version) for bucket in buckets.values()]
    sections = _link_previous_tags(sections)
    if config.changelog.skip_empty:
        sections = [s for s in sections if s.is_unreleased or not s.is_empty]
    sections = _apply_limits(sections, config)
    if skipped:
        logger.info("skipped %d non-conventional commit(s)", skipped)
    return ChangelogResult(sections=tuple(sections), links=links, skipped=skipped)


def _commit_context(commit: ConventionalCommit, links: LinkBuilder) -> dict[str, Any]:
    return {
        "type": commit.type,
        "scope": commit.scope,
        "description": commit.description,
        "body": commit.body,
        "breaking": commit.breaking,
        "hash": commit.hash,
        "short_hash": commit.short_hash,
        "date": commit.author_date.date().isoformat() if commit.author_date else None,
        "commit_url": links.commit_url(commit.hash),
        "issue_refs": [{"id": ref, "url": links.issue_url(ref)} for ref in commit.issue_refs],
    }


def build_render_context(result: ChangelogResult, config: ChangebumpConfig) -> dict[str, Any]:
    """Plain-data context for the changelog template.

    Every key is always present (``None`` or empty when unknown) so templates
    never need existence checks.
    """
    links = result.links
    sections = []
    for section in result.sections:
        current = section.tag or ("HEAD" if section.is_unreleased else None)
        sections.append(
            {
                "version": section.version,
                "tag": section.tag,
                "previous_tag": section.previous_tag,
                "date": section.date.isoformat() if section.date else None,
                "is_unreleased": section.is_unreleased,
                "compare_url": links.compare_url(section.previous_tag, current),
                "breaking_changes": [
                    {
                        **_commit_context(commit, links),
                        "note": "\n".join(commit.breaking_notes) or commit.description,
                    }
                    for commit in section.breaking_changes
                ],
                "types": [
                    {
                        "label": group.label,
                        "types": list(group.types),
                        "commits": [_commit_context(commit, links) for commit in group.commits],
                    }
                    for group in section.groups
                ],
            }
        )
    return {"header": config.changelog.header, "sections": sections}


def generate_changelog(
    history: Sequence[HistoryItem],
    config: ChangebumpConfig,
    *,
    next_version: Version | None = None,
) -> str:
    """Build sections from ``history`` and render them with the configured template."""
    from changebump.core.render import render_changelog

    result = build_sections(history, config, next_version=next_version)
    return render_changelog(build_render_context(result, config), config)
