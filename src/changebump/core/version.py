"""Semantic versions and the next-version calculation.

:func:`next_version` folds the conventional commits since the last release
into a :class:`VersionDecision`. Explicit ``--major/--minor/--patch`` flags
always beat an explicit ``--bump`` level, which beats the computed severity.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import TYPE_CHECKING

from changebump.exceptions import InvalidVersionError

if TYPE_CHECKING:
    from changebump.config.models import ChangebumpConfig
    from changebump.core.commits import ConventionalCommit

logger = logging.getLogger(__name__)

SEMVER_PATTERN: re.Pattern[str] = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_TRAILING_NUMBER = re.compile(r"^(?P<label>.*?)(?P<number>\d+)$")


class BumpType(str, Enum):
    """Version bump levels, lowest to highest."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def max_bump_type(cls, bumps: Iterable[BumpType]) -> BumpType:
        return max(bumps, key=lambda b: b.rank, default=cls.NONE)


_RANKS = {BumpType.NONE: 0, BumpType.PATCH: 1, BumpType.MINOR: 2, BumpType.MAJOR: 3}


def _prerelease_key(prerelease: str) -> tuple[tuple[int, int | str], ...]:
    return tuple((0, int(part)) if part.isdigit() else (1, part) for part in prerelease.split("."))


@total_ordering
@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""

    @classmethod
    def parse(cls, raw: str) -> Version:
        match = SEMVER_PATTERN.match(raw.strip())
        if not match:
            raise InvalidVersionError(f"Invalid semantic version: {raw!r}")
        return cls(
            int(match["major"]),
            int(match["minor"]),
            int(match["patch"]),
            match["prerelease"] or "",
            match["build"] or "",
        )

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def release_level(self) -> BumpType:
        """Which kind of release this base version is: x.0.0, x.y.0 or x.y.z."""
        if self.patch:
            return BumpType.PATCH
        if self.minor:
            return BumpType.MINOR
        return BumpType.MAJOR

    def release(self) -> Version:
        return Version(self.major, self.minor, self.patch)

    def bump_major(self) -> Version:
        return Version(self.major + 1, 0, 0)

    def bump_minor(self) -> Version:
        return Version(self.major, self.minor + 1, 0)

    def bump_patch(self) -> Version:
        return Version(self.major, self.minor, self.patch + 1)

    def bump(self, bump_type: BumpType) -> Version:
        if bump_type is BumpType.MAJOR:
            return self.bump_major()
        if bump_type is BumpType.MINOR:
            return self.bump_minor()
        if bump_type is BumpType.PATCH:
            return self.bump_patch()
        return self

    def with_prerelease(self, label: str) -> Version:
        """First prerelease of this version: ``1.3.0`` + ``rc`` -> ``1.3.0-rc.1``."""
        return Version(self.major, self.minor, self.patch, f"{label}.1")

    def next_prerelease(self, label: str | None = None) -> Version:
        """Increment the prerelease counter, keeping the base version.

        >>> str(Version.parse('1.0.0-rc.1').next_prerelease())
        '1.0.0-rc.2'
        >>> str(Version.parse('1.0.0-beta').next_prerelease())
        '1.0.0-beta.1'
        >>> str(Version.parse('1.0.0-rc.3').next_prerelease('final'))
        '1.0.0-final.1'

        A label that sorts lower than the current one would go backwards, so the
        current label keeps counting:

        >>> str(Version.parse('1.0.0-rc.3').next_prerelease('beta'))
        '1.0.0-rc.4'
        """
        if not self.prerelease:
            return self.with_prerelease(label or "rc")
        parts = self.prerelease.split(".")
        current_label = _TRAILING_NUMBER.sub(r"\g<label>", parts[0]) or parts[0]
        if label and label != current_label:
            switched = self.with_prerelease(label)
            if switched > self:
                return switched
            logger.warning("prerelease %s sorts before %s, keeping %s", switched, self, current_label)
        last = parts[-1]
        if last.isdigit() and len(parts) > 1:
            parts[-1] = str(int(last) + 1)
        elif match := _TRAILING_NUMBER.match(last):
            parts[-1] = f"{match['label']}{int(match['number']) + 1}"
        else:
            parts.append("1")
        return Version(self.major, self.minor, self.patch, ".".join(parts))

    def _precedence(self) -> tuple:
        # a release sorts after all of its prereleases
        pre = (1,) if not self.prerelease else (0, _prerelease_key(self.prerelease))
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(raw: str, prefix: str = "") -> Version:
    """Parse a version, dropping a tag prefix such as ``v``."""
    if prefix and raw.startswith(prefix):
        raw = raw[len(prefix) :]
    return Version.parse(raw)


@dataclass(frozen=True)
class BumpOverrides:
    """Explicit user choices that take priority over the commit history."""

    major: bool = False
    minor: bool = False
    patch: bool = False
    bump: BumpType | None = None
    prerelease: str | None = None
    promote: bool = False

    @property
    def forced(self) -> BumpType | None:
        if self.major:
            return BumpType.MAJOR
        if self.minor:
            return BumpType.MINOR
        if self.patch:
            return BumpType.PATCH
        if self.bump is not None and self.bump is not BumpType.NONE:
            return self.bump
        return None


@dataclass(frozen=True)
class VersionDecision:
    bump: BumpType
    version: Version
    previous: Version

    @property
    def is_bump(self) -> bool:
        return self.version != self.previous

    def __str__(self) -> str:
        return str(self.version)


def commit_bump(commit: ConventionalCommit, config: ChangebumpConfig) -> BumpType:
    """Severity a single commit contributes to the fold."""
    if config.commits.is_ignored(commit.type):
        return BumpType.NONE
    if commit.breaking:
        return BumpType.MAJOR
    increment = config.commits.increment_for(commit.type)
    if increment is not None:
        return BumpType(increment)
    if commit.type == "feat":
        return BumpType.MINOR
    if commit.is_known_type:
        return BumpType.PATCH
    return BumpType.NONE


def compute_bump(history: Iterable[ConventionalCommit], config: ChangebumpConfig) -> BumpType:
    severity = BumpType.NONE
    for commit in history:
        severity = BumpType.max_bump_type([severity, commit_bump(commit, config)])
        if severity is BumpType.MAJOR:
            break
    return severity


def next_version(
    history: Iterable[ConventionalCommit],
    current_version: Version,
    overrides: BumpOverrides | None = None,
    *,
    config: ChangebumpConfig,
) -> VersionDecision:
    """Compute the next version from the commits since ``current_version``.

    Args:
        history: Filtered conventional commits since the last release
        current_version: Last released (or pre-released) version
        overrides: Explicit bump flags, prerelease label and promotion
        config: Resolved configuration

    Returns:
        The decision; ``BumpType.NONE`` with the unchanged version when
        nothing warrants a release
    """
    overrides = overrides or BumpOverrides()
    computed = compute_bump(history, config)
    forced = overrides.forced
    if forced is None and computed is BumpType.MAJOR and current_version.major == 0:
        logger.debug("major version zero: breaking change bumps minor")
        computed = BumpType.MINOR
    level = forced or computed

    if current_version.is_prerelease:
        if overrides.promote:
            base = current_version.release()
            return VersionDecision(base.release_level, base, current_version)
        if level is BumpType.NONE:
            return VersionDecision(BumpType.NONE, current_version, current_version)
        return VersionDecision(level, current_version.next_prerelease(overrides.prerelease), current_version)

    if level is BumpType.NONE:
        return VersionDecision(BumpType.NONE, current_version, current_version)
    new_version = current_version.bump(level)
    if overrides.prerelease:
        new_version = new_version.with_prerelease(overrides.prerelease)
    return VersionDecision(level, new_version, current_version)
