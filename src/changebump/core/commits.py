"""Conventional commit parsing.

A raw commit message is turned into a :class:`ConventionalCommit` or, when it
does not follow the grammar, into a :class:`ParseFailure`. Failures are
values, never exceptions: ``check`` counts them as errors while ``changelog``
skips them.

Grammar::

    <type>[(<scope>)][!]: <description>

    [body paragraphs]

    [Footer-Token: value | Footer-Token #value | BREAKING CHANGE: value]
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Union

from changebump.config.models import normalize_footer_key

if TYPE_CHECKING:
    from changebump.config.models import ChangebumpConfig, CommitsConfig

logger = logging.getLogger(__name__)

HEADER_PATTERN: re.Pattern[str] = re.compile(
    r"^(?P<type>[a-zA-Z]+)"
    r"(?:\((?P<scope>[^()\r\n]*)\))?"
    r"(?P<breaking>!)?"
    r":(?P<description>.*)$"
)
TYPE_PREFIX_PATTERN: re.Pattern[str] = re.compile(r"^[a-zA-Z]+(?:\([^()\r\n]*\))?!?")

# GitHub's default revert format: Revert "feat: add X"
GITHUB_REVERT_PATTERN: re.Pattern[str] = re.compile(r'^[Rr]evert\s+"(?P<inner>.+)"\s*$')
# git revert's default body line
REVERTS_COMMIT_PATTERN: re.Pattern[str] = re.compile(
    r"^This reverts commit (?P<hash>[0-9a-fA-F]{7,40})", re.MULTILINE
)
BODY_BREAKING_PATTERN: re.Pattern[str] = re.compile(r"BREAKING[ -]CHANGE", re.IGNORECASE)

REVERT_FOOTER_KEYS = frozenset({"reverts", "revert"})


class FailureKind(str, Enum):
    MALFORMED_HEADER = "malformed_header"
    EMPTY_DESCRIPTION = "empty_description"
    UNKNOWN_TYPE = "unknown_type"
    MERGE_COMMIT = "merge_commit"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RawCommit:
    """One commit as delivered by the revision history provider."""

    hash: str
    message: str
    author_date: datetime | None = None
    short_hash: str = ""
    parent_count: int = 1
    changed_paths: tuple[str, ...] = ()
    on_first_parent: bool = True

    def __post_init__(self) -> None:
        if not self.short_hash:
            object.__setattr__(self, "short_hash", self.hash[:7])

    @property
    def is_merge(self) -> bool:
        return self.parent_count > 1


@dataclass(frozen=True)
class CommitType:
    """A type token tagged as known (configured) or unknown."""

    token: str
    known: bool

    @classmethod
    def classify(cls, token: str, config: CommitsConfig) -> CommitType:
        token = token.lower()
        return cls(token=token, known=token in config.recognized_types)

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True)
class Footer:
    """A trailer line such as ``Reviewed-by: Z`` or ``Refs #133``."""

    token: str
    separator: str
    value: str

    @property
    def key(self) -> str:
        return normalize_footer_key(self.token)

    def __str__(self) -> str:
        return f"{self.token}{self.separator}{self.value}"


@dataclass(frozen=True)
class ConventionalCommit:
    commit_type: CommitType
    description: str
    scope: str | None = None
    body: str | None = None
    footers: tuple[Footer, ...] = ()
    breaking: bool = False
    breaking_from_header: bool = False
    breaking_notes: tuple[str, ...] = ()
    is_revert: bool = False
    issue_refs: tuple[str, ...] = ()
    header: str = ""
    hash: str = ""
    short_hash: str = ""
    author_date: datetime | None = None
    changed_paths: tuple[str, ...] = ()
    is_merge: bool = False
    on_first_parent: bool = True

    @property
    def type(self) -> str:
        return self.commit_type.token

    @property
    def is_known_type(self) -> bool:
        return self.commit_type.known

    def footer_values(self, key: str) -> list[str]:
        """Values of every footer whose normalized key equals ``key``."""
        wanted = normalize_footer_key(key)
        return [f.value for f in self.footers if f.key == wanted]


@dataclass(frozen=True)
class ParseFailure:
    kind: FailureKind
    reason: str
    header: str = ""
    token: str | None = None
    hash: str = ""
    short_hash: str = ""

    @property
    def is_error(self) -> bool:
        """Merge commits are skipped, not reported as invalid."""
        return self.kind is not FailureKind.MERGE_COMMIT

    def __str__(self) -> str:
        return self.reason


ParseResult = Union[ConventionalCommit, ParseFailure]


def _footer_pattern(config: CommitsConfig) -> re.Pattern[str]:
    breaking = "|".join(re.escape(k) for k in config.breaking_change_keys)
    return re.compile(
        rf"^(?P<token>(?i:{breaking})|[A-Za-z][A-Za-z0-9]*(?:-[A-Za-z0-9]+)*)"
        r"(?P<separator>:[ ]|[ ]#)"
        r"(?P<value>.*)$"
    )


def _split_body_and_footers(
    lines: list[str], footer_pattern: re.Pattern[str]
) -> tuple[str | None, tuple[Footer, ...]]:
    body_lines: list[str] = []
    footers: list[tuple[str, str, list[str]]] = []
    paragraph_start = True
    for line in lines:
        match = footer_pattern.match(line)
        if match and (footers or paragraph_start):
            footers.append((match["token"], match["separator"], [match["value"]]))
        elif footers:
            footers[-1][2].append(line)
        else:
            body_lines.append(line.rstrip())
        paragraph_start = not line.strip()

    body = "\n".join(body_lines).strip() or None
    return body, tuple(
        Footer(token=token.strip(), separator=separator, value="\n".join(value).strip())
        for token, separator, value in footers
    )


def _extract_issue_refs(texts: Iterable[str], pattern: re.Pattern[str]) -> tuple[str, ...]:
    refs: dict[str, None] = {}
    for text in texts:
        for match in pattern.finditer(text):
            ref = match.group(0).strip()
            if ref:
                refs.setdefault(ref, None)
    return tuple(refs)


def _header_failure(header: str, **meta: str) -> ParseFailure:
    if not header:
        reason = "Commit message is empty"
    elif ":" not in header or not TYPE_PREFIX_PATTERN.match(header):
        reason = "First line does not match `<type>[optional scope]: <description>`"
    else:
        reason = "Missing ':' after the type"
    return ParseFailure(FailureKind.MALFORMED_HEADER, reason, header=header, **meta)


def parse(
    raw_message: str,
    config: ChangebumpConfig,
    *,
    strict: bool = False,
    is_merge: bool = False,
    hash: str = "",
    short_hash: str = "",
    author_date: datetime | None = None,
    changed_paths: tuple[str, ...] = (),
    on_first_parent: bool = True,
) -> ParseResult:
    """Parse a raw commit message.

    Args:
        raw_message: Full commit message (header, body and footers)
        config: Resolved configuration
        strict: Reject types that are not configured
        is_merge: The commit has two or more parents
        hash: Full commit hash, copied onto the result
        short_hash: Abbreviated hash, defaults to the first 7 characters
        author_date: Author date, copied onto the result
        changed_paths: Paths touched by the commit, copied onto the result
        on_first_parent: Whether the commit is on the first-parent chain

    Returns:
        A ConventionalCommit, or a ParseFailure describing why the message
        is not a conventional commit
    """
    commits_config = config.commits
    short_hash = short_hash or hash[:7]
    meta = {"hash": hash, "short_hash": short_hash}
    lines = raw_message.strip("\r\n").splitlines()
    header = lines[0].strip() if lines else ""

    if is_merge and not commits_config.include_merges:
        return ParseFailure(FailureKind.MERGE_COMMIT, "Merge commit", header=header, **meta)

    is_revert = False
    scope: str | None = None
    bang = False
    if revert_match := GITHUB_REVERT_PATTERN.match(header):
        token = "revert"
        description = revert_match["inner"].strip()
        is_revert = True
    else:
        match = HEADER_PATTERN.match(header)
        if not match:
            return _header_failure(header, **meta)
        token = match["type"]
        raw_description = match["description"]
        if not raw_description.strip():
            return ParseFailure(
                FailureKind.EMPTY_DESCRIPTION, "Description is empty", header=header, **meta
            )
        if not raw_description.startswith(" "):
            return ParseFailure(
                FailureKind.MALFORMED_HEADER,
                "Expected a space after ':'",
                header=header,
                **meta,
            )
        description = raw_description.strip()
        if match["scope"] is not None:
            scope = match["scope"].strip()
            if not commits_config.scope_pattern.fullmatch(scope):
                return ParseFailure(
                    FailureKind.MALFORMED_HEADER,
                    f"Scope {scope!r} does not match `{commits_config.scope_regex}`",
                    header=header,
                    token=scope,
                    **meta,
                )
        bang = match["breaking"] is not None

    commit_type = CommitType.classify(token, commits_config)
    if strict and not commit_type.known:
        return ParseFailure(
            FailureKind.UNKNOWN_TYPE,
            f"Unknown type `{commit_type.token}`",
            header=header,
            token=commit_type.token,
            **meta,
        )

    body, footers = _split_body_and_footers(lines[1:], _footer_pattern(commits_config))
    breaking_keys = commits_config.normalized_breaking_keys
    breaking_notes = tuple(f.value for f in footers if f.key in breaking_keys)
    breaking = bang or any(f.key in breaking_keys for f in footers)
    if not breaking and commits_config.breaking_in_body and body:
        breaking = bool(BODY_BREAKING_PATTERN.search(body))

    is_revert = (
        is_revert
        or commit_type.token == "revert"
        or any(f.key in REVERT_FOOTER_KEYS for f in footers)
        or bool(body and REVERTS_COMMIT_PATTERN.search(body))
    )

    issue_refs = _extract_issue_refs(
        [body or "", *(str(f) for f in footers)], commits_config.issue_pattern
    )

    return ConventionalCommit(
        commit_type=commit_type,
        description=description,
        scope=scope,
        body=body,
        footers=footers,
        breaking=breaking,
        breaking_from_header=bang,
        breaking_notes=breaking_notes,
        is_revert=is_revert,
        issue_refs=issue_refs,
        header=header,
        hash=hash,
        short_hash=short_hash,
        author_date=author_date,
        changed_paths=tuple(changed_paths),
        is_merge=is_merge,
        on_first_parent=on_first_parent,
    )


def parse_commit(raw: RawCommit, config: ChangebumpConfig, *, strict: bool = False) -> ParseResult:
    """Parse a commit record from the history provider."""
    message = raw.message
    if config.commits.strip_regex:
        message = re.sub(config.commits.strip_regex, "", message)
    return parse(
        message,
        config,
        strict=strict,
        is_merge=raw.is_merge,
        hash=raw.hash,
        short_hash=raw.short_hash,
        author_date=raw.author_date,
        changed_paths=raw.changed_paths,
        on_first_parent=raw.on_first_parent,
    )


def parse_commits(
    commits: Iterable[RawCommit], config: ChangebumpConfig, *, strict: bool = False
) -> list[ParseResult]:
    results: list[ParseResult] = []
    for raw in commits:
        result = parse_commit(raw, config, strict=strict)
        if isinstance(result, ParseFailure):
            logger.debug("commit %s not conventional: %s", raw.short_hash, result.reason)
        results.append(result)
    return results


def conventional_only(results: Iterable[ParseResult]) -> list[ConventionalCommit]:
    return [r for r in results if isinstance(r, ConventionalCommit)]


def get_breaking_changes(commits: Iterable[ConventionalCommit]) -> list[ConventionalCommit]:
    return [c for c in commits if c.breaking]


def strip_message(message: str) -> str:
    """Drop ``#`` comment lines, trailing spaces and repeated blank lines.

    >>> strip_message('# comment\\n\\n\\nfeat: x  \\n\\n\\n\\nbody\\n# end\\n')
    'feat: x\\n\\nbody'
    """
    lines: list[str] = []
    for line in message.splitlines():
        if line.startswith("#"):
            continue
        line = line.rstrip()
        if not line and lines and not lines[-1]:
            continue
        lines.append(line)
    return "\n".join(lines).strip()


def validate(draft: str, config: ChangebumpConfig) -> ParseResult:
    """Strictly validate a commit message draft (editor comments are ignored)."""
    return parse(strip_message(draft), config, strict=True)
