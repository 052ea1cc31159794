"""Configuration models for changebump.

The configuration is resolved once per invocation (defaults, then whatever
the caller layered on top) and then passed explicitly to every component.
All models are frozen: nothing in changebump mutates a configuration after
it has been built.
"""

from __future__ import annotations

import re
import string
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from changebump.exceptions import ConfigError

HostFamily = Literal["github", "gitlab", "bitbucket"]
Increment = Literal["major", "minor", "patch", "none"]

DEFAULT_SCOPE_REGEX = r"[A-Za-z0-9_/-]+"
DEFAULT_ISSUE_REGEX = r"#\d+"
DEFAULT_BREAKING_CHANGE_KEYS = ("BREAKING CHANGE", "BREAKING-CHANGE")

URL_TEMPLATE_FIELDS = frozenset({"host", "owner", "repository", "hash", "id", "previous", "current"})
UNRELEASED_HEADER_FIELDS = frozenset({"prefix", "next_version"})


def _template_fields(template: str) -> set[str]:
    """Return the replacement field names used by a str.format template."""
    try:
        return {
            field_name.split(".")[0].split("[")[0]
            for _, field_name, _, _ in string.Formatter().parse(template)
            if field_name is not None
        }
    except ValueError as e:
        raise ConfigError(f"Invalid template {template!r}: {e}") from e


def _check_template(template: str, allowed: frozenset[str], what: str) -> str:
    unknown = _template_fields(template) - allowed
    if "" in unknown:
        raise ConfigError(f"Invalid {what} {template!r}: positional fields are not supported")
    if unknown:
        raise ConfigError(
            f"Invalid {what} {template!r}: unknown field(s) {', '.join(sorted(unknown))}. "
            f"Allowed: {', '.join(sorted(allowed))}"
        )
    return template


def _check_regex(pattern: str, what: str) -> str:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid {what} {pattern!r}: {e}") from e
    return pattern


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TypeConfig(_Frozen):
    """One recognized commit type and the changelog section it lands in."""

    type: str
    section: str = ""
    hidden: bool = False
    # None: feat bumps minor, every other recognized type bumps patch
    increment: Increment | None = None

    @field_validator("type")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ConfigError("Commit type names cannot be empty")
        return value

    @field_validator("increment", mode="before")
    @classmethod
    def _normalize_increment(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


def _default_types() -> tuple[TypeConfig, ...]:
    return (
        TypeConfig(type="feat", section="Features"),
        TypeConfig(type="fix", section="Fixes"),
        TypeConfig(type="perf", section="Performance", hidden=True),
        TypeConfig(type="refactor", section="Other", hidden=True),
        TypeConfig(type="docs", section="Documentation", hidden=True),
        TypeConfig(type="build", section="Other", hidden=True),
        TypeConfig(type="chore", section="Other", hidden=True),
        TypeConfig(type="ci", section="Other", hidden=True),
        TypeConfig(type="style", section="Other", hidden=True),
        TypeConfig(type="test", section="Other", hidden=True),
        TypeConfig(type="revert", section="Reverts", hidden=True),
    )


class CommitsConfig(_Frozen):
    """How commit messages are parsed and classified."""

    types: tuple[TypeConfig, ...] = Field(default_factory=_default_types)
    ignored_types: tuple[str, ...] = ()
    ignore_unknown_types: bool = False
    other_section: str = "Other"
    scope_regex: str = DEFAULT_SCOPE_REGEX
    issue_regex: str = DEFAULT_ISSUE_REGEX
    breaking_change_keys: tuple[str, ...] = DEFAULT_BREAKING_CHANGE_KEYS
    # Lenient mode: a "BREAKING CHANGE" phrase anywhere in the body counts.
    breaking_in_body: bool = False
    include_merges: bool = False
    include_reverts: bool = False
    first_parent: bool = False
    # Removed from every message before parsing.
    strip_regex: str | None = None

    @field_validator("scope_regex")
    @classmethod
    def _validate_scope_regex(cls, value: str) -> str:
        return _check_regex(value, "scope regex")

    @field_validator("issue_regex")
    @classmethod
    def _validate_issue_regex(cls, value: str) -> str:
        return _check_regex(value, "issue regex")

    @field_validator("strip_regex")
    @classmethod
    def _validate_strip_regex(cls, value: str | None) -> str | None:
        if not value:
            return None
        return _check_regex(value, "strip regex")

    @field_validator("ignored_types")
    @classmethod
    def _normalize_ignored(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(t.strip().lower() for t in value if t.strip())

    @field_validator("breaking_change_keys")
    @classmethod
    def _validate_breaking_keys(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        keys = tuple(k.strip() for k in value if k.strip())
        if not keys:
            raise ConfigError("At least one breaking change footer key is required")
        return keys

    @property
    def recognized_types(self) -> frozenset[str]:
        return frozenset(t.type for t in self.types)

    @property
    def hidden_types(self) -> frozenset[str]:
        return frozenset(t.type for t in self.types if t.hidden)

    @property
    def scope_pattern(self) -> re.Pattern[str]:
        return re.compile(self.scope_regex)

    @property
    def issue_pattern(self) -> re.Pattern[str]:
        return re.compile(self.issue_regex)

    @property
    def normalized_breaking_keys(self) -> frozenset[str]:
        return frozenset(normalize_footer_key(k) for k in self.breaking_change_keys)

    def section_for(self, commit_type: str) -> str:
        """Changelog section label for a type token (``other_section`` if unknown)."""
        for type_config in self.types:
            if type_config.type == commit_type:
                return type_config.section or commit_type.capitalize()
        return self.other_section

    def increment_for(self, commit_type: str) -> Increment | None:
        for type_config in self.types:
            if type_config.type == commit_type:
                return type_config.increment
        return None

    def is_ignored(self, commit_type: str) -> bool:
        if commit_type in self.ignored_types:
            return True
        return self.ignore_unknown_types and commit_type not in self.recognized_types


class ChangelogConfig(_Frozen):
    """How changelog sections are built and rendered."""

    header: str = "# Changelog\n\n"
    template: str | None = None
    unreleased_header: str = "Unreleased"
    show_unreleased: bool = True
    skip_empty: bool = False
    line_length: int = Field(default=80, ge=10)
    wrap_disabled: bool = False
    link_references: bool = True
    link_compare: bool = True
    max_majors: int | None = Field(default=None, ge=0)
    max_minors: int | None = Field(default=None, ge=0)
    max_patches: int | None = Field(default=None, ge=0)
    max_tags: int | None = Field(default=None, ge=0)
    max_commits_per_group: int | None = Field(default=None, ge=0)

    @field_validator("unreleased_header")
    @classmethod
    def _validate_unreleased_header(cls, value: str) -> str:
        return _check_template(value, UNRELEASED_HEADER_FIELDS, "unreleased header")


class VersionConfig(_Frozen):
    """Version and tag naming."""

    tag_prefix: str = "v"
    initial_version: str = "0.1.0"


class RemoteConfig(_Frozen):
    """Where the repository is hosted, used to build commit and issue links."""

    host: str | None = None
    owner: str | None = None
    repository: str | None = None
    scheme: str = "https"
    family: HostFamily | None = None
    commit_url_format: str | None = None
    issue_url_format: str | None = None
    compare_url_format: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _split_scheme(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("host"), str) and "://" in data["host"]:
            scheme, host = data["host"].split("://", 1)
            data = {**data, "host": host.rstrip("/"), "scheme": data.get("scheme") or scheme}
        return data

    @field_validator("commit_url_format", "issue_url_format", "compare_url_format")
    @classmethod
    def _validate_url_format(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return _check_template(value, URL_TEMPLATE_FIELDS, "URL template")

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.owner and self.repository)

    @property
    def effective_family(self) -> HostFamily:
        if self.family:
            return self.family
        host = (self.host or "").lower()
        if "gitlab" in host:
            return "gitlab"
        if "bitbucket" in host:
            return "bitbucket"
        return "github"

    @property
    def base_url(self) -> str | None:
        if not self.host:
            return None
        return f"{self.scheme}://{self.host}"


class PackagesConfig(_Frozen):
    """Monorepo scoping: only commits touching ``path`` count."""

    path: str | None = None

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().replace("\\", "/").removeprefix("./").strip("/")
        return value or None


class ChangebumpConfig(_Frozen):
    """Root configuration."""

    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    packages: PackagesConfig = Field(default_factory=PackagesConfig)

    @property
    def effective_tag_prefix(self) -> str:
        return self.version.tag_prefix

    @property
    def is_monorepo(self) -> bool:
        return self.packages.path is not None

    def with_remote(
        self,
        host: str | None,
        owner: str | None,
        repository: str | None,
        scheme: str | None = None,
    ) -> ChangebumpConfig:
        """Return a copy with remote fields filled in where they are still unset."""
        remote = self.remote
        merged = RemoteConfig(
            host=remote.host or host,
            owner=remote.owner or owner,
            repository=remote.repository or repository,
            scheme=scheme if (scheme and not remote.host) else remote.scheme,
            family=remote.family,
            commit_url_format=remote.commit_url_format,
            issue_url_format=remote.issue_url_format,
            compare_url_format=remote.compare_url_format,
        )
        return self.model_copy(update={"remote": merged})


def normalize_footer_key(key: str) -> str:
    """Case-fold a footer token; ``BREAKING-CHANGE`` and ``BREAKING CHANGE`` are synonyms."""
    key = " ".join(key.split()).lower()
    if key == "breaking-change":
        return "breaking change"
    return key


def load_config_from_mapping(data: dict[str, Any] | None = None) -> ChangebumpConfig:
    """Build a configuration from an already parsed mapping.

    Raises:
        ConfigError: If the mapping does not describe a valid configuration
    """
    try:
        return ChangebumpConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
