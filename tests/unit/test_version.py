"""Tests for semantic versions and the next-version calculation."""

from __future__ import annotations

import pytest

from changebump.config.models import load_config_from_mapping
from changebump.core.version import (
    BumpOverrides,
    BumpType,
    Version,
    compute_bump,
    next_version,
    parse_version,
)
from changebump.exceptions import InvalidVersionError


class TestVersion:
    """Tests for Version parsing, ordering and bumping."""

    def test_parse(self):
        v = Version.parse("1.2.3-rc.1+build.5")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)
        assert v.prerelease == "rc.1"
        assert v.build == "build.5"
        assert str(v) == "1.2.3-rc.1+build.5"

    @pytest.mark.parametrize("raw", ["1.2", "01.2.3", "v1.2.3", "1.2.3-", "abc"])
    def test_parse_invalid(self, raw: str):
        with pytest.raises(InvalidVersionError):
            Version.parse(raw)

    def test_parse_with_prefix(self):
        assert parse_version("v2.0.1", "v") == Version(2, 0, 1)
        assert parse_version("pkg-v2.0.1", "pkg-v") == Version(2, 0, 1)

    def test_ordering(self):
        """Semver precedence: prereleases sort before their release."""
        ordered = ["1.0.0-alpha", "1.0.0-alpha.1", "1.0.0-beta.2", "1.0.0-beta.11", "1.0.0-rc.1", "1.0.0", "1.0.1"]
        versions = [Version.parse(v) for v in ordered]
        assert sorted(reversed(versions)) == versions

    def test_bump(self):
        v = Version(1, 2, 3)
        assert v.bump(BumpType.MAJOR) == Version(2, 0, 0)
        assert v.bump(BumpType.MINOR) == Version(1, 3, 0)
        assert v.bump(BumpType.PATCH) == Version(1, 2, 4)
        assert v.bump(BumpType.NONE) is v

    def test_release_level(self):
        assert Version(2, 0, 0).release_level is BumpType.MAJOR
        assert Version(2, 1, 0).release_level is BumpType.MINOR
        assert Version(2, 1, 1).release_level is BumpType.PATCH

    def test_max_bump_type(self):
        assert BumpType.max_bump_type([BumpType.PATCH, BumpType.MAJOR, BumpType.MINOR]) is BumpType.MAJOR
        assert BumpType.max_bump_type([]) is BumpType.NONE


class TestComputeBump:
    """Tests for compute_bump()."""

    def test_patch_only(self, make_commit, config):
        commits = [make_commit("fix: a"), make_commit("docs: b")]
        assert compute_bump(commits, config) is BumpType.PATCH

    def test_feat_is_minor(self, make_commit, config):
        commits = [make_commit("fix: a"), make_commit("feat: b")]
        assert compute_bump(commits, config) is BumpType.MINOR

    def test_breaking_is_major(self, make_commit, config):
        commits = [make_commit("feat: b"), make_commit("chore!: drop py38")]
        assert compute_bump(commits, config) is BumpType.MAJOR

    def test_type_increment_overrides_default(self, make_commit):
        """A per-type increment replaces the feat/patch rule for that type."""
        types = [
            {"type": "feat", "increment": "Patch"},
            {"type": "perf", "increment": "minor"},
            {"type": "docs", "increment": "none"},
        ]
        config = load_config_from_mapping({"commits": {"types": types}})

        assert compute_bump([make_commit("feat: a", config)], config) is BumpType.PATCH
        assert compute_bump([make_commit("perf: b", config)], config) is BumpType.MINOR
        assert compute_bump([make_commit("docs: c", config)], config) is BumpType.NONE

    def test_breaking_wins_over_type_increment(self, make_commit):
        config = load_config_from_mapping({"commits": {"types": [{"type": "docs", "increment": "none"}]}})
        assert compute_bump([make_commit("docs!: c", config)], config) is BumpType.MAJOR

    def test_unknown_types_contribute_nothing(self, make_commit, config):
        assert compute_bump([make_commit("wip: something")], config) is BumpType.NONE

    def test_ignored_types_contribute_nothing(self, make_commit):
        config = load_config_from_mapping({"commits": {"ignored_types": ["feat"]}})
        assert compute_bump([make_commit("feat!: x", config)], config) is BumpType.NONE


class TestNextVersion:
    """Tests for next_version()."""

    def test_patch_history(self, make_commit, config):
        """Patch-only history on 1.2.3 gives 1.2.4."""
        decision = next_version([make_commit("fix: a")], Version(1, 2, 3), config=config)

        assert decision.bump is BumpType.PATCH
        assert str(decision) == "1.2.4"
        assert decision.previous == Version(1, 2, 3)
        assert decision.is_bump

    def test_adding_breaking_commit_gives_major(self, make_commit, config):
        history = [make_commit("feat: a")]
        assert next_version(history, Version(1, 2, 3), config=config).bump is BumpType.MINOR

        history.append(make_commit("fix!: b"))
        decision = next_version(history, Version(1, 2, 3), config=config)
        assert decision.bump is BumpType.MAJOR
        assert str(decision) == "2.0.0"

    def test_major_version_zero(self, make_commit, config):
        """0.x.y + breaking without overrides is a minor bump."""
        decision = next_version([make_commit("feat!: a")], Version(0, 4, 1), config=config)

        assert decision.bump is BumpType.MINOR
        assert str(decision) == "0.5.0"

    def test_major_flag_wins(self, make_commit, config):
        """--major over a minor history gives major."""
        decision = next_version(
            [make_commit("feat: a")], Version(1, 2, 3), BumpOverrides(major=True), config=config
        )
        assert decision.bump is BumpType.MAJOR
        assert str(decision) == "2.0.0"

    def test_explicit_major_not_demoted_under_zero(self, make_commit, config):
        decision = next_version([], Version(0, 4, 1), BumpOverrides(major=True), config=config)
        assert str(decision) == "1.0.0"

    def test_flag_precedence(self, config):
        overrides = BumpOverrides(minor=True, patch=True, bump=BumpType.MAJOR)
        assert next_version([], Version(1, 0, 0), overrides, config=config).bump is BumpType.MINOR

    def test_explicit_bump_beats_computed(self, make_commit, config):
        overrides = BumpOverrides(bump=BumpType.PATCH)
        decision = next_version([make_commit("feat: a")], Version(1, 0, 0), overrides, config=config)
        assert str(decision) == "1.0.1"

    def test_nothing_to_release(self, make_commit, config):
        """No severity and no override is not an error."""
        decision = next_version([make_commit("wip: a")], Version(1, 0, 0), config=config)

        assert decision.bump is BumpType.NONE
        assert decision.version == Version(1, 0, 0)
        assert not decision.is_bump

    def test_prerelease_progression(self, make_commit, config):
        decision = next_version([make_commit("fix: a")], Version.parse("1.0.0-rc.1"), config=config)
        assert str(decision) == "1.0.0-rc.2"

        decision = next_version([make_commit("feat: a")], Version.parse("1.0.0-beta"), config=config)
        assert str(decision) == "1.0.0-beta.1"

    def test_prerelease_label_never_goes_backwards(self, config):
        """Switching to a label that sorts lower keeps counting the current label."""
        current = Version.parse("1.0.0-rc.3")
        decision = next_version([], current, BumpOverrides(patch=True, prerelease="beta"), config=config)

        assert str(decision) == "1.0.0-rc.4"
        assert decision.version > current

    def test_prerelease_label_switch_forward(self, config):
        current = Version.parse("1.0.0-beta.2")
        decision = next_version([], current, BumpOverrides(patch=True, prerelease="rc"), config=config)
        assert str(decision) == "1.0.0-rc.1"

    def test_promote_prerelease(self, config):
        decision = next_version([], Version.parse("2.1.0-rc.3"), BumpOverrides(promote=True), config=config)

        assert str(decision) == "2.1.0"
        assert decision.bump is BumpType.MINOR

    def test_start_prerelease(self, make_commit, config):
        """A prerelease label on a release starts a prerelease of the bumped version."""
        decision = next_version(
            [make_commit("feat: a")], Version(1, 2, 3), BumpOverrides(prerelease="rc"), config=config
        )
        assert str(decision) == "1.3.0-rc.1"
