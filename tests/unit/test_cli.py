"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from changebump import __version__
from changebump.cli import app

runner = CliRunner()


def _invoke(repo, *args: str):
    return runner.invoke(app, ["-C", str(repo.path), *args])


@pytest.fixture
def released_repo(git_repo):
    """A repository with v1.0.0 and one unreleased feature."""
    git_repo.commit("feat: initial")
    git_repo.tag("v1.0.0")
    git_repo.commit("feat(cli): add export\n\nCloses #5")
    return git_repo


class TestApp:
    """Tests for global options."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"changebump {__version__}" in result.output

    def test_shell_completion_available(self):
        result = runner.invoke(app, ["--help"])
        assert "--install-completion" in result.output

    def test_not_a_repository(self, tmp_path):
        result = runner.invoke(app, ["-C", str(tmp_path), "check"])
        assert result.exit_code == 1


class TestCheckCommand:
    """Tests for 'changebump check'."""

    def test_all_valid(self, released_repo):
        result = _invoke(released_repo, "check")

        assert result.exit_code == 0, result.output
        assert "no errors in 2 commits" in result.output

    def test_invalid_commit_fails(self, released_repo):
        released_repo.commit("updated stuff")
        result = _invoke(released_repo, "check")

        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert "updated stuff" in result.output
        assert "1/3 failed" in result.output

    def test_unknown_type_fails(self, released_repo):
        released_repo.commit("wip: later")
        result = _invoke(released_repo, "check")
        assert result.exit_code == 1

    def test_range(self, released_repo):
        released_repo.commit("updated stuff")
        result = _invoke(released_repo, "check", "v1.0.0..HEAD~1")

        assert result.exit_code == 0, result.output
        assert "no errors in 1 commit" in result.output

    def test_max_count(self, released_repo):
        result = _invoke(released_repo, "check", "-n", "1")
        assert "no errors in 1 commit" in result.output

    def test_ignore_reverts(self, released_repo):
        released_repo.commit('Revert "feat(cli): add export"\n\nThis reverts commit 1234567.')
        result = _invoke(released_repo, "check", "--ignore-reverts")
        assert "no errors in 2 commits" in result.output

    def test_empty_repository(self, git_repo):
        result = _invoke(git_repo, "check")

        assert result.exit_code == 0
        assert "no commits checked" in result.output


class TestVersionCommand:
    """Tests for 'changebump version'."""

    def test_initial_version(self, git_repo):
        git_repo.commit("feat: initial")
        result = _invoke(git_repo, "version")

        assert result.exit_code == 0
        assert result.output.strip() == "0.1.0"

    def test_current_version(self, released_repo):
        assert _invoke(released_repo, "version").output.strip() == "1.0.0"

    def test_bump(self, released_repo):
        assert _invoke(released_repo, "version", "--bump").output.strip() == "1.1.0"

    def test_label(self, released_repo):
        assert _invoke(released_repo, "version", "--bump", "--label").output.strip() == "minor"

    def test_forced_major(self, released_repo):
        assert _invoke(released_repo, "version", "--major").output.strip() == "2.0.0"

    def test_prerelease(self, released_repo):
        assert _invoke(released_repo, "version", "--bump", "--prerelease", "rc").output.strip() == "1.1.0-rc.1"

    def test_prefix(self, released_repo):
        released_repo.tag("release-3.0.0")
        assert _invoke(released_repo, "version", "--prefix", "release-").output.strip() == "3.0.0"

    def test_configured_prefix(self, released_repo):
        (released_repo.path / "pyproject.toml").write_text('[tool.changebump.version]\ntag_prefix = "rel-"\n')
        assert _invoke(released_repo, "version").output.strip() == "0.1.0"


class TestChangelogCommand:
    """Tests for 'changebump changelog'."""

    def test_stdout(self, released_repo):
        result = _invoke(released_repo, "changelog")

        assert result.exit_code == 0, result.output
        assert result.output.startswith("# Changelog\n\n## Unreleased")
        assert "## 1.0.0" in result.output
        assert "* **cli:** add export" in result.output

    def test_links_from_origin(self, released_repo):
        released_repo.git("remote", "add", "origin", "git@github.com:acme/tool.git")
        result = _invoke(released_repo, "changelog")

        assert "## [Unreleased](https://github.com/acme/tool/compare/v1.0.0...HEAD)" in result.output
        assert "[#5](https://github.com/acme/tool/issues/5)" in result.output

        result = _invoke(released_repo, "changelog", "--no-links")
        assert "https://" not in result.output

    def test_unreleased_header(self, released_repo):
        result = _invoke(released_repo, "changelog", "--unreleased-header", "{prefix}{next_version}")
        assert "## v1.1.0" in result.output

    def test_output_file(self, released_repo, tmp_path):
        target = tmp_path / "CHANGELOG.md"
        result = _invoke(released_repo, "changelog", "-o", str(target))

        assert result.exit_code == 0, result.output
        assert target.read_text().startswith("# Changelog\n\n")

    def test_template_file(self, released_repo, tmp_path):
        template = tmp_path / "changelog.j2"
        template.write_text("{% for s in sections %}<{{ s.version }}>{% endfor %}")
        result = _invoke(released_repo, "changelog", "--template", str(template))

        assert result.exit_code == 0, result.output
        assert "<Unreleased><1.0.0>" in result.output

    def test_broken_template(self, released_repo, tmp_path):
        template = tmp_path / "changelog.j2"
        template.write_text("{% if %}")
        result = _invoke(released_repo, "changelog", "--template", str(template))
        assert result.exit_code == 1

    def test_max_tags(self, released_repo):
        result = _invoke(released_repo, "changelog", "--max-tags", "0")
        assert "## 1.0.0" not in result.output


class TestRevisionRanges:
    """`version` and `changelog` read history up to the right end of a range."""

    def test_changelog_with_range(self, released_repo):
        result = _invoke(released_repo, "changelog", "v1.0.0..HEAD")

        assert result.exit_code == 0, result.output
        assert "## Unreleased" in result.output
        assert "* **cli:** add export" in result.output

    def test_version_with_range(self, released_repo):
        result = _invoke(released_repo, "version", "--bump", "v1.0.0..HEAD")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "1.1.0"

    def test_open_range(self, released_repo):
        assert _invoke(released_repo, "version", "v1.0.0..").output.strip() == "1.0.0"


class TestConfigCommand:
    """Tests for 'changebump config'."""

    def test_prints_resolved_config(self, released_repo):
        released_repo.git("remote", "add", "origin", "https://gitlab.com/group/sub/tool.git")
        (released_repo.path / "pyproject.toml").write_text("[tool.changebump.changelog]\nline_length = 72\n")
        result = _invoke(released_repo, "config")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["changelog"]["line_length"] == 72
        assert data["remote"]["owner"] == "group/sub"
        assert data["remote"]["host"] == "gitlab.com"

    def test_invalid_config(self, released_repo):
        (released_repo.path / "pyproject.toml").write_text('[tool.changebump.commits]\nscope_regex = "["\n')
        result = _invoke(released_repo, "config")
        assert result.exit_code == 1
