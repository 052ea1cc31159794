"""Tests for changelog rendering."""

from __future__ import annotations

import pytest

from changebump.config.models import ChangebumpConfig, load_config_from_mapping
from changebump.core.changelog import build_render_context, build_sections
from changebump.core.render import render_changelog, word_wrap
from changebump.exceptions import TemplateError


def _render(history, config: ChangebumpConfig) -> str:
    return render_changelog(build_render_context(build_sections(history, config), config), config)


class TestWordWrap:
    """Tests for word_wrap()."""

    def test_wraps_long_lines(self):
        text = "one two three four five six seven eight nine ten"
        assert all(len(line) < 20 for line in word_wrap(text, 20).splitlines())

    def test_keeps_existing_breaks(self):
        assert word_wrap("a b\nc d", 80) == "a b\nc d"

    def test_long_word_not_split(self):
        word = "x" * 30
        assert word_wrap(f"{word} y", 10) == f"{word}\ny"


class TestRenderChangelog:
    """Tests for render_changelog()."""

    def test_empty_unreleased_renders_header(self):
        """An empty Unreleased section still renders its header verbatim."""
        config = load_config_from_mapping({"changelog": {"unreleased_header": "Upcoming {prefix}release"}})
        text = _render([], config)

        assert text == "# Changelog\n\n## Upcoming vrelease\n\n"

    def test_default_template(self, make_commit):
        config = load_config_from_mapping(
            {"remote": {"host": "github.com", "owner": "acme", "repository": "tool"}}
        )
        commit = make_commit("feat(auth): add login\n\nCloses #12", hash="abc1234" + "0" * 33)
        breaking = make_commit("fix!: correct race\n\nBREAKING CHANGE: api changed")
        text = _render([(None, commit), (None, breaking)], config)

        assert "### ⚠ BREAKING CHANGES" in text
        assert "* api changed" in text
        assert "### Features" in text
        assert (
            "* **auth:** add login ([abc1234](https://github.com/acme/tool/commit/abc1234"
            + "0" * 33
            + ")), closes [#12](https://github.com/acme/tool/issues/12)"
        ) in text.replace("\n", " ")
        assert text.index("### Features") < text.index("### Fixes")

    def test_no_links_without_remote(self, make_commit, config):
        text = _render([(None, make_commit("fix: a\n\nRefs #4", hash="f" * 40))], config)
        assert "* a (fffffff), closes #4" in text

    def test_custom_template(self, make_commit):
        template = "{% for s in sections %}{{ s.version }}:{% for g in s.types %}{{ g.label }}{% endfor %}\n{% endfor %}"
        config = load_config_from_mapping({"changelog": {"template": template, "header": ""}})
        assert _render([(None, make_commit("feat: a"))], config) == "Unreleased:Features"

    def test_wrap_disabled(self, make_commit):
        long_description = " ".join(["word"] * 40)
        config = load_config_from_mapping({"changelog": {"wrap_disabled": True}})
        text = _render([(None, make_commit(f"feat: {long_description}"))], config)
        assert long_description in text

    def test_wrapping_honors_line_length(self, make_commit):
        long_description = " ".join(["word"] * 40)
        config = load_config_from_mapping({"changelog": {"line_length": 40}})
        text = _render([(None, make_commit(f"feat: {long_description}"))], config)
        assert all(len(line) < 40 for line in text.splitlines())

    def test_syntax_error(self):
        config = load_config_from_mapping({"changelog": {"template": "{% for x in %}"}})
        with pytest.raises(TemplateError, match="Invalid changelog template"):
            render_changelog({"header": "", "sections": []}, config)

    def test_undefined_variable(self):
        config = load_config_from_mapping({"changelog": {"template": "{{ nope.attr }}"}})
        with pytest.raises(TemplateError, match="Failed to render"):
            render_changelog({"header": "", "sections": []}, config)

    def test_render_twice_identical(self, make_commit, config):
        history = [(None, make_commit("feat: a")), (None, make_commit("fix: b"))]
        assert _render(history, config) == _render(history, config)
