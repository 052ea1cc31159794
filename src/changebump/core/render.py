"""Changelog rendering with Jinja2.

The context comes from :func:`changebump.core.changelog.build_render_context`.
Templates get a ``wordwrap`` filter that re-flows long lines to
``changelog.line_length`` without joining lines that are already broken.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import jinja2

from changebump.exceptions import TemplateError

if TYPE_CHECKING:
    from changebump.config.models import ChangebumpConfig

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """\
{% for section in sections %}
{% set title = "[" ~ section.version ~ "](" ~ section.compare_url ~ ")" if section.compare_url else section.version %}
## {{ title }}{{ " (" ~ section.date ~ ")" if section.date else "" }}

{% if section.breaking_changes %}
### ⚠ BREAKING CHANGES

{% for commit in section.breaking_changes %}
{{ ("* " ~ ("**" ~ commit.scope ~ ":** " if commit.scope else "") ~ commit.note) | wordwrap }}
{% endfor %}

{% endif %}
{% for group in section.types %}
### {{ group.label }}

{% for commit in group.commits %}
{% set ns = namespace(line="* ") %}
{% if commit.scope %}{% set ns.line = ns.line ~ "**" ~ commit.scope ~ ":** " %}{% endif %}
{% set ns.line = ns.line ~ commit.description %}
{% if commit.short_hash %}
{% if commit.commit_url %}
{% set ns.line = ns.line ~ " ([" ~ commit.short_hash ~ "](" ~ commit.commit_url ~ "))" %}
{% else %}
{% set ns.line = ns.line ~ " (" ~ commit.short_hash ~ ")" %}
{% endif %}
{% endif %}
{% if commit.issue_refs %}
{% set refs = [] %}
{% for ref in commit.issue_refs %}
{% do refs.append("[" ~ ref.id ~ "](" ~ ref.url ~ ")" if ref.url else ref.id) %}
{% endfor %}
{% set ns.line = ns.line ~ ", closes " ~ refs | join(", ") %}
{% endif %}
{{ ns.line | wordwrap }}
{% endfor %}

{% endfor %}
{% endfor %}
"""


def _wrap_line(line: str, width: int) -> list[str]:
    lines: list[str] = []
    for word in line.split(" "):
        if lines and len(lines[-1]) + len(word) < width:
            lines[-1] = f"{lines[-1]} {word}"
        else:
            lines.append(word)
    return lines


def word_wrap(text: str, line_length: int) -> str:
    """Re-flow ``text`` so lines stay under ``line_length`` where possible.

    Words longer than a line are kept whole. Existing line breaks are kept.

    >>> word_wrap('the quick brown fox', 12)
    'the quick\\nbrown fox'
    """
    width = max(line_length - 2, 1)
    wrapped: list[str] = []
    for line in text.split("\n"):
        wrapped.extend(_wrap_line(line, width))
    return "\n".join(wrapped)


def create_environment(config: ChangebumpConfig) -> jinja2.Environment:
    """Build the Jinja2 environment used for every changelog template."""
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        extensions=["jinja2.ext.do"],
    )
    changelog = config.changelog

    def _wordwrap(value: Any, width: int | None = None) -> str:
        text = str(value)
        if changelog.wrap_disabled:
            return text
        return word_wrap(text, width or changelog.line_length)

    env.filters["wordwrap"] = _wordwrap
    return env


def render_changelog(context: dict[str, Any], config: ChangebumpConfig) -> str:
    """Render the changelog document.

    Args:
        context: Render context with ``header`` and ``sections``
        config: Resolved configuration (template, wrapping)

    Returns:
        The header followed by the rendered sections

    Raises:
        TemplateError: If the template cannot be compiled or rendered
    """
    source = config.changelog.template or DEFAULT_TEMPLATE
    env = create_environment(config)
    try:
        template = env.from_string(source)
    except jinja2.TemplateSyntaxError as e:
        raise TemplateError(f"Invalid changelog template (line {e.lineno}): {e.message}") from e

    try:
        body = template.render(**context)
    except jinja2.TemplateError as e:
        raise TemplateError(f"Failed to render changelog: {e}") from e

    logger.debug("rendered %d section(s)", len(context.get("sections", [])))
    return f"{context.get('header', '')}{body}"
