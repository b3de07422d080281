"""Placeholder substitution for message and report templates."""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from config.prompt_config import MessageTemplates

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def substitute(template: str, variables: Mapping[str, Any]) -> str:
    """Replace every ``{{name}}`` with ``str(variables[name])``.

    Missing keys and ``None`` values become the empty string. The template is
    scanned once, so placeholder syntax inside an inserted value is kept as-is.
    """

    def _value(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER.sub(_value, template)


def format_list(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_scores(scores: Mapping[str, Any]) -> str:
    return "\n".join(f"- {key.replace('_', ' ')}: {value}" for key, value in scores.items())


class MessageTemplateEngine:
    """Renders the configured interviewer message templates."""

    def __init__(self, templates: MessageTemplates) -> None:
        self._templates = templates

    def opening(self, problem_title: str, code_language: str = "") -> str:
        return substitute(
            self._templates.opening,
            {"problem_title": problem_title, "code_language": code_language},
        )

    def no_context(self) -> str:
        return self._templates.no_context

    def diff_probe(self, diff_snippet: str) -> str:
        return substitute(self._templates.diff_probe, {"diff_snippet": diff_snippet.strip()})

    def time_check(self, minute: int) -> str:
        return substitute(self._templates.time_check, {"minute": minute})

    def nudge_focus(self) -> str:
        return self._templates.nudge_focus

    def custom(self, template: str, variables: Mapping[str, Any] | None = None) -> str:
        return substitute(template, variables or {})


__all__ = ["MessageTemplateEngine", "PLACEHOLDER", "format_list", "format_scores", "substitute"]
