"""Page extraction for coding-problem sites.

Selectors are tried in order; the first one yielding usable text wins.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from .payload import ExtensionPayload

logger = logging.getLogger(__name__)

TITLE_SELECTORS = (
    'h1[data-cy="question-title"]',
    ".css-v3d350",
    '[data-cy="question-title"]',
    "h1",
    ".question-title",
)
DESCRIPTION_SELECTORS = (
    '[data-cy="question-detail-main-tabs"] .content__u3I1',
    ".question-content",
    '[data-cy="question-detail-main-tabs"]',
    ".content__u3I1",
    ".question-description",
)
CODE_SELECTORS = (
    ".monaco-editor .view-lines",
    ".CodeMirror-code",
    '[data-cy="code-editor"]',
    ".monaco-editor",
    'textarea[data-cy="code-editor"]',
)
DIFFICULTY_SELECTORS = (
    '[data-cy="question-detail-main-tabs"] .css-10o4wqw',
    ".difficulty-badge",
    ".css-t42afm",
    "[data-difficulty]",
)
DIFFICULTIES = ("easy", "medium", "hard")
MIN_DESCRIPTION_CHARS = 50
MIN_CODE_CHARS = 10
_WHITESPACE = re.compile(r"\s+")


def _first(soup: BeautifulSoup, selectors: Sequence[str]):
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            yield node


def extract_title(soup: BeautifulSoup) -> str:
    for node in _first(soup, TITLE_SELECTORS):
        text = node.get_text().strip()
        if text:
            return text
    return ""


def extract_description(soup: BeautifulSoup) -> str:
    for node in _first(soup, DESCRIPTION_SELECTORS):
        text = _WHITESPACE.sub(" ", node.get_text()).strip()
        if len(text) > MIN_DESCRIPTION_CHARS:
            return text
    return ""


def _code_text(node: Tag) -> str:
    lines = node.select(".view-line")
    if lines:  # Monaco renders one element per editor line
        return "\n".join(line.get_text() for line in lines)
    if node.name == "textarea":
        return node.string or node.get_text()
    return node.get_text()


def extract_code(soup: BeautifulSoup) -> str:
    for node in _first(soup, CODE_SELECTORS):
        code = _code_text(node).strip()
        if len(code) > MIN_CODE_CHARS:
            return code
    textarea = soup.select_one('textarea[data-cy="code-editor"]')
    if textarea is not None and textarea.get_text():
        return textarea.get_text()
    return ""


def extract_difficulty(soup: BeautifulSoup) -> str:
    for node in _first(soup, DIFFICULTY_SELECTORS):
        value = node.get_text().strip().lower()
        if value in DIFFICULTIES:
            return value
    return ""


def extract_page(html: str, url: str = "") -> Optional[ExtensionPayload]:
    """Build an :class:`ExtensionPayload` from page HTML, or None when no title is found."""

    soup = BeautifulSoup(html or "", "html.parser")
    title = extract_title(soup)
    if not title:
        logger.debug("No problem title found on page %s", url or "<inline>")
        return None
    return ExtensionPayload(
        problem_title=title,
        problem_description=extract_description(soup),
        editor_code=extract_code(soup),
        difficulty=extract_difficulty(soup),
        url=url,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


__all__ = ["extract_code", "extract_description", "extract_difficulty", "extract_page", "extract_title"]
