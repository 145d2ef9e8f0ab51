"""Text helpers shared by the extraction functions."""

from __future__ import annotations

import re

from formulary.common.page_element import PageElement

_WHITESPACE = re.compile(r"\s+")

HEADING_TAGS = ("h2", "h3")
LIST_TAGS = ("ul", "ol")


def normalize_text(text: str | None) -> str:
    """Collapse whitespace runs to single spaces and strip the ends."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def element_text(element: PageElement) -> str:
    return normalize_text(element.text_content())


def list_item_texts(element: PageElement) -> list[str]:
    """Normalized, non-empty text of every <li> below ``element``."""
    items = (element_text(li) for li in element.iter_descendants("li"))
    return [text for text in items if text]


def find_main(page: PageElement) -> PageElement | None:
    """The page's <main> region, or None when the page has none."""
    mains = page.query_xpath("//main", "main content", min_count=0)
    return mains[0] if mains else None
