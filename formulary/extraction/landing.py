"""Landing page parsing: title, brand names, description, review date."""

from __future__ import annotations

import re
from datetime import date, datetime

from formulary.common.page_element import PageElement
from formulary.extraction.text import (
    HEADING_TAGS,
    element_text,
    find_main,
    normalize_text,
)

LAST_REVIEWED_MARKER = "Last reviewed"

_OTHER_BRANDS = re.compile(r"\s+-\s+Other brand names:\s+", re.IGNORECASE)
_TRAILING_PARENTHETICAL = re.compile(r"^(.*?)\((.*?)\)$")
_BRAND_SEPARATOR = re.compile(r",|/")
_REVIEW_DATE = re.compile(r"(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})")


def _split_brands(text: str) -> list[str]:
    return [
        brand.strip()
        for brand in _BRAND_SEPARATOR.split(text)
        if brand.strip()
    ]


def parse_brand_names(title: str) -> tuple[str, list[str]]:
    """Split a medicine title into its name and brand names.

    Handles both conventions used on the site, alone or combined::

        >>> parse_brand_names("Paracetamol (Panadol, Calpol)")
        ('Paracetamol', ['Panadol', 'Calpol'])
        >>> parse_brand_names("Ibuprofen - Other brand names: Nurofen")
        ('Ibuprofen', ['Nurofen'])

    Args:
        title: The page's h1 text.

    Returns:
        Tuple of (name, brand names). Brand names are de-duplicated.
    """
    cleaned = normalize_text(title)
    parts = _OTHER_BRANDS.split(cleaned, maxsplit=1)
    name = parts[0]
    brands = _split_brands(parts[1]) if len(parts) > 1 else []

    match = _TRAILING_PARENTHETICAL.match(name)
    if match:
        name = match.group(1).strip()
        brands.extend(_split_brands(match.group(2)))

    return name, list(dict.fromkeys(brands))


def extract_title(page: PageElement) -> str | None:
    headings = page.query_css("main h1", "medicine title", min_count=0)
    if not headings:
        return None
    return headings[0].text_content().strip() or None


def extract_intro_description(page: PageElement) -> str | None:
    """Join the paragraphs that come before the first h2/h3 of <main>.

    Paragraphs mentioning the "Last reviewed" marker are skipped.

    Returns:
        Paragraphs separated by blank lines, or None if there are none.
    """
    main = find_main(page)
    if main is None:
        return None

    paragraphs: list[str] = []
    for element in main.iter_descendants("p", *HEADING_TAGS):
        if element.tag_name() in HEADING_TAGS:
            break
        if LAST_REVIEWED_MARKER in element.text_content():
            continue
        text = element_text(element)
        if text:
            paragraphs.append(text)

    return "\n\n".join(paragraphs) if paragraphs else None


def extract_title_paragraph(page: PageElement) -> str | None:
    """Text of the paragraph directly after the title, if there is one."""
    paragraphs = page.query_css(
        "main h1 + p", "paragraph after title", min_count=0
    )
    if not paragraphs:
        return None
    return paragraphs[0].text_content().strip() or None


def extract_description(page: PageElement, default: str = "") -> str:
    """The page's introductory description, with fallbacks.

    Tries the intro paragraphs, then the paragraph after the title, then
    ``default``.
    """
    return (
        extract_intro_description(page)
        or extract_title_paragraph(page)
        or default
    )


def parse_review_date(text: str) -> date | None:
    """Parse a ``day month year`` date such as "12 January 2024"."""
    match = _REVIEW_DATE.search(text)
    if not match:
        return None

    day, month, year = match.groups()
    # "Sept" and other long abbreviations only match on their first three
    # letters
    candidates = (
        (f"{day} {month} {year}", "%d %B %Y"),
        (f"{day} {month[:3]} {year}", "%d %b %Y"),
    )
    for raw, fmt in candidates:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def extract_last_reviewed(page: PageElement) -> date | None:
    """Review date from the first <main> paragraph with "Last reviewed".

    Unparseable dates are treated as absent.
    """
    for paragraph in page.query_css("main p", "paragraphs", min_count=0):
        text = paragraph.text_content()
        if LAST_REVIEWED_MARKER in text:
            return parse_review_date(text)
    return None
