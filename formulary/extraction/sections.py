"""Heading-delimited segmentation of page content.

A page's main region is cut into sections at every h2/h3 heading. Each
section collects the paragraphs and list items found among the heading's
following siblings, up to the next heading::

    <h2>A</h2> <p>x</p> <h2>B</h2> <ul><li>y</li><li>z</li></ul>

becomes ``[ContentSection("A", ["x"], []), ContentSection("B", [], ["y",
"z"])]``. Only direct siblings of the heading are considered; content nested
in a wrapper element is not picked up.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from formulary.common.data_models import ContentSection
from formulary.common.page_element import PageElement
from formulary.extraction.text import (
    HEADING_TAGS,
    LIST_TAGS,
    element_text,
    find_main,
    list_item_texts,
)

HEADING_XPATH = ".//h2 | .//h3"


@dataclass
class Segment:
    """Raw material of one section, before it is shaped into a record."""

    heading: str
    paragraphs: list[str] = field(default_factory=list)
    bullets: list[str] = field(default_factory=list)
    # paragraphs and bullets interleaved in document order
    parts: list[str] = field(default_factory=list)


def segment(page: PageElement) -> list[Segment]:
    """Split the main region into heading-delimited segments.

    Segments are returned in document order, including segments whose
    heading text is empty; callers decide what to drop.

    Args:
        page: Snapshot of a rendered page.

    Returns:
        One Segment per h2/h3 heading inside <main>.
    """
    main = find_main(page)
    if main is None:
        return []

    segments: list[Segment] = []
    for heading in main.query_xpath(
        HEADING_XPATH, "section headings", min_count=0
    ):
        current = Segment(heading=element_text(heading))

        for sibling in heading.following_siblings():
            tag = sibling.tag_name()
            if tag in HEADING_TAGS:
                break

            if tag == "p":
                text = element_text(sibling)
                if text:
                    current.paragraphs.append(text)
                    current.parts.append(text)
            elif tag in LIST_TAGS:
                items = list_item_texts(sibling)
                current.bullets.extend(items)
                current.parts.extend(items)

        segments.append(current)

    return segments


def extract_sections(page: PageElement) -> list[ContentSection]:
    """Extract the content sections of a page.

    Sections whose heading is empty are dropped.
    """
    return [
        ContentSection(
            heading=seg.heading,
            paragraphs=seg.paragraphs,
            bullets=seg.bullets,
        )
        for seg in segment(page)
        if seg.heading
    ]
