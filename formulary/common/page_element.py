"""PageElement protocol for driver-agnostic data extraction.

A PageElement is always backed by static parsed HTML. The renderer is
responsible for obtaining that HTML by serializing a rendered Playwright DOM;
extraction functions only ever see the snapshot, never a live browser page.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Link:
    """Represents an HTML <a> element with its resolved URL and text.

    Attributes:
        url: Absolute URL resolved from the href attribute.
        href: The raw href attribute value.
        text: Visible text content of the link, stripped.
    """

    url: str
    href: str
    text: str


class PageElement(Protocol):
    """Protocol for querying a static snapshot of a rendered page.

    All query methods support count validation and raise
    HTMLStructuralAssumptionException if the actual count doesn't match
    expectations.
    """

    @property
    def url(self) -> str:
        """The URL the snapshot was taken from."""
        ...

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Query elements by XPath selector."""
        ...

    def query_xpath_strings(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[str]:
        """Query string values (text nodes, attributes) by XPath."""
        ...

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Query elements by CSS selector."""
        ...

    def text_content(self) -> str:
        """Text content of the element and its descendants."""
        ...

    def get_attribute(self, name: str) -> str | None:
        """Attribute value, or None if it doesn't exist."""
        ...

    def tag_name(self) -> str:
        """Tag name as a lowercase string."""
        ...

    def following_siblings(self) -> list[PageElement]:
        """Element siblings after this element, in document order."""
        ...

    def iter_descendants(self, *tags: str) -> Iterator[PageElement]:
        """Descendant elements with the given tags, in document order."""
        ...

    def find_links(
        self,
        selector: str,
        description: str,
        base_url: str | None = None,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Find <a> elements matching a selector as Link value objects."""
        ...
