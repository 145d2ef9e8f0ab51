"""LxmlPageElement implementation wrapping CheckedHtmlElement.

This is the PageElement implementation used by every renderer, including the
test doubles: the renderer snapshots the DOM to HTML and wraps the parsed tree
with :meth:`LxmlPageElement.from_html`.
"""

from __future__ import annotations

from collections.abc import Iterator
from urllib.parse import urljoin

from lxml import html
from lxml.html import HtmlElement

from formulary.common.checked_html import CheckedHtmlElement
from formulary.common.page_element import Link


class LxmlPageElement:
    """Implementation of the PageElement protocol over lxml.

    Attributes:
        _element: The underlying CheckedHtmlElement.
        _url: The URL of the page, used for resolving relative links.
    """

    def __init__(self, element: CheckedHtmlElement, url: str = ""):
        self._element = element
        self._url = url

    @classmethod
    def from_html(cls, content: str, url: str = "") -> LxmlPageElement:
        """Parse an HTML document snapshot.

        Args:
            content: Serialized HTML, typically ``page.content()``.
            url: The URL the snapshot was taken from.

        Returns:
            LxmlPageElement wrapping the document root.
        """
        root = html.document_fromstring(content)
        return cls(CheckedHtmlElement(root, url), url)

    @property
    def url(self) -> str:
        return self._url

    def _wrap(self, element: CheckedHtmlElement) -> LxmlPageElement:
        return LxmlPageElement(element, self._url)

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by XPath selector.

        Args:
            selector: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching LxmlPageElement instances.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match.
        """
        return [
            self._wrap(elem)
            for elem in self._element.checked_xpath(
                selector, description, min_count, max_count
            )
        ]

    def query_xpath_strings(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[str]:
        return self._element.checked_xpath(
            selector, description, min_count, max_count, type=str
        )

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by CSS selector.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching LxmlPageElement instances.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match.
        """
        return [
            self._wrap(elem)
            for elem in self._element.checked_css(
                selector, description, min_count, max_count
            )
        ]

    def text_content(self) -> str:
        return self._element.text_content()

    def get_attribute(self, name: str) -> str | None:
        return self._element.get(name)

    def tag_name(self) -> str:
        return self._element.tag.lower()

    def following_siblings(self) -> list[LxmlPageElement]:
        """Element siblings after this element, in document order.

        Comments and processing instructions are skipped, matching the DOM's
        ``nextElementSibling`` chain.
        """
        return self.query_xpath(
            "following-sibling::*", "following siblings", min_count=0
        )

    def iter_descendants(self, *tags: str) -> Iterator[LxmlPageElement]:
        """Iterate descendant elements with the given tags in document order.

        Args:
            *tags: Tag names to include. All elements if none are given.

        Yields:
            LxmlPageElement for each matching descendant. The element itself
            is not included.
        """
        root: HtmlElement = self._element.element
        for elem in root.iterdescendants(*tags):
            if isinstance(elem, HtmlElement):
                yield self._wrap(CheckedHtmlElement(elem, self._url))

    def find_links(
        self,
        selector: str,
        description: str,
        base_url: str | None = None,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Find links matching a selector.

        Args:
            selector: XPath or CSS selector to find <a> elements.
            description: Human-readable description of the links.
            base_url: URL to resolve relative hrefs against. Defaults to the
                page URL.
            min_count: Minimum number of links expected (default: 1).
            max_count: Maximum number of links expected (None = unlimited).

        Returns:
            Link value objects for matched elements with a non-empty href,
            in document order.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match.
        """
        if selector.startswith("//") or selector.startswith("."):
            link_elements = self.query_xpath(
                selector, description, min_count, max_count
            )
        else:
            link_elements = self.query_css(
                selector, description, min_count, max_count
            )

        base = base_url or self._url
        links: list[Link] = []
        for elem in link_elements:
            href = elem.get_attribute("href")
            if not href:
                continue

            links.append(
                Link(
                    url=urljoin(base, href),
                    href=href,
                    text=elem.text_content().strip(),
                )
            )

        return links
