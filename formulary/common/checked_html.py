"""Checked HTML element wrapper for count-validated XPath/CSS queries.

CheckedHtmlElement wraps an ``lxml.html.HtmlElement`` and validates selector
results against expected min/max counts, so that a page whose structure has
drifted fails loudly with the selector and URL in the error instead of
silently producing an empty record.
"""

from __future__ import annotations

from collections.abc import Sized
from typing import overload

from lxml.html import HtmlElement

from formulary.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    Attribute access not defined here is delegated to the wrapped element,
    so ``tag``, ``get()`` and ``text_content()`` work unchanged.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @property
    def element(self) -> HtmlElement:
        """The wrapped lxml element."""
        return self._element

    def _check_count(
        self,
        results: Sized,
        selector: str,
        selector_type: str,
        description: str,
        min_count: int,
        max_count: int | None,
        is_element_query: bool = True,
    ) -> None:
        actual_count = len(results)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type=selector_type,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
                is_element_query=is_element_query,
            )

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str],
    ) -> list[str]: ...

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]: ...

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str] | None = None,
    ) -> list[CheckedHtmlElement] | list[str]:
        """Execute XPath query with count validation.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of results expected (default: 1).
            max_count: Maximum number of results expected (None = unlimited).
            type: Pass ``str`` to return only string results (text nodes,
                attribute values). If omitted, only elements are returned.

        Returns:
            List of matching results filtered by type.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match.

        Example::

            tree = CheckedHtmlElement(lxml.html.fromstring(html))
            headings = tree.checked_xpath("//main//h2", "section headings")
            hrefs = tree.checked_xpath("//main//a/@href", "links", type=str)
        """
        results = self._element.xpath(xpath)

        if type is str:
            # lxml returns _ElementUnicodeResult, a str subclass
            strings = [str(r) for r in results if isinstance(r, str)]
            self._check_count(
                strings,
                xpath,
                "xpath",
                description,
                min_count,
                max_count,
                is_element_query=False,
            )
            return strings

        wrapped = [
            CheckedHtmlElement(r, self._request_url)
            for r in results
            if isinstance(r, HtmlElement)
        ]
        self._check_count(
            wrapped, xpath, "xpath", description, min_count, max_count
        )
        return wrapped

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match, or if
                the selector cannot be parsed.
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        self._check_count(
            results, selector, "css", description, min_count, max_count
        )
        return [CheckedHtmlElement(r, self._request_url) for r in results]

    def __getattr__(self, name: str):
        return getattr(self._element, name)
