"""Exception types for scraper errors.

Two families mirror the two ways a scrape can go wrong:

- Assumption violations: the rendered page does not look the way the
  extraction code expects. Retrying may help when the page was only half
  rendered, so the task executor retries these too.
- Transient errors: navigation failed (HTTP status >= 400 or a timeout).

Persistence and metadata-index errors are kept outside both families because
they are never retried.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    Subclasses should provide specific context about what assumption was
    violated.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: URL of the page the assumption was made about.
            context: Optional dict of additional context (selector, counts).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message, f"URL: {self.request_url}"]

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when a selector matches an unexpected number of elements.

    Attributes:
        selector: The XPath or CSS selector that was used.
        selector_type: Type of selector ("xpath" or "css").
        is_element_query: True if querying for elements, False for strings.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
        is_element_query: bool = True,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count
        self.is_element_query = is_element_query

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
            "is_element_query": is_element_query,
        }

        super().__init__(message, request_url, context)


class TransientException(Exception):
    """Base class for navigation errors that might resolve on retry."""

    pass


class NavigationFailedException(TransientException):
    """Raised when a navigation returns an HTTP status of 400 or above.

    Attributes:
        status_code: The status code of the main document response.
        url: The URL that was navigated to.
        message: Human-readable error message.
    """

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        self.message = f"Navigation failed {status_code} for {url}"
        super().__init__(self.message)


class NavigationTimeoutException(TransientException):
    """Raised when a navigation does not finish within the timeout.

    Attributes:
        url: The URL that timed out.
        timeout_ms: The navigation timeout in milliseconds.
        message: Human-readable error message.
    """

    def __init__(self, url: str, timeout_ms: int) -> None:
        self.url = url
        self.timeout_ms = timeout_ms
        self.message = f"Navigation to {url} timed out after {timeout_ms}ms"
        super().__init__(self.message)


class PersistenceException(Exception):
    """Raised when a medicine file or the metadata index cannot be written.

    Attributes:
        path: The file that could not be written.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write {path}: {reason}")


class MetadataLoadException(Exception):
    """Raised when an existing metadata index cannot be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load metadata index {path}: {reason}")
