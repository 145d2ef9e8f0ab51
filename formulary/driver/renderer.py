"""Browser rendering behind a small async interface.

The rest of the package never touches a live browser. A
:class:`RendererSession` navigates one tab and hands back an lxml snapshot of
the rendered DOM, so extraction code only ever sees a :class:`PageElement`:

1. Navigate the tab and wait for ``domcontentloaded``
2. Check the main document's HTTP status
3. Serialize the DOM with ``page.content()``
4. Parse it with lxml and return an :class:`LxmlPageElement`
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    async_playwright,
)
from playwright.async_api import (
    TimeoutError as PlaywrightTimeoutError,
)

from formulary.common.exceptions import (
    NavigationFailedException,
    NavigationTimeoutException,
)
from formulary.common.lxml_page_element import LxmlPageElement
from formulary.common.page_element import PageElement
from formulary.data_types import RunOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxyConfig:
    """Proxy settings in the shape Playwright's ``launch(proxy=...)`` takes."""

    server: str
    username: str | None = None
    password: str | None = None
    bypass: str | None = None

    def to_playwright(self) -> dict[str, str]:
        return {
            key: value for key, value in asdict(self).items() if value
        }


def create_proxy_config(options: RunOptions) -> ProxyConfig | None:
    """Build the proxy settings for a run, if a proxy server was given."""
    if not options.proxy_server:
        return None

    return ProxyConfig(
        server=options.proxy_server,
        username=options.proxy_username or None,
        password=options.proxy_password or None,
        bypass=options.proxy_bypass or None,
    )


class RendererSession(Protocol):
    """One browser tab, owned by a single task for its whole lifetime."""

    async def navigate(self, url: str) -> PageElement:
        """Navigate to ``url`` and return a snapshot of the rendered DOM.

        Raises:
            NavigationFailedException: The main document status is >= 400.
            NavigationTimeoutException: Navigation did not finish in time.
        """
        ...


class Renderer(Protocol):
    def new_session(self) -> AbstractAsyncContextManager[RendererSession]:
        """Open a new tab, closed again when the context exits."""
        ...


class PlaywrightSession:
    """RendererSession over a Playwright page."""

    def __init__(self, page: Page, navigation_timeout_ms: int):
        self._page = page
        self._navigation_timeout_ms = navigation_timeout_ms

    async def navigate(self, url: str) -> PageElement:
        try:
            response = await self._page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self._navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            logger.debug(f"Playwright timeout navigating to {url}: {e}")
            raise NavigationTimeoutException(
                url, self._navigation_timeout_ms
            ) from e

        # goto returns None for same-document navigations
        status = response.status if response is not None else 0
        if status >= 400:
            raise NavigationFailedException(status, url)

        html_content = await self._page.content()
        return LxmlPageElement.from_html(html_content, self._page.url)


class PlaywrightRenderer:
    """Renderer owning Playwright, one Chromium browser and one context.

    Use :meth:`open` rather than the constructor so that the browser is
    always shut down.
    """

    def __init__(
        self, browser_context: BrowserContext, navigation_timeout_ms: int
    ):
        self.browser_context = browser_context
        self.navigation_timeout_ms = navigation_timeout_ms

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        headless: bool = True,
        proxy: ProxyConfig | None = None,
        navigation_timeout_ms: int = 30000,
    ) -> AsyncIterator[PlaywrightRenderer]:
        """Open a renderer as an async context manager.

        Args:
            headless: Run Chromium without a window (default: True).
            proxy: Optional proxy to launch the browser with.
            navigation_timeout_ms: Timeout for each navigation.

        Yields:
            Initialized PlaywrightRenderer instance.

        Example:
            async with PlaywrightRenderer.open(headless=True) as renderer:
                async with renderer.new_session() as session:
                    page = await session.navigate(url)
        """
        launch_kwargs: dict[str, Any] = {"headless": headless}
        if proxy is not None:
            launch_kwargs["proxy"] = proxy.to_playwright()
            logger.info(f"Launching browser through proxy {proxy.server}")

        playwright = await async_playwright().start()
        try:
            browser: Browser = await playwright.chromium.launch(
                **launch_kwargs
            )

            try:
                browser_context = await browser.new_context()
                browser_context.set_default_navigation_timeout(
                    navigation_timeout_ms
                )

                try:
                    yield cls(browser_context, navigation_timeout_ms)

                finally:
                    await browser_context.close()

            finally:
                await browser.close()

        finally:
            await playwright.stop()

    @asynccontextmanager
    async def new_session(self) -> AsyncIterator[PlaywrightSession]:
        page = await self.browser_context.new_page()
        try:
            yield PlaywrightSession(page, self.navigation_timeout_ms)
        finally:
            await page.close()
