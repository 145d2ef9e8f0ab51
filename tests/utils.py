"""Test utilities: a renderer double and page helpers.

The FakeRenderer stands in for PlaywrightRenderer so that the driver can be
tested against fixture HTML without a browser.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from formulary.common.data_models import (
    Medicine,
    MedicineAbout,
    MedicineMetadata,
)
from formulary.common.exceptions import NavigationFailedException
from formulary.common.lxml_page_element import LxmlPageElement

BASE_URL = "https://medicines.test"


def snapshot(content: str, url: str = BASE_URL) -> LxmlPageElement:
    """Parse an HTML fragment or document the way a renderer would."""
    return LxmlPageElement.from_html(content, url)


class FakeSession:
    """RendererSession serving pages from the owning FakeRenderer."""

    def __init__(self, renderer: "FakeRenderer") -> None:
        self.renderer = renderer

    async def navigate(self, url: str) -> LxmlPageElement:
        return await self.renderer.navigate(url)


class FakeRenderer:
    """Renderer double serving fixture HTML keyed by absolute URL.

    Unknown URLs answer with a 404. ``fail_urls`` makes the first N
    navigations to a URL fail with a 500, or every navigation when N is
    None. Open sessions are counted so tests can check the concurrency
    bound.
    """

    def __init__(
        self,
        pages: dict[str, str],
        navigation_delay: float = 0.0,
    ) -> None:
        self.pages = dict(pages)
        self.navigation_delay = navigation_delay
        self.fail_urls: dict[str, int | None] = {}
        self.visits: Counter[str] = Counter()
        self.open_kwargs: dict[str, Any] = {}
        self.active_sessions = 0
        self.max_active_sessions = 0
        self.sessions_opened = 0

    def fail(self, url: str, times: int | None = None) -> None:
        self.fail_urls[url] = times

    async def navigate(self, url: str) -> LxmlPageElement:
        self.visits[url] += 1
        # Give sibling tasks a chance to run
        await asyncio.sleep(self.navigation_delay)

        if url in self.fail_urls:
            times = self.fail_urls[url]
            if times is None or self.visits[url] <= times:
                raise NavigationFailedException(500, url)

        content = self.pages.get(url)
        if content is None:
            raise NavigationFailedException(404, url)
        return LxmlPageElement.from_html(content, url)

    @asynccontextmanager
    async def new_session(self) -> AsyncIterator[FakeSession]:
        self.sessions_opened += 1
        self.active_sessions += 1
        self.max_active_sessions = max(
            self.max_active_sessions, self.active_sessions
        )
        try:
            yield FakeSession(self)
        finally:
            self.active_sessions -= 1

    @asynccontextmanager
    async def open(self, **kwargs: Any) -> AsyncIterator["FakeRenderer"]:
        """Stands in for PlaywrightRenderer.open."""
        self.open_kwargs = kwargs
        yield self


def make_medicine(
    slug: str = "beetlamol",
    name: str = "Beetlamol",
    scraped_at: datetime | None = None,
) -> Medicine:
    """A minimal Medicine record for store tests."""
    return Medicine(
        name=name,
        slug=slug,
        url=f"{BASE_URL}/medicines/{slug}/",
        about=MedicineAbout(description=f"{name} description."),
        metadata=MedicineMetadata(
            scraped_at=scraped_at
            or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        ),
    )
