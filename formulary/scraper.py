"""Per-medicine scrape: catalog discovery and record composition.

A :class:`MedicineScraper` drives one renderer session through the pages of
a medicine and hands each snapshot to the extraction functions. It does no
retrying, counting or persistence; that is the driver's job.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from formulary.common.data_models import Medicine, MedicineMetadata
from formulary.config import Settings
from formulary.data_types import CatalogTask
from formulary.driver.renderer import RendererSession
from formulary.extraction import (
    build_about_page,
    build_content_page,
    build_questions_page,
    extract_description,
    extract_medicine_links,
    extract_related_links,
    extract_title,
    parse_brand_names,
    parse_catalog_index,
    resolve_subpage_urls,
)
from formulary.extraction.links import CATALOG_NAMESPACE

logger = logging.getLogger(__name__)


class MedicineScraper:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def base_url(self) -> str:
        return self.settings.base_url.rstrip("/")

    @property
    def index_url(self) -> str:
        return f"{self.base_url}/{CATALOG_NAMESPACE}/"

    async def discover(self, session: RendererSession) -> list[CatalogTask]:
        """Navigate to the catalog index and list every medicine on it.

        Returns:
            Tasks unique by slug, in the order they appear on the index.
        """
        page = await session.navigate(self.index_url)
        tasks = parse_catalog_index(page, self.base_url)
        logger.info(
            f"Discovered {len(tasks)} medicines",
            extra={"index_url": self.index_url, "count": len(tasks)},
        )
        return tasks

    async def scrape_medicine(
        self, session: RendererSession, task: CatalogTask
    ) -> Medicine:
        """Scrape one medicine from its landing page and sub-pages.

        Sub-pages are visited one after another in the same session. Any
        navigation or extraction error propagates to the caller.

        Args:
            session: The task's renderer session.
            task: The medicine to scrape.

        Returns:
            The composed Medicine, timestamped now (UTC).
        """
        landing = await session.navigate(task.url)

        title = extract_title(landing) or task.slug
        name, brand_names = parse_brand_names(title)
        description = extract_description(landing)

        medicine_links = extract_medicine_links(
            landing, task.slug, self.base_url
        )
        related_conditions, useful_resources = extract_related_links(
            landing, self.base_url
        )
        urls = resolve_subpage_urls(medicine_links, task.url)
        logger.debug(
            f"Resolved sub-pages for {task.slug}: {urls}",
            extra={"slug": task.slug},
        )

        about = build_about_page(
            await session.navigate(urls.about), description
        )

        async def content_page(url: str | None):
            if url is None:
                return None
            return build_content_page(await session.navigate(url))

        dosage = await content_page(urls.dosage)
        side_effects = await content_page(urls.side_effects)
        pregnancy = await content_page(urls.pregnancy)
        interactions = await content_page(urls.interactions)

        common_questions = None
        if urls.common_questions is not None:
            common_questions = build_questions_page(
                await session.navigate(urls.common_questions)
            )

        return Medicine(
            name=name,
            slug=task.slug,
            url=task.url,
            brand_names=brand_names,
            about=about,
            dosage=dosage,
            side_effects=side_effects,
            pregnancy=pregnancy,
            interactions=interactions,
            common_questions=common_questions,
            related_conditions=related_conditions,
            useful_resources=useful_resources,
            metadata=MedicineMetadata(
                scraped_at=datetime.now(timezone.utc)
            ),
        )
