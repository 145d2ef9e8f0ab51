"""Data types passed between the CLI, the driver and the scraper.

These are plain dataclasses: none of them is ever written to disk (the
persisted records live in :mod:`formulary.common.data_models`).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CatalogTask:
    """One medicine to scrape.

    Attributes:
        slug: URL-safe identifier, unique within a catalog.
        url: Canonical landing page URL, ``{base}/medicines/{slug}/``.
    """

    slug: str
    url: str


@dataclass(frozen=True)
class RunOptions:
    """Per-invocation overrides. ``None`` means "use the configured value"."""

    limit: int | None = None
    slug: str | None = None
    parallel_tabs: int | None = None
    headless: bool | None = None
    hard_refresh: bool | None = None
    proxy_server: str | None = None
    proxy_username: str | None = None
    proxy_password: str | None = None
    proxy_bypass: str | None = None


@dataclass(frozen=True)
class ResolvedRunOptions:
    target_limit: int
    target_slug: str | None
    parallel_tabs: int
    headless: bool
    hard_refresh: bool


@dataclass(frozen=True)
class RunSummary:
    """Counts reported at the end of a run.

    Attributes:
        total: Number of tasks queued after selection and cache filtering.
        succeeded: Tasks whose medicine was scraped and persisted.
        failed: Tasks that exhausted their retries or failed to persist.
        skipped: Tasks skipped because a cached medicine file exists.
        metadata_path: Location of the metadata index.
    """

    total: int
    succeeded: int
    failed: int
    skipped: int
    metadata_path: Path

    def to_dict(self) -> dict[str, int | str]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "metadataPath": str(self.metadata_path),
        }


@dataclass
class ScrapeState:
    """Mutable counters shared by the task handlers of one run."""

    succeeded: int = 0
    completed: int = 0
    failed: int = 0
