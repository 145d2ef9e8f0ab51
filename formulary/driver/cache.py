"""Task selection and the presence-based cache policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from formulary.data_types import CatalogTask
from formulary.driver.store import OutputStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachePlan:
    """Tasks left to run after the cache policy, and how many were skipped."""

    tasks_to_run: list[CatalogTask] = field(default_factory=list)
    skipped: int = 0


def select_tasks(
    tasks: list[CatalogTask], slug: str | None, limit: int
) -> list[CatalogTask]:
    """Narrow the catalog to the tasks requested for this run.

    Args:
        tasks: Full catalog, in discovery order.
        slug: Keep only this slug when given.
        limit: Keep at most this many tasks when positive.

    Returns:
        The selected tasks, order preserved.
    """
    selected = [task for task in tasks if task.slug == slug] if slug else tasks
    return selected[:limit] if limit > 0 else list(selected)


def get_cached_slugs(store: OutputStore) -> set[str]:
    """Slugs whose index entry points at a file that exists on disk."""
    return {
        entry.slug
        for entry in store.metadata
        if store.resolve(entry.medicine_file_path).is_file()
    }


def apply_cache_policy(
    tasks: list[CatalogTask], store: OutputStore, hard_refresh: bool
) -> CachePlan:
    """Drop tasks whose medicine is already cached.

    The cache is presence-based: an entry counts as cached when its file
    exists, whatever its age or content. A hard refresh runs every task.
    """
    if hard_refresh:
        return CachePlan(tasks_to_run=list(tasks), skipped=0)

    cached = get_cached_slugs(store)
    tasks_to_run = [task for task in tasks if task.slug not in cached]
    skipped = len(tasks) - len(tasks_to_run)
    if skipped:
        logger.debug(f"Skipping {skipped} cached medicines")

    return CachePlan(tasks_to_run=tasks_to_run, skipped=skipped)
