"""Orchestrator for a full medicines run.

A run goes through these stages, in order:

1. Discover the catalog from the index page
2. Select tasks by slug and limit
3. Prepare the output store and load the metadata index
4. Drop cached tasks (unless hard refresh is requested)
5. Fan the remaining tasks out over N renderer sessions, each task
   retried as a whole and persisted on success
6. Report a RunSummary

Task failures are counted and logged; they never abort the run or cancel
sibling tasks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from formulary.config import Settings, resolve_run_options
from formulary.data_types import (
    CatalogTask,
    ResolvedRunOptions,
    RunOptions,
    RunSummary,
    ScrapeState,
)
from formulary.driver.cache import apply_cache_policy, select_tasks
from formulary.driver.renderer import (
    PlaywrightRenderer,
    Renderer,
    create_proxy_config,
)
from formulary.driver.retry import FailedAttempt, run_with_retry
from formulary.driver.scheduler import TaskScheduler
from formulary.driver.store import OutputStore, prepare_output_store
from formulary.scraper import MedicineScraper

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 25

RendererFactory = Callable[..., AbstractAsyncContextManager[Renderer]]


class MedicinesDriver:
    """Runs the scrape pipeline against a renderer.

    Example:
        driver = MedicinesDriver(Settings())
        summary = await driver.run(RunOptions(limit=10))

    Attributes:
        settings: Process settings.
        scraper: The per-medicine scraper.
        renderer_factory: Called with ``headless``, ``proxy`` and
            ``navigation_timeout_ms`` keywords; returns an async context
            manager yielding a Renderer. Defaults to PlaywrightRenderer.open.
    """

    def __init__(
        self,
        settings: Settings,
        renderer_factory: RendererFactory | None = None,
    ):
        self.settings = settings
        self.scraper = MedicineScraper(settings)
        self.renderer_factory: RendererFactory = (
            renderer_factory or PlaywrightRenderer.open
        )

    def _open_renderer(
        self, options: RunOptions, resolved: ResolvedRunOptions
    ) -> AbstractAsyncContextManager[Renderer]:
        kwargs: dict[str, Any] = {
            "headless": resolved.headless,
            "proxy": create_proxy_config(options),
            "navigation_timeout_ms": self.settings.navigation_timeout_ms,
        }
        return self.renderer_factory(**kwargs)

    async def _discover(self, renderer: Renderer) -> list[CatalogTask]:
        async with renderer.new_session() as session:
            return await self.scraper.discover(session)

    async def discover(
        self, options: RunOptions | None = None
    ) -> list[CatalogTask]:
        """Discover the catalog and apply slug/limit selection.

        Nothing is scraped or written.
        """
        options = options or RunOptions()
        resolved = resolve_run_options(options, self.settings)
        async with self._open_renderer(options, resolved) as renderer:
            catalog = await self._discover(renderer)
        return select_tasks(
            catalog, resolved.target_slug, resolved.target_limit
        )

    async def run(self, options: RunOptions | None = None) -> RunSummary:
        """Run the full pipeline.

        Args:
            options: Per-invocation overrides of the settings.

        Returns:
            Counts for the run. ``total`` is the number of tasks queued
            after the cache policy, so cached tasks appear only in
            ``skipped``.

        Raises:
            TransientException: The catalog index could not be loaded.
        """
        options = options or RunOptions()
        resolved = resolve_run_options(options, self.settings)

        async with self._open_renderer(options, resolved) as renderer:
            catalog = await self._discover(renderer)
            selected = select_tasks(
                catalog, resolved.target_slug, resolved.target_limit
            )

            store = prepare_output_store(self.settings.output_dir)
            plan = apply_cache_policy(selected, store, resolved.hard_refresh)
            total = len(plan.tasks_to_run)

            logger.info(
                f"Starting medicine extraction: {total} queued, "
                f"{plan.skipped} skipped",
                extra={
                    "total": total,
                    "skipped": plan.skipped,
                    "parallel_tabs": resolved.parallel_tabs,
                    "slug": resolved.target_slug,
                    "hard_refresh": resolved.hard_refresh,
                },
            )

            state = ScrapeState()

            async def handler(item: tuple[int, CatalogTask]) -> None:
                current, task = item
                await self.process_task(
                    renderer, store, state, task, current, total
                )

            scheduler: TaskScheduler[tuple[int, CatalogTask]] = (
                TaskScheduler(resolved.parallel_tabs)
            )
            await scheduler.run(
                list(enumerate(plan.tasks_to_run, start=1)), handler
            )

        summary = RunSummary(
            total=total,
            succeeded=state.succeeded,
            failed=state.failed,
            skipped=plan.skipped,
            metadata_path=store.metadata_path,
        )
        logger.info(
            f"Extraction complete: {summary.succeeded} succeeded, "
            f"{summary.failed} failed, {summary.skipped} skipped",
            extra=summary.to_dict(),
        )
        return summary

    async def process_task(
        self,
        renderer: Renderer,
        store: OutputStore,
        state: ScrapeState,
        task: CatalogTask,
        current: int,
        total: int,
    ) -> None:
        """Scrape and persist one medicine, recording the outcome in state.

        The task gets its own renderer session for all of its attempts.
        Errors are logged and counted, never raised.
        """
        position = f"({current} out of {total})"
        task_extra = {"slug": task.slug, "current": current, "total": total}

        def report(failure: FailedAttempt) -> None:
            logger.warning(
                f"Attempt {failure.attempt_number} failed for {task.slug}, "
                f"{failure.retries_left} retries left: {failure.message}",
                extra={
                    **task_extra,
                    "attempt": failure.attempt_number,
                    "retries_left": failure.retries_left,
                },
            )

        try:
            async with renderer.new_session() as session:
                logger.info(
                    f"Extracting medicine {task.slug} {position}",
                    extra=task_extra,
                )
                medicine = await run_with_retry(
                    lambda: self.scraper.scrape_medicine(session, task),
                    self.settings.retry_attempts,
                    self.settings.retry_delay_seconds,
                    on_failed_attempt=report,
                )

            await store.persist(task, medicine)
            state.succeeded += 1
            logger.info(
                f"Medicine extracted {task.slug} {position}",
                extra=task_extra,
            )
        except Exception as e:
            state.failed += 1
            logger.error(
                f"Medicine extraction failed {task.slug} {position}: {e}",
                extra=task_extra,
            )
        finally:
            state.completed += 1
            self._log_progress(state, total)

    def _log_progress(self, state: ScrapeState, total: int) -> None:
        if (
            state.completed % PROGRESS_INTERVAL != 0
            and state.completed != total
        ):
            return

        logger.info(
            f"Progress: {state.completed}/{total} completed, "
            f"{state.succeeded} succeeded, {state.failed} failed",
            extra={
                "completed": state.completed,
                "total": total,
                "succeeded": state.succeeded,
                "failed": state.failed,
            },
        )
