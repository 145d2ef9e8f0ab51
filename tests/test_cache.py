"""Tests for task selection and the cache policy."""

from pathlib import Path

import pytest

from formulary.data_types import CatalogTask
from formulary.driver.cache import (
    apply_cache_policy,
    get_cached_slugs,
    select_tasks,
)
from formulary.driver.store import prepare_output_store
from tests.utils import BASE_URL, make_medicine

CATALOG = [
    CatalogTask(slug=slug, url=f"{BASE_URL}/medicines/{slug}/")
    for slug in ["a", "b", "c", "d", "e"]
]


class TestSelectTasks:
    @pytest.mark.parametrize(
        "slug, limit, expected",
        [
            (None, 0, ["a", "b", "c", "d", "e"]),
            (None, 2, ["a", "b"]),
            (None, 10, ["a", "b", "c", "d", "e"]),
            ("c", 0, ["c"]),
            ("c", 1, ["c"]),
            ("missing", 0, []),
        ],
    )
    def test_selection(self, slug, limit, expected):
        """Slug filter first, then limit; order preserved."""
        selected = select_tasks(CATALOG, slug, limit)

        assert [t.slug for t in selected] == expected

    def test_selection_is_a_prefix(self):
        for limit in range(1, 7):
            assert select_tasks(CATALOG, None, limit) == CATALOG[:limit]


class TestCachePolicy:
    @pytest.fixture
    async def store(self, tmp_path: Path):
        """Store with cached files for a and c; b's file was deleted."""
        store = prepare_output_store(tmp_path)
        for slug in ["a", "b", "c"]:
            await store.persist(
                CatalogTask(slug=slug, url=f"{BASE_URL}/medicines/{slug}/"),
                make_medicine(slug, f"Medicine {slug}"),
            )
        (store.medicines_dir / "Medicine-b.json").unlink()
        return store

    @pytest.mark.asyncio
    async def test_cached_slugs_require_existing_file(self, store):
        assert get_cached_slugs(store) == {"a", "c"}

    @pytest.mark.asyncio
    async def test_skips_cached(self, store):
        plan = apply_cache_policy(CATALOG, store, hard_refresh=False)

        assert [t.slug for t in plan.tasks_to_run] == ["b", "d", "e"]
        assert plan.skipped == 2

    @pytest.mark.asyncio
    async def test_hard_refresh_runs_everything(self, store):
        plan = apply_cache_policy(CATALOG, store, hard_refresh=True)

        assert plan.tasks_to_run == CATALOG
        assert plan.skipped == 0

    def test_empty_store(self, tmp_path: Path):
        plan = apply_cache_policy(
            CATALOG, prepare_output_store(tmp_path), hard_refresh=False
        )

        assert plan.tasks_to_run == CATALOG
        assert plan.skipped == 0
