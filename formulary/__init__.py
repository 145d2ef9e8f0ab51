"""
Incremental scraper for the NHS medicines A-Z.

This package separates pure extraction (``formulary.extraction``, working on
static lxml snapshots of rendered pages) from I/O (``formulary.driver``,
which renders pages with Playwright, schedules work and persists results).
"""
