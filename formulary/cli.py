"""Formulary CLI: scrape the medicines catalog into JSON files.

Usage:
    formulary run                       # Scrape everything not yet cached
    formulary run --slug paracetamol    # Scrape a single medicine
    formulary run --limit 10 --hard-refresh
    formulary catalog --limit 20        # List the catalog without scraping
    formulary index                     # Show cached medicines

Configuration is read from the environment and ``.env``; see
:class:`formulary.config.Settings`. Command line options override it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError

from formulary.common.exceptions import (
    MetadataLoadException,
    TransientException,
)
from formulary.config import Settings
from formulary.data_types import RunOptions
from formulary.driver.medicines_driver import MedicinesDriver
from formulary.driver.store import METADATA_FILE_NAME, load_metadata


def load_settings(output_dir: str | None = None) -> Settings:
    """Read settings, turning validation errors into a CLI error."""
    try:
        settings = Settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration:\n{e}") from e

    if output_dir is not None:
        settings = settings.model_copy(update={"output_dir": Path(output_dir)})
    return settings


def configure_logging(settings: Settings, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else settings.log_level.value
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(package_name="formulary")
def cli() -> None:
    """Formulary: medicines catalog scraper."""


@cli.command()
@click.option(
    "-l",
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Scrape at most this many medicines (0 = no limit).",
)
@click.option(
    "-s", "--slug", default=None, help="Scrape only this medicine slug."
)
@click.option(
    "-p",
    "--parallel-tabs",
    type=click.IntRange(min=0),
    default=None,
    help="Number of browser tabs working at once.",
)
@click.option(
    "--headless",
    type=bool,
    default=None,
    help="Run the browser headless (true/false).",
)
@click.option(
    "--hard-refresh",
    is_flag=True,
    help="Scrape every selected medicine, ignoring cached files.",
)
@click.option("--proxy-server", default=None, help="Proxy server URL.")
@click.option("--proxy-username", default=None, help="Proxy username.")
@click.option("--proxy-password", default=None, help="Proxy password.")
@click.option(
    "--proxy-bypass",
    default=None,
    help="Comma-separated hosts that bypass the proxy.",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory (overrides OUTPUT_DIR).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    limit: int | None,
    slug: str | None,
    parallel_tabs: int | None,
    headless: bool | None,
    hard_refresh: bool,
    proxy_server: str | None,
    proxy_username: str | None,
    proxy_password: str | None,
    proxy_bypass: str | None,
    output_dir: str | None,
    verbose: bool,
) -> None:
    """Scrape medicines and write them to the output directory.

    Prints the run summary as JSON.

    \b
    Examples:
        formulary run --slug ibuprofen-for-adults
        formulary run -l 50 -p 8 --headless false
        formulary run --proxy-server http://proxy:3128
    """
    settings = load_settings(output_dir)
    configure_logging(settings, verbose)

    options = RunOptions(
        limit=limit,
        slug=slug,
        parallel_tabs=parallel_tabs,
        headless=headless,
        hard_refresh=hard_refresh,
        proxy_server=proxy_server,
        proxy_username=proxy_username,
        proxy_password=proxy_password,
        proxy_bypass=proxy_bypass,
    )
    driver = MedicinesDriver(settings)

    try:
        summary = asyncio.run(driver.run(options))
    except TransientException as e:
        raise click.ClickException(f"Could not load the catalog: {e}") from e

    click.echo(json.dumps(summary.to_dict(), indent=2))


@cli.command()
@click.option(
    "-l",
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="List at most this many medicines (0 = no limit).",
)
@click.option(
    "--headless",
    type=bool,
    default=None,
    help="Run the browser headless (true/false).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def catalog(limit: int | None, headless: bool | None, verbose: bool) -> None:
    """List the medicines on the catalog index, one per line."""
    settings = load_settings()
    configure_logging(settings, verbose)

    driver = MedicinesDriver(settings)
    try:
        tasks = asyncio.run(
            driver.discover(RunOptions(limit=limit, headless=headless))
        )
    except TransientException as e:
        raise click.ClickException(f"Could not load the catalog: {e}") from e

    for task in tasks:
        click.echo(f"{task.slug}\t{task.url}")


@cli.command()
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory (overrides OUTPUT_DIR).",
)
def index(output_dir: str | None) -> None:
    """Show the cached medicines recorded in metadata.json.

    Entries whose file is missing are marked; they will be scraped again
    on the next run.
    """
    settings = load_settings(output_dir)
    root = Path(settings.output_dir).resolve()
    metadata_path = root / METADATA_FILE_NAME

    try:
        entries = load_metadata(metadata_path)
    except MetadataLoadException as e:
        raise click.ClickException(str(e)) from e

    if not entries:
        click.echo(f"No cached medicines in {root}")
        return

    missing = 0
    for entry in entries:
        present = (root / entry.medicine_file_path).is_file()
        missing += not present
        status = "" if present else "  [missing]"
        click.echo(
            f"{entry.slug}\t{entry.medicine_name}\t"
            f"{entry.medicine_file_path}{status}"
        )

    click.echo(f"\n{len(entries)} entries, {missing} missing files")


def main() -> None:
    """Entry point for the ``formulary`` console script."""
    cli()
