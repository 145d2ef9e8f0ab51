"""Shared fixtures: fake renderer, settings and the mock site server."""

import asyncio
import socket
import threading
import time
from collections.abc import Generator
from contextlib import closing
from pathlib import Path

import pytest
from aiohttp import web

from formulary.config import Settings
from tests.mock_site import create_app, generate_site
from tests.utils import BASE_URL, FakeRenderer


@pytest.fixture
def site_pages() -> dict[str, str]:
    """Every page of the mock site under BASE_URL."""
    return generate_site(BASE_URL)


@pytest.fixture
def fake_renderer(site_pages: dict[str, str]) -> FakeRenderer:
    return FakeRenderer(site_pages, navigation_delay=0.001)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def settings(output_dir: Path) -> Settings:
    """Settings for tests: mock base URL, temp output, no retry delay."""
    return Settings(
        _env_file=None,
        base_url=BASE_URL,
        output_dir=output_dir,
        parallel_tabs=2,
        retry_attempts=3,
        retry_delay_ms=0,
    )


# =============================================================================
# aiohttp test server fixtures
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        # Give the server time to start
        time.sleep(0.1)

    def _run_server(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            future = asyncio.run_coroutine_threadsafe(
                self._runner.cleanup(), self._loop
            )
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def mock_site_server() -> Generator[AioHttpTestServer, None, None]:
    """Start an aiohttp server running the mock medicines site.

    Yields:
        AioHttpTestServer instance with the mock site running.
    """
    server = AioHttpTestServer(create_app(), find_free_port())
    server.start()
    yield server
    server.stop()
