"""Pytest configuration and shared fixtures."""

import asyncio
import io
import time
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image
from playwright.async_api import Browser, BrowserContext, ElementHandle, Page

from preview_images.models.config import PreviewConfig


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def preview_config() -> PreviewConfig:
    """Create a test configuration that binds a free port and skips settling."""
    return PreviewConfig(
        host="127.0.0.1",
        port=0,
        wait={"settle_ms": 0},
    )


# ============================================================================
# File Fixtures
# ============================================================================


@pytest.fixture
def png_bytes() -> bytes:
    """A small but valid PNG image."""
    out = io.BytesIO()
    Image.new("RGB", (8, 8), (255, 255, 255)).save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a base directory with a mix of HTML and non-HTML files."""
    root = tmp_path / "site"
    (root / "blog").mkdir(parents=True)
    (root / "x.html").write_text("<html><body>x</body></html>")
    (root / "y.htm").write_text("<html><body>y</body></html>")
    (root / "z.txt").write_text("not a page")
    (root / "blog" / "post.html").write_text("<html><body>post</body></html>")
    return root


# ============================================================================
# Browser Fixtures
# ============================================================================


@pytest.fixture
def mock_response() -> Mock:
    response = Mock()
    response.ok = True
    response.status = 200
    return response


@pytest.fixture
def mock_element(png_bytes: bytes) -> AsyncMock:
    """Create a mock element handle whose screenshot returns a PNG."""
    element = AsyncMock(spec=ElementHandle)
    element.screenshot = AsyncMock(return_value=png_bytes)
    return element


@pytest.fixture
def mock_page(png_bytes: bytes, mock_response: Mock, mock_element: AsyncMock) -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.goto = AsyncMock(return_value=mock_response)
    page.wait_for_timeout = AsyncMock()
    page.screenshot = AsyncMock(return_value=png_bytes)
    page.query_selector = AsyncMock(return_value=mock_element)
    return page


@pytest.fixture
def mock_context(mock_page: AsyncMock) -> AsyncMock:
    """Create a mock Playwright browser context."""
    context = AsyncMock(spec=BrowserContext)
    context.new_page = AsyncMock(return_value=mock_page)
    context.close = AsyncMock()
    return context


@pytest.fixture
def mock_browser(mock_context: AsyncMock) -> AsyncMock:
    """Create a mock Playwright browser."""
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock(return_value=mock_context)
    return browser


# ============================================================================
# Helper Functions
# ============================================================================


async def measure_loop_stall(coro, tick: float = 0.005):
    """Await ``coro`` while a ticker runs; return its result and the longest gap between ticks."""
    gaps = []
    done = asyncio.Event()

    async def ticker():
        last = time.perf_counter()
        while not done.is_set():
            await asyncio.sleep(tick)
            now = time.perf_counter()
            gaps.append(now - last)
            last = now

    task = asyncio.create_task(ticker())
    try:
        result = await coro
    finally:
        done.set()
        await task
    return result, max(gaps, default=0.0)


@pytest.fixture
def loop_stall():
    """Fixture that provides the measure_loop_stall function."""
    return measure_loop_stall
