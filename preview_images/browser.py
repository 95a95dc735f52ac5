"""Browser helpers — one shared Chromium per run, one isolated context per file."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from preview_images.errors import InfrastructureError
from preview_images.models.config import ViewportConfig

logger = logging.getLogger(__name__)


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch headless Chromium."""
    return await playwright.chromium.launch(headless=headless)


async def create_render_context(browser: Browser, viewport: ViewportConfig) -> BrowserContext:
    """Create an isolated browser context sized to the configured viewport."""
    return await browser.new_context(
        viewport={"width": viewport.width, "height": viewport.height},
        device_scale_factor=viewport.device_scale_factor,
    )


@asynccontextmanager
async def open_browser(headless: bool = True) -> AsyncIterator[Browser]:
    """Start Playwright and a browser; both are shut down when the block exits."""
    try:
        playwright = await async_playwright().start()
    except Exception as e:
        raise InfrastructureError(f"Could not start Playwright: {e}") from e

    try:
        try:
            browser = await launch_browser(playwright, headless=headless)
        except PlaywrightError as e:
            raise InfrastructureError(f"Could not launch browser: {e}") from e
        logger.debug("Launched Chromium %s (headless=%s)", browser.version, headless)
        try:
            yield browser
        finally:
            await browser.close()
            logger.debug("Browser closed")
    finally:
        await playwright.stop()
