"""Render worker — turns one discovered HTML file into one image."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from playwright.async_api import Browser, Page
from playwright.async_api import Error as PlaywrightError

from preview_images.browser import create_render_context
from preview_images.errors import RenderError
from preview_images.models.config import PreviewConfig
from preview_images.models.render_result import RenderResult
from preview_images.paths import SKIP, get_output_path_policy, image_extension
from preview_images.postprocess import apply_post_processor, get_post_processor

logger = logging.getLogger(__name__)


def page_url(base_url: str, file: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(file)}"


async def render_file(
    file: str,
    config: PreviewConfig,
    base_url: str,
    browser: Browser,
    base_dir: str | Path,
) -> RenderResult:
    """Render ``file`` in its own browser context and write the image.

    Raises RenderError naming the failed stage. The source file is only
    removed after the image has been written.
    """
    start = time.time()
    url = page_url(base_url, file)
    logger.debug("Rendering %s from %s", file, url)

    try:
        context = await create_render_context(browser, config.viewport)
    except PlaywrightError as e:
        raise RenderError(file, "navigation", f"could not open browser context: {e}") from e

    try:
        page = await context.new_page()
        await _navigate(page, url, file, config)
        buffer = await _capture(page, file, config)
    finally:
        try:
            await context.close()
        except PlaywrightError as e:
            logger.debug("Closing context for %s failed: %s", file, e)

    processor = get_post_processor(config.post_process)
    try:
        buffer = await apply_post_processor(processor, buffer)
    except Exception as e:
        raise RenderError(file, "post_process", str(e)) from e

    try:
        output_path = output_target(file, config, base_dir)
        if output_path is not None:
            await asyncio.to_thread(_store, output_path, buffer)
    except Exception as e:
        raise RenderError(file, "write", str(e)) from e

    if config.remove_original_files:
        if output_path is None:
            logger.warning("Keeping %s: no image was written for it", file)
        else:
            try:
                await asyncio.to_thread((Path(base_dir) / file).unlink)
            except OSError as e:
                raise RenderError(file, "delete", str(e)) from e
            logger.debug("Removed original %s", file)

    duration = round(time.time() - start, 2)
    logger.info("Rendered %s -> %s (%.1fs)", file, output_path or "<not written>", duration)
    return RenderResult(
        file=file,
        output_path=str(output_path) if output_path is not None else None,
        buffer=buffer if config.include_buffer else None,
        duration_seconds=duration,
    )


async def _navigate(page: Page, url: str, file: str, config: PreviewConfig) -> None:
    wait = config.wait
    try:
        response = await page.goto(url, wait_until=wait.until, timeout=wait.timeout_ms)
    except PlaywrightError as e:
        raise RenderError(file, "navigation", str(e)) from e

    if response is not None and not response.ok:
        raise RenderError(file, "navigation", f"HTTP {response.status} for {url}")

    # Give fonts and late layout a moment after the readiness condition
    if wait.settle_ms > 0:
        await page.wait_for_timeout(wait.settle_ms)


async def _capture(page: Page, file: str, config: PreviewConfig) -> bytes:
    shot = config.screenshot
    kwargs: dict = {
        "type": shot.type,
        "omit_background": shot.omit_background,
        "timeout": shot.timeout_ms,
    }
    if shot.quality is not None:
        kwargs["quality"] = shot.quality

    try:
        if config.selector:
            element = await page.query_selector(config.selector)
            if element is None:
                raise RenderError(file, "capture", f"no element matches selector {config.selector!r}")
            return await element.screenshot(**kwargs)
        return await page.screenshot(full_page=shot.full_page, **kwargs)
    except PlaywrightError as e:
        raise RenderError(file, "capture", str(e)) from e


def output_target(file: str, config: PreviewConfig, base_dir: str | Path) -> Optional[Path]:
    """Where the image for ``file`` goes; None when the policy skips the write."""
    policy = get_output_path_policy(config.output_path)
    out_base = Path(config.output_dir) if config.output_dir else Path(base_dir)
    target = policy(out_base, file, image_extension(config.screenshot.type))
    if target is SKIP or target is None:
        return None
    return Path(target)


def _store(target: Path, buffer: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(buffer)
