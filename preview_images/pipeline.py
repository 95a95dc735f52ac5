"""Pipeline coordinator — discover, serve, render, collect."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from pathlib import Path
from typing import Any, Mapping

from playwright.async_api import Browser

from preview_images.browser import open_browser
from preview_images.discovery import discover_files
from preview_images.errors import ConfigError, RenderError
from preview_images.models.config import PreviewConfig, resolve_options
from preview_images.models.render_result import RenderResult
from preview_images.renderer import output_target, render_file
from preview_images.server import serve_directory

logger = logging.getLogger(__name__)


class PreviewPipeline:
    """Renders every matching file under a base directory to an image.

    The static server and the browser belong to the pipeline: they are
    started once per run, shared by all render tasks, and shut down before
    ``run`` returns or raises. A file that fails to render produces an error
    result instead of aborting its siblings.
    """

    def __init__(self, base_dir: str | Path, config: PreviewConfig):
        self.base_dir = Path(base_dir).resolve()
        self.config = config

    async def run(self) -> list[RenderResult]:
        start = time.time()
        limit = self.config.max_concurrency
        if limit is not None and limit < 1:
            raise ConfigError(f"max_concurrency must be at least 1 or None, got {limit}")
        logger.info("=== Generating previews under %s ===", self.base_dir)

        files = discover_files(self.base_dir, self.config.patterns)
        logger.info("Discovered %d files matching %s", len(files), ", ".join(self.config.patterns))
        if not files:
            return []

        with serve_directory(self.base_dir, self.config.host, self.config.port) as server:
            async with open_browser(headless=self.config.headless) as browser:
                results = await self._render_all(files, server.base_url, browser)

        failed = sum(1 for r in results if not r.ok)
        logger.info("=== Rendered %d/%d files in %.1fs ===",
                    len(results) - failed, len(results), time.time() - start)
        return results

    async def _render_all(self, files: list[str], base_url: str, browser: Browser) -> list[RenderResult]:
        limit = self.config.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit is not None else None
        total = len(files)
        clashes = self._find_output_clashes(files)

        async def _run_one(index: int, file: str) -> RenderResult:
            guard = semaphore if semaphore is not None else contextlib.nullcontext()
            async with guard:
                logger.debug("Render [%d/%d]: %s", index + 1, total, file)
                task_start = time.time()
                if file in clashes:
                    logger.warning("Not rendering %s: %s", file, clashes[file])
                    return _error_result(file, "write", clashes[file], task_start)
                try:
                    return await render_file(file, self.config, base_url, browser, self.base_dir)
                except RenderError as e:
                    logger.warning("Failed to render %s (%s): %s", file, e.stage, e.message)
                    return _error_result(file, e.stage, e.message, task_start)
                except Exception as e:
                    logger.error("Render of %s crashed: %s", file, e)
                    return _error_result(file, "render", str(e), task_start)

        return list(await asyncio.gather(*(_run_one(i, f) for i, f in enumerate(files))))

    def _find_output_clashes(self, files: list[str]) -> dict[str, str]:
        """Map each file whose image path is already taken by an earlier file to a reason.

        The first file in discovery order keeps the path. Policies that raise
        are left for the render to report.
        """
        owners: dict[Path, str] = {}
        clashes: dict[str, str] = {}
        for file in files:
            try:
                target = output_target(file, self.config, self.base_dir)
            except Exception:
                continue
            if target is None:
                continue
            target = target.resolve()
            if target in owners:
                clashes[file] = f"output {target} is also the output of {owners[target]}"
            else:
                owners[target] = file
        return clashes


def _error_result(file: str, stage: str, message: str, started: float) -> RenderResult:
    return RenderResult(
        file=file,
        status="error",
        stage=stage,
        error=message,
        duration_seconds=round(time.time() - started, 2),
    )


async def generate_preview_images(
    base_dir: str | Path,
    options: PreviewConfig | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> list[RenderResult]:
    """Render every HTML file under ``base_dir`` and return one result per file.

    ``options`` may be a ``PreviewConfig`` or a mapping of its fields; keyword
    overrides win. Raises DiscoveryError or InfrastructureError when the run
    cannot start.
    """
    config = resolve_options(options, **overrides)
    return await PreviewPipeline(base_dir, config).run()


def run_preview_images(
    base_dir: str | Path,
    options: PreviewConfig | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> list[RenderResult]:
    """Blocking wrapper around ``generate_preview_images``."""
    return asyncio.run(generate_preview_images(base_dir, options, **overrides))
