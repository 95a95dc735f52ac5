"""Image post-processing applied to captured buffers before they are written."""

from __future__ import annotations

import asyncio
import inspect
import io
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def optimize_png(buffer: bytes) -> bytes:
    """Losslessly recompress a PNG buffer; other formats are returned untouched."""
    from PIL import Image

    with Image.open(io.BytesIO(buffer)) as image:
        if image.format != "PNG":
            logger.debug("Skipping optimization for %s image", image.format)
            return buffer
        out = io.BytesIO()
        image.save(out, format="PNG", optimize=True)

    optimized = out.getvalue()
    if len(optimized) >= len(buffer):
        return buffer
    logger.debug("Optimized PNG %d -> %d bytes", len(buffer), len(optimized))
    return optimized


POST_PROCESSORS: dict[str, Optional[Callable[[bytes], bytes]]] = {
    "none": None,
    "optimize": optimize_png,
}


def get_post_processor(strategy: str | Callable) -> Optional[Callable]:
    """Return the callable for a named post-processor, or the callable itself."""
    if callable(strategy):
        return strategy
    try:
        return POST_PROCESSORS[strategy]
    except KeyError:
        raise ValueError(f"Unknown post-processor: {strategy!r}") from None


async def apply_post_processor(processor: Optional[Callable], buffer: bytes) -> bytes:
    """Run ``processor`` on ``buffer``.

    Coroutine functions are awaited on the loop; plain callables run in a
    worker thread so re-encoding does not stall other renders.
    """
    if processor is None:
        return buffer
    if inspect.iscoroutinefunction(processor):
        result = await processor(buffer)
    else:
        result = await asyncio.to_thread(processor, buffer)
    if inspect.isawaitable(result):
        result = await result
    if not isinstance(result, (bytes, bytearray)):
        raise TypeError(f"Post-processor returned {type(result).__name__}, expected bytes")
    return bytes(result)
