"""Output path policies: where a rendered file's image is written."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Callable

# Matches the final extension of the last path component. A leading dot
# (".hidden") is part of the name, not an extension.
_TRAILING_EXT = re.compile(r"(?<=[^/\\.])\.[^./\\]+$")

_EXTENSIONS = {"png": "png", "jpeg": "jpg"}

FLATTEN_DIR = "images"
FLATTEN_SEPARATOR = "___"


class _Skip:
    """Sentinel returned by an output-path policy to skip the disk write."""

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip()


def image_extension(image_type: str) -> str:
    """File extension for a screenshot type (``jpeg`` is written as ``.jpg``)."""
    return _EXTENSIONS.get(image_type, image_type)


def _swap_extension(relative_path: str, target_ext: str) -> str:
    ext = "." + target_ext.lstrip(".")
    swapped, count = _TRAILING_EXT.subn(ext, relative_path)
    if count == 0:
        return relative_path + ext
    return swapped


def resolve_output_path(base_dir: str | Path, relative_path: str, target_ext: str) -> Path:
    """Replace the trailing extension of ``relative_path`` and resolve it under ``base_dir``.

    ``a/b/c.tar.gz`` becomes ``a/b/c.tar.<ext>``; a path without an extension
    gets ``.<ext>`` appended.
    """
    return (Path(base_dir) / _swap_extension(relative_path, target_ext)).resolve()


def flatten_output_path(base_dir: str | Path, relative_path: str, target_ext: str) -> Path:
    """Write every image into one ``images/`` folder, joining path parts with ``___``."""
    flat = FLATTEN_SEPARATOR.join(PurePosixPath(relative_path).parts)
    return (Path(base_dir) / FLATTEN_DIR / _swap_extension(flat, target_ext)).resolve()


def skip_output_path(base_dir: str | Path, relative_path: str, target_ext: str) -> _Skip:
    return SKIP


OUTPUT_PATH_STRATEGIES: dict[str, Callable] = {
    "swap_extension": resolve_output_path,
    "flatten": flatten_output_path,
    "skip": skip_output_path,
}


def get_output_path_policy(policy: str | Callable) -> Callable:
    """Return the callable behind a named strategy, or the callable itself."""
    if callable(policy):
        return policy
    try:
        return OUTPUT_PATH_STRATEGIES[policy]
    except KeyError:
        raise ValueError(f"Unknown output path strategy: {policy!r}") from None
