"""Expand glob patterns under the base directory into relative file paths."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from preview_images.errors import DiscoveryError

logger = logging.getLogger(__name__)


def discover_files(base_dir: str | Path, patterns: list[str]) -> list[str]:
    """Return files under ``base_dir`` matching any pattern, as relative POSIX paths.

    Matches of each pattern are sorted; patterns are applied in order and a
    file matched by several patterns is listed once. Files inside dot
    directories (or dot files) are skipped unless the pattern itself names a
    dot segment, e.g. ``.well-known/*.html``.
    """
    root = Path(base_dir)
    if not root.is_dir():
        raise DiscoveryError(f"Base directory does not exist: {root}")

    seen: set[str] = set()
    files: list[str] = []
    for pattern in patterns:
        include_hidden = any(part.startswith(".") for part in PurePosixPath(pattern).parts)
        try:
            matches = sorted(p for p in root.glob(pattern) if p.is_file())
        except (ValueError, NotImplementedError, OSError) as e:
            raise DiscoveryError(f"Invalid pattern {pattern!r}: {e}") from e

        logger.debug("Pattern %s matched %d files", pattern, len(matches))
        for match in matches:
            rel_path = match.relative_to(root)
            if not include_hidden and any(part.startswith(".") for part in rel_path.parts):
                continue
            rel = rel_path.as_posix()
            if rel not in seen:
                seen.add(rel)
                files.append(rel)

    return files
