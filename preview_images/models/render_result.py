"""Per-file outcome records produced by the pipeline."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class RenderResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str  # relative to the base directory
    output_path: Optional[str] = None  # None when the write was skipped or failed
    buffer: Optional[bytes] = None
    status: str = "ok"  # ok, error
    stage: Optional[str] = None  # navigation, capture, post_process, write, delete
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "ok"
