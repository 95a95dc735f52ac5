"""Configuration models for the preview renderer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from preview_images.errors import ConfigError

DEFAULT_PATTERNS = ["**/*.html", "**/*.htm"]

ImageType = Literal["png", "jpeg"]
WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]
OutputPathStrategy = Literal["swap_extension", "flatten", "skip"]
PostProcessStrategy = Literal["none", "optimize"]


class ViewportConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = 1920
    height: int = 1080
    device_scale_factor: float = 1.0


class ScreenshotOptions(BaseModel):
    """Options forwarded to Playwright's ``screenshot()`` call."""

    model_config = ConfigDict(frozen=True)

    type: ImageType = "png"
    full_page: bool = False
    quality: Optional[int] = None  # jpeg only
    omit_background: bool = False
    timeout_ms: int = 30000


class WaitConfig(BaseModel):
    """Readiness condition applied after navigation, before capture."""

    model_config = ConfigDict(frozen=True)

    until: WaitUntil = "networkidle"
    settle_ms: int = 500
    timeout_ms: int = 30000


class PreviewConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Discovery
    patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_PATTERNS))

    # Static server
    host: str = "localhost"
    port: int = 3000

    # Rendering
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    screenshot: ScreenshotOptions = Field(default_factory=ScreenshotOptions)
    selector: Optional[str] = None
    wait: WaitConfig = Field(default_factory=WaitConfig)
    headless: bool = True
    max_concurrency: Optional[int] = 4

    # Output
    output_path: Union[OutputPathStrategy, Callable[..., Any]] = "swap_extension"
    output_dir: Optional[str] = None
    post_process: Union[PostProcessStrategy, Callable[..., Any]] = "none"
    remove_original_files: bool = False
    include_buffer: bool = True

    @field_validator("patterns", mode="before")
    @classmethod
    def wrap_single_pattern(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @classmethod
    def load(cls, path: str | Path) -> "PreviewConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            with open(path) as f:
                data = json.load(f)
            return cls(**data)
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e


def resolve_options(
    options: PreviewConfig | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> PreviewConfig:
    """Merge caller options over the defaults and return a complete config.

    Top-level fields that are not supplied keep their defaults. Nested records
    (``viewport``, ``screenshot``, ``wait``) are rebuilt from whatever mapping
    is given, so a partial mapping keeps the defaults of the fields it omits.
    Keyword overrides take precedence over ``options``.
    """
    if isinstance(options, PreviewConfig):
        if not overrides:
            return options
        data = {name: getattr(options, name) for name in PreviewConfig.model_fields}
    else:
        data = dict(options or {})
    data.update(overrides)
    return PreviewConfig(**data)
