"""Exceptions raised by the preview rendering pipeline."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for every failure raised by the pipeline."""


class ConfigError(PipelineError):
    """Raised when a configuration file cannot be parsed or validated."""


class DiscoveryError(PipelineError):
    """Raised when files cannot be discovered under the base directory."""


class InfrastructureError(PipelineError):
    """Raised when the static server or the browser cannot be started."""


class RenderError(PipelineError):
    """Raised when a single file fails to render.

    Carries the offending file and the stage that failed (``navigation``,
    ``capture``, ``post_process``, ``write`` or ``delete``).
    """

    def __init__(self, file: str, stage: str, message: str):
        super().__init__(f"{file}: {stage} failed: {message}")
        self.file = file
        self.stage = stage
        self.message = message
