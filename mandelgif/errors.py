from __future__ import annotations

from typing import Optional


class MandelgifError(Exception):
    """Base class for every error a render run can end with."""


class ConfigurationError(MandelgifError, ValueError):
    """Invalid configuration, detected before any rendering starts."""


class SinkInitError(MandelgifError, OSError):
    """The output file could not be created or opened."""


class EncodeError(MandelgifError):
    """The encoder rejected a frame or failed while writing the animation."""


class RenderTaskFailure(MandelgifError):
    def __init__(self, index: int, message: Optional[str] = None):
        self.index = index
        super().__init__(message or f"Render task for frame {index} failed.")
