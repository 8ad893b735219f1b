"""Error kinds raised by the capture, library and recognition stages."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class StrokeEngineError(Exception):
    """Base class for all StrokeEngine errors."""


class InvalidGesture(StrokeEngineError, ValueError):
    """A gesture was built from an empty point set (or a template lacks a label)."""


class InsufficientPoints(StrokeEngineError, ValueError):
    """Fewer than 2 points were presented for classification."""


class NoTemplates(StrokeEngineError, LookupError):
    """Classification or a queue draw was attempted with an empty library."""


class TemplateLoadError(StrokeEngineError):
    """A serialized template record could not be turned into a Template."""

    def __init__(self, message: str, source: Optional[str | Path] = None):
        self.source = str(source) if source is not None else None
        if self.source:
            message = f"{self.source}: {message}"
        super().__init__(message)
