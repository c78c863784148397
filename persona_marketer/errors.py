from __future__ import annotations

"""
Error taxonomy for the persona generation pipeline.

Every failure raised by the gateway or controller derives from
PersonaMarketerError so callers at the UI boundary can catch one type and
still branch on the concrete subclass when they need to.
"""

from typing import Optional


class PersonaMarketerError(RuntimeError):
    """Base class for all errors raised by this package."""


class ConfigurationError(PersonaMarketerError):
    """The Gemini credential (or another setting) is missing or invalid."""


class EncodingError(PersonaMarketerError):
    """A product image could not be read or has no resolvable mime type."""


class ResponseFormatError(PersonaMarketerError):
    """Model text could not be decoded into the expected JSON shape."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        # Kept for diagnosis; never shown to end users.
        self.raw_text = raw_text


class EmptyResponseError(PersonaMarketerError):
    """The model call succeeded but returned no text at all."""


class NoContentGeneratedError(PersonaMarketerError):
    """The image model returned no part carrying inline image data."""


class RequestInProgressError(PersonaMarketerError):
    """A controller was asked to start a request while another is in flight."""
