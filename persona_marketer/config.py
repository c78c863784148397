from __future__ import annotations

"""
Runtime settings for the Gemini gateway.

Settings are an explicit value passed into each gateway call. When a caller
does not supply one, the environment is read at call time so a credential
exported after import is still picked up.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_ANALYSIS_MODEL = "gemini-2.5-flash"
DEFAULT_PERSONA_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

# Checked in order; the first non-empty value wins.
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass(frozen=True)
class GeminiSettings:
    """Credential plus the per-operation model configuration."""

    api_key: Optional[str]

    # Fast model with Google Search grounding for product extraction.
    analysis_model: str = DEFAULT_ANALYSIS_MODEL

    # Reasoning model used for persona copy.
    persona_model: str = DEFAULT_PERSONA_MODEL

    # Image-capable model for creative visuals.
    image_model: str = DEFAULT_IMAGE_MODEL

    # Slightly higher than default for copy variety.
    persona_temperature: float = 0.8

    image_aspect_ratio: str = "1:1"

    def require_api_key(self) -> str:
        """Return the credential or fail before any network call is made."""
        key = (self.api_key or "").strip()
        if not key:
            raise ConfigurationError(
                "GEMINI_API_KEY (or GOOGLE_API_KEY / API_KEY) must be set in the "
                "environment to call Gemini."
            )
        return key


def load_settings(environ: Optional[Mapping[str, str]] = None) -> GeminiSettings:
    """Build GeminiSettings from environment variables."""
    env = os.environ if environ is None else environ

    api_key = None
    for name in API_KEY_ENV_VARS:
        value = env.get(name)
        if value and value.strip():
            api_key = value.strip()
            break

    raw_temperature = env.get("GEMINI_PERSONA_TEMPERATURE")
    temperature = 0.8
    if raw_temperature:
        try:
            temperature = float(raw_temperature)
        except ValueError as exc:
            raise ConfigurationError(
                f"GEMINI_PERSONA_TEMPERATURE must be a number, got {raw_temperature!r}"
            ) from exc

    return GeminiSettings(
        api_key=api_key,
        analysis_model=env.get("GEMINI_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
        persona_model=env.get("GEMINI_PERSONA_MODEL", DEFAULT_PERSONA_MODEL),
        image_model=env.get("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
        persona_temperature=temperature,
    )
