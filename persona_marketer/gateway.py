from __future__ import annotations

"""
Single integration point with Gemini.

Three operations, each one awaitable request/response with no retries:

  - analyze_product: search-grounded extraction of product details.
  - generate_personas: schema-constrained persona batch.
  - generate_visual: square image for a persona's creative concept.

Nothing is kept between calls. A fresh client is built from explicit
settings on every call and closed when the call returns, so the functions
are safe to run concurrently.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from .config import GeminiSettings, load_settings
from .encoder import encode_image
from .errors import EmptyResponseError
from .models import EncodedMedia, GeneratedBatch, ImageBlob, ProductData
from .prompts import build_analysis_prompt, build_persona_prompt, build_visual_prompt
from .response_parser import decode_analysis, decode_persona_batch, extract_image_data_uri
from .schema import PERSONA_SCHEMA


def create_client(settings: GeminiSettings) -> genai.Client:
    """
    Build a Gemini client for one call.

    Raises ConfigurationError when no credential is configured, before any
    network traffic happens.
    """
    api_key = settings.require_api_key()
    client = genai.Client(api_key=api_key)

    # Do not log the key, only that a client exists.
    logging.debug("Initialized Gemini client.")
    return client


def media_part(media: EncodedMedia) -> types.Part:
    """Inline-data part for an encoded image."""
    return types.Part.from_bytes(
        data=base64.b64decode(media.data),
        mime_type=media.mime_type,
    )


def build_contents(prompt: str, image: Optional[ImageBlob] = None) -> types.Content:
    """Text prompt first, then the product image when one is supplied."""
    parts: List[types.Part] = [types.Part.from_text(text=prompt)]
    if image is not None:
        parts.append(media_part(encode_image(image)))
    return types.Content(role="user", parts=parts)


def _settings_or_env(settings: Optional[GeminiSettings]) -> GeminiSettings:
    settings = settings if settings is not None else load_settings()
    settings.require_api_key()
    return settings


async def _generate(settings: GeminiSettings, **request: Any) -> Any:
    """One generate_content call on a short-lived client, closed on every path."""
    client = create_client(settings)
    try:
        return await client.aio.models.generate_content(**request)
    finally:
        await client.aio.aclose()


async def analyze_product(
        url: str,
        image: Optional[ImageBlob] = None,
        settings: Optional[GeminiSettings] = None,
) -> Dict[str, Any]:
    """
    Extract product details from a URL and/or an image.

    Returns a partial patch keyed by title, description, keyFeatures, price
    and brandVoice. Only the keys the model actually returned are present.
    Raises ResponseFormatError when the text is not JSON even after fence
    stripping.
    """
    settings = _settings_or_env(settings)

    contents = build_contents(build_analysis_prompt(url), image)
    logging.info(
        "Calling %s for product analysis (url=%s, parts=%d)",
        settings.analysis_model,
        url or "N/A",
        len(contents.parts),
    )

    response = await _generate(
        settings,
        model=settings.analysis_model,
        contents=contents,
        config=types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
        ),
    )

    patch = decode_analysis(getattr(response, "text", None))
    logging.info("Product analysis returned fields: %s", sorted(patch))
    return patch


async def generate_personas(
        product: ProductData,
        settings: Optional[GeminiSettings] = None,
) -> GeneratedBatch:
    """
    Generate the persona batch for a product.

    The request carries PERSONA_SCHEMA in structured-output mode. The reply
    is still validated locally and rejected as a whole if any persona is
    malformed, the count is wrong, or ids repeat.
    """
    settings = _settings_or_env(settings)

    contents = build_contents(build_persona_prompt(product), product.image)
    logging.info(
        "Calling %s for persona generation (product=%r, parts=%d, temperature=%.2f)",
        settings.persona_model,
        product.title,
        len(contents.parts),
        settings.persona_temperature,
    )

    response = await _generate(
        settings,
        model=settings.persona_model,
        contents=contents,
        config=types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=PERSONA_SCHEMA,
            temperature=settings.persona_temperature,
        ),
    )

    text = getattr(response, "text", None)
    if not text:
        raise EmptyResponseError("No response from Gemini.")

    batch = decode_persona_batch(text)
    logging.info(
        "Generated %d personas: %s",
        len(batch.personas),
        [p.persona_id for p in batch.personas],
    )
    return batch


async def generate_visual(
        creative_prompt: str,
        settings: Optional[GeminiSettings] = None,
) -> str:
    """
    Render a creative prompt to an image.

    Returns the first inline image as a "data:<mime>;base64,<data>" URI.
    Raises NoContentGeneratedError when the model returns no image part.
    """
    settings = _settings_or_env(settings)

    contents = types.Content(
        role="user",
        parts=[types.Part.from_text(text=build_visual_prompt(creative_prompt))],
    )
    logging.info(
        "Calling image model %s (aspect_ratio=%s)",
        settings.image_model,
        settings.image_aspect_ratio,
    )

    response = await _generate(
        settings,
        model=settings.image_model,
        contents=contents,
        config=types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=settings.image_aspect_ratio),
        ),
    )

    return extract_image_data_uri(response)
