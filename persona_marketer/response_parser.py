from __future__ import annotations

"""
Decode and validate what Gemini sends back.

The persona call is schema constrained on the remote side, but the response
is still treated as untrusted input: the batch is checked field by field and
rejected wholesale if any persona is malformed.
"""

import base64
import json
import logging
import re
from typing import Any, Dict, List, Optional

from .errors import NoContentGeneratedError, ResponseFormatError
from .models import (
    ConceptType,
    CreativeConcept,
    GeneratedBatch,
    ImageConcept,
    MetaAdAssets,
    Persona,
    VideoConcept,
)
from .prompts import ANALYSIS_KEYS, PERSONA_COUNT

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

# Truncate raw model output in logs.
_LOG_PREVIEW_CHARS = 500


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fence markers (```json / ```) and trim."""
    return _FENCE_RE.sub("", text).strip()


def _loads(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        logging.error("Failed to parse %s JSON: %s", what, exc)
        logging.error("Raw %s response (truncated): %s", what, text[:_LOG_PREVIEW_CHARS])
        raise ResponseFormatError(
            f"Failed to parse {what} from AI response.", raw_text=text
        ) from exc


# ---------------------------------------------------------------------------
# Product analysis
# ---------------------------------------------------------------------------


def decode_analysis(text: Optional[str]) -> Dict[str, Any]:
    """
    Decode the product analysis response into a partial product patch.

    Any subset of ANALYSIS_KEYS is acceptable. Unknown keys and values of the
    wrong type are dropped so the caller can merge the rest safely.
    """
    cleaned = strip_code_fences(text or "{}")
    data = _loads(cleaned, "product analysis")
    if not isinstance(data, dict):
        logging.error("Product analysis response is not a JSON object: %s", cleaned[:_LOG_PREVIEW_CHARS])
        raise ResponseFormatError(
            "Product analysis response must be a JSON object.", raw_text=cleaned
        )

    patch: Dict[str, Any] = {}
    for key in ANALYSIS_KEYS:
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if key == "keyFeatures":
            if not isinstance(value, list):
                logging.warning("Dropping keyFeatures from analysis: expected a list, got %s", type(value).__name__)
                continue
            patch[key] = [str(v).strip() for v in value if str(v).strip()]
        elif isinstance(value, (str, int, float)):
            patch[key] = str(value)
        else:
            logging.warning("Dropping %s from analysis: unexpected %s", key, type(value).__name__)
    return patch


# ---------------------------------------------------------------------------
# Persona batch
# ---------------------------------------------------------------------------


def _require_str(obj: Dict[str, Any], key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise ResponseFormatError(f"{where}: '{key}' must be a string.")
    return value


def _require_str_list(obj: Dict[str, Any], key: str, where: str) -> List[str]:
    value = obj.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ResponseFormatError(f"{where}: '{key}' must be a list of strings.")
    return list(value)


def _require_object(obj: Dict[str, Any], key: str, where: str) -> Dict[str, Any]:
    value = obj.get(key)
    if not isinstance(value, dict):
        raise ResponseFormatError(f"{where}: '{key}' must be an object.")
    return value


def _parse_creative_concept(raw: Dict[str, Any], where: str) -> CreativeConcept:
    kind = raw.get("type")
    prompt = _require_str(raw, "prompt_for_imagen", where)

    if kind == ConceptType.IMAGE.value:
        if raw.get("video_script_draft"):
            logging.debug("%s: discarding video_script_draft on an IMAGE concept", where)
        return ImageConcept(prompt_for_imagen=prompt)

    if kind == ConceptType.VIDEO.value:
        script = raw.get("video_script_draft")
        if script is not None and not isinstance(script, str):
            raise ResponseFormatError(f"{where}: 'video_script_draft' must be a string.")
        return VideoConcept(prompt_for_imagen=prompt, video_script_draft=script)

    raise ResponseFormatError(f"{where}: creative concept type must be IMAGE or VIDEO, got {kind!r}.")


def _parse_persona(raw: Any, index: int) -> Persona:
    where = f"persona[{index}]"
    if not isinstance(raw, dict):
        raise ResponseFormatError(f"{where} must be an object.")

    persona_id = _require_str(raw, "persona_id", where)
    if not persona_id.strip():
        raise ResponseFormatError(f"{where}: 'persona_id' must not be empty.")

    assets_raw = _require_object(raw, "meta_ad_assets", where)
    assets_where = f"{where}.meta_ad_assets"
    concept_raw = _require_object(assets_raw, "creative_concept", assets_where)

    assets = MetaAdAssets(
        primary_texts=_require_str_list(assets_raw, "primary_texts", assets_where),
        headlines=_require_str_list(assets_raw, "headlines", assets_where),
        call_to_action=_require_str(assets_raw, "call_to_action", assets_where),
        landing_page_headline=_require_str(assets_raw, "landing_page_headline", assets_where),
        creative_concept=_parse_creative_concept(concept_raw, f"{assets_where}.creative_concept"),
    )

    return Persona(
        persona_id=persona_id,
        name=_require_str(raw, "name", where),
        emotional_trigger=_require_str(raw, "emotional_trigger", where),
        pain_points=_require_str_list(raw, "pain_points", where),
        tone_style=_require_str(raw, "tone_style", where),
        targeting_suggestions=_require_str_list(raw, "targeting_suggestions", where),
        meta_ad_assets=assets,
    )


def parse_batch(data: Any, expected_count: int = PERSONA_COUNT) -> GeneratedBatch:
    """Validate an already-decoded JSON value as a GeneratedBatch."""
    if not isinstance(data, dict) or not isinstance(data.get("generated_personas"), list):
        raise ResponseFormatError("Invalid response format: 'generated_personas' array missing.")

    items = data["generated_personas"]
    if len(items) != expected_count:
        raise ResponseFormatError(
            f"Invalid response format: expected {expected_count} personas, got {len(items)}."
        )

    personas = [_parse_persona(item, i) for i, item in enumerate(items)]

    seen = set()
    for persona in personas:
        if persona.persona_id in seen:
            raise ResponseFormatError(f"Duplicate persona_id {persona.persona_id!r} in batch.")
        seen.add(persona.persona_id)

    return GeneratedBatch(personas=personas)


def decode_persona_batch(text: str, expected_count: int = PERSONA_COUNT) -> GeneratedBatch:
    """Parse structured-output text straight into a validated GeneratedBatch."""
    data = _loads(text, "persona batch")
    try:
        return parse_batch(data, expected_count=expected_count)
    except ResponseFormatError as exc:
        logging.error("Persona batch failed validation: %s", exc)
        logging.error("Raw persona batch response (truncated): %s", text[:_LOG_PREVIEW_CHARS])
        exc.raw_text = text
        raise


# ---------------------------------------------------------------------------
# Generated images
# ---------------------------------------------------------------------------


def extract_image_data_uri(response: Any) -> str:
    """Return the first inline image in a Gemini response as a data URI."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        if not content:
            continue
        for part in getattr(content, "parts", None) or []:
            inline_data = getattr(part, "inline_data", None)
            if not inline_data:
                continue
            data = getattr(inline_data, "data", None)
            mime_type = getattr(inline_data, "mime_type", None) or ""
            if not data or not mime_type.startswith("image/"):
                continue
            if isinstance(data, (bytes, bytearray)):
                data = base64.b64encode(bytes(data)).decode("ascii")
            return f"data:{mime_type};base64,{data}"

    raise NoContentGeneratedError("No image generated.")
