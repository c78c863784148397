from __future__ import annotations

import base64
import binascii
import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from PIL import Image, UnidentifiedImageError

from .models import GeneratedBatch, Persona, VideoConcept

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


# ---------------------------------------------------------------------------
# General helpers
# ---------------------------------------------------------------------------


def slugify(text: str) -> str:
    """
    Turn a persona id such as "TECH-FREE" into a filename-safe slug.

    Lowercases, maps spaces and underscores to hyphens, drops other
    punctuation. Returns "persona" if nothing is left.
    """
    text = text.strip().lower()
    out_chars = []
    for ch in text:
        if ch.isalnum():
            out_chars.append(ch)
        elif ch in (" ", "-", "_"):
            out_chars.append("-")
    result = re.sub(r"-{2,}", "-", "".join(out_chars)).strip("-")
    return result or "persona"


def _bullets(items: List[str]) -> List[str]:
    return [f"  - {item}" for item in items] or ["  (none)"]


# ---------------------------------------------------------------------------
# Wire shape
# ---------------------------------------------------------------------------


def persona_to_dict(persona: Persona) -> Dict[str, Any]:
    assets = persona.meta_ad_assets
    concept = assets.creative_concept
    concept_dict: Dict[str, Any] = {
        "type": concept.type.value,
        "prompt_for_imagen": concept.prompt_for_imagen,
    }
    if isinstance(concept, VideoConcept) and concept.video_script_draft is not None:
        concept_dict["video_script_draft"] = concept.video_script_draft

    return {
        "persona_id": persona.persona_id,
        "name": persona.name,
        "emotional_trigger": persona.emotional_trigger,
        "pain_points": list(persona.pain_points),
        "tone_style": persona.tone_style,
        "targeting_suggestions": list(persona.targeting_suggestions),
        "meta_ad_assets": {
            "primary_texts": list(assets.primary_texts),
            "headlines": list(assets.headlines),
            "call_to_action": assets.call_to_action,
            "landing_page_headline": assets.landing_page_headline,
            "creative_concept": concept_dict,
        },
    }


def batch_to_dict(batch: GeneratedBatch) -> Dict[str, Any]:
    """Serialise a batch back to the same JSON shape the model returns."""
    return {"generated_personas": [persona_to_dict(p) for p in batch.personas]}


# ---------------------------------------------------------------------------
# Text card
# ---------------------------------------------------------------------------


def render_persona_text(persona: Persona) -> str:
    """Plain-text card for one persona, in the order a media buyer reads it."""
    assets = persona.meta_ad_assets
    concept = assets.creative_concept

    lines = [
        f"{persona.name} [{persona.persona_id}]",
        "=" * (len(persona.name) + len(persona.persona_id) + 3),
        f"Emotional trigger: {persona.emotional_trigger}",
        f"Tone: {persona.tone_style}",
        "Pain points:",
        *_bullets(persona.pain_points),
        "",
        "Primary texts:",
    ]
    for i, text in enumerate(assets.primary_texts, start=1):
        lines.append(f"  [{i}] {text}")
    lines += [
        "Headlines:",
        *_bullets(assets.headlines),
        f"Call to action: {assets.call_to_action}",
        f"Landing page headline: {assets.landing_page_headline}",
        "",
        f"Creative concept ({concept.type.value}):",
        f"  {concept.prompt_for_imagen}",
    ]
    if isinstance(concept, VideoConcept) and concept.video_script_draft:
        lines += ["Video script:", f"  {concept.video_script_draft}"]
    lines += [
        "",
        "Targeting:",
        *_bullets(persona.targeting_suggestions),
    ]
    return "\n".join(lines)


def render_batch_text(batch: GeneratedBatch) -> str:
    header = f"{len(batch.personas)} Personas Created"
    cards = [render_persona_text(p) for p in batch.personas]
    return "\n\n".join([header] + cards) + "\n"


# ---------------------------------------------------------------------------
# Generated images
# ---------------------------------------------------------------------------


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into (mime_type, raw bytes)."""
    match = _DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise ValueError("Not a base64 data URI.")
    try:
        raw = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload in data URI: {exc}") from exc
    return match.group("mime"), raw


def save_data_uri_image(data_uri: str, path: Union[str, Path]) -> Path:
    """Decode a generated image and save it as PNG."""
    path = Path(path)
    mime_type, raw = decode_data_uri(data_uri)
    try:
        img = Image.open(BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Data URI ({mime_type}) does not contain a readable image.") from exc

    if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
        img = img.convert("RGB")

    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="PNG")
    logging.info("Saved generated visual (%s, %sx%s) to %s", mime_type, img.width, img.height, path)
    return path
