from __future__ import annotations

"""Response schema sent with the persona generation request."""

from google.genai import types


def _string() -> types.Schema:
    return types.Schema(type=types.Type.STRING)


def _string_list() -> types.Schema:
    return types.Schema(type=types.Type.ARRAY, items=_string())


CREATIVE_CONCEPT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "type": types.Schema(type=types.Type.STRING, enum=["IMAGE", "VIDEO"]),
        "prompt_for_imagen": _string(),
        "video_script_draft": _string(),
    },
    required=["type", "prompt_for_imagen"],
)

META_AD_ASSETS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "primary_texts": _string_list(),
        "headlines": _string_list(),
        "call_to_action": _string(),
        "landing_page_headline": _string(),
        "creative_concept": CREATIVE_CONCEPT_SCHEMA,
    },
    required=[
        "primary_texts",
        "headlines",
        "call_to_action",
        "creative_concept",
        "landing_page_headline",
    ],
)

PERSONA_SCHEMA_ITEM = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "persona_id": _string(),
        "name": _string(),
        "emotional_trigger": _string(),
        "pain_points": _string_list(),
        "tone_style": _string(),
        "targeting_suggestions": _string_list(),
        "meta_ad_assets": META_AD_ASSETS_SCHEMA,
    },
    required=[
        "persona_id",
        "name",
        "emotional_trigger",
        "pain_points",
        "tone_style",
        "targeting_suggestions",
        "meta_ad_assets",
    ],
)

PERSONA_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "generated_personas": types.Schema(
            type=types.Type.ARRAY,
            items=PERSONA_SCHEMA_ITEM,
        ),
    },
    required=["generated_personas"],
)
