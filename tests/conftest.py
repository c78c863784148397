"""Shared fixtures: sample product, sample Gemini payloads and a stub client."""

import copy
import json
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from persona_marketer.config import GeminiSettings
from persona_marketer.models import ProductData


def make_persona_dict(persona_id, concept_type="IMAGE", script=None):
    concept = {
        "type": concept_type,
        "prompt_for_imagen": f"Macro shot of glossy gel, soft ring light ({persona_id})",
    }
    if script is not None:
        concept["video_script_draft"] = script
    return {
        "persona_id": persona_id,
        "name": f"Persona {persona_id}",
        "emotional_trigger": "Fear of lifting causing client complaints",
        "pain_points": ["Chipping after 3 days", "Slow cure times"],
        "tone_style": "Confident, peer-to-peer",
        "targeting_suggestions": ["OPI", "Young Nails", "Nail technicians"],
        "meta_ad_assets": {
            "primary_texts": ["Stop redoing sets.\n\nBody copy here.\n\nShop now."],
            "headlines": ["No More Chipping"],
            "call_to_action": "Shop Now",
            "landing_page_headline": "Salon results that last 21 days",
            "creative_concept": concept,
        },
    }


SAMPLE_BATCH = {
    "generated_personas": [
        make_persona_dict("TECH-FREE", "VIDEO", "0-3s: hook shot. 3-10s: application ASMR."),
        make_persona_dict("TECH-SALON"),
        make_persona_dict("OWNER"),
        make_persona_dict("DIY", "VIDEO"),
    ]
}


@pytest.fixture
def batch_dict():
    return copy.deepcopy(SAMPLE_BATCH)


@pytest.fixture
def batch_json(batch_dict):
    return json.dumps(batch_dict)


@pytest.fixture
def settings():
    return GeminiSettings(api_key="test-key")


@pytest.fixture
def product():
    return ProductData(
        url="https://shop.test/widget",
        title="Gel Polish Set",
        description="UV cured gel polish that lasts 21 days.",
        key_features=["21-Day Wear", "HEMA free", "Cures in 30s"],
        price="R450.00",
        brand_voice="Chic",
    )


@pytest.fixture
def png_bytes():
    buf = BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 90)).save(buf, format="PNG")
    return buf.getvalue()


def text_response(text):
    return SimpleNamespace(text=text)


def image_response(*parts):
    """Response with one candidate whose content holds the given parts."""
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))]
    )


def inline_part(mime_type, data):
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type=mime_type, data=data))


def text_part(text):
    return SimpleNamespace(text=text, inline_data=None)


@pytest.fixture
def fake_client():
    """Stands in for genai.Client; set generate_content.return_value per test."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.aclose = AsyncMock()
    return client
