from __future__ import annotations

"""
Datamodels used throughout the persona generation pipeline.

Product input is a plain mutable dataclass so a form (or a product file) can
fill it in incrementally. Everything the model sends back is frozen once it
has been decoded and validated.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union


@dataclass(frozen=True)
class ImageBlob:
    """A raw product image as supplied by the caller."""

    # Either a path on disk or the bytes of an uploaded file.
    source: Union[Path, bytes]

    # Declared content type (e.g. from an upload); resolved from the
    # filename or the bytes themselves when not given.
    mime_type: Optional[str] = None


@dataclass
class ProductData:
    """Product details collected from the user (or auto-filled by analysis)."""

    title: str = ""
    description: str = ""

    # Ordered list of short feature strings.
    key_features: List[str] = field(default_factory=list)

    # Price as displayed, including the currency symbol (e.g. "R450.00").
    price: str = ""

    # Short descriptor of the brand's copy style ("Playful", "Professional").
    brand_voice: str = ""

    url: str = ""

    image: Optional[ImageBlob] = None


@dataclass(frozen=True)
class EncodedMedia:
    """Inline image payload for a single request. Never cached."""

    data: str
    mime_type: str


class ConceptType(str, Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


@dataclass(frozen=True)
class ImageConcept:
    """Static creative direction. Carries no script."""

    prompt_for_imagen: str

    @property
    def type(self) -> ConceptType:
        return ConceptType.IMAGE


@dataclass(frozen=True)
class VideoConcept:
    """Video creative direction with an optional short-form script."""

    prompt_for_imagen: str
    video_script_draft: Optional[str] = None

    @property
    def type(self) -> ConceptType:
        return ConceptType.VIDEO


CreativeConcept = Union[ImageConcept, VideoConcept]


@dataclass(frozen=True)
class MetaAdAssets:
    """Ad copy fields shaped for Meta's ad manager."""

    primary_texts: List[str]
    headlines: List[str]
    call_to_action: str
    landing_page_headline: str
    creative_concept: CreativeConcept


@dataclass(frozen=True)
class Persona:
    """One buyer archetype with its motivations and ready-to-use ad copy."""

    # Unique within a batch, e.g. "TECH-FREE" or "OWNER".
    persona_id: str
    name: str
    emotional_trigger: str
    pain_points: List[str]
    tone_style: str
    targeting_suggestions: List[str]
    meta_ad_assets: MetaAdAssets


@dataclass(frozen=True)
class GeneratedBatch:
    """The full persona set returned by one generation call."""

    personas: List[Persona]


class LoadingState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    GENERATING_PERSONAS = "GENERATING_PERSONAS"
    GENERATING_IMAGE = "GENERATING_IMAGE"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
