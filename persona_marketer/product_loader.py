from __future__ import annotations

"""
Helpers for building and editing ProductData.

Covers loading a product from a YAML or JSON file, checking the fields the
persona prompt relies on, and merging an AI analysis patch into what the
user already typed.
"""

import dataclasses
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from .models import ImageBlob, ProductData

# Fields the persona prompt cannot do without.
REQUIRED_FIELDS = ("title", "description", "price", "brand_voice")

# Analysis response key -> ProductData attribute.
ANALYSIS_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "keyFeatures": "key_features",
    "price": "price",
    "brandVoice": "brand_voice",
}


def load_product(path: Union[str, Path]) -> ProductData:
    """
    Load product details from a YAML or JSON file.

    Accepts both snake_case and the camelCase keys used by the analysis
    response (key_features / keyFeatures, brand_voice / brandVoice). A
    relative image_path is resolved against the file's directory.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Product file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        if path.suffix.lower() in {".yml", ".yaml"}:
            raw = yaml.safe_load(f)
        else:
            raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Product file {path} must contain a mapping at the top level.")

    features = raw.get("key_features", raw.get("keyFeatures")) or []
    if not isinstance(features, list):
        raise ValueError("'key_features' must be a list of strings.")

    image = None
    image_path = raw.get("image_path")
    if image_path:
        resolved = Path(image_path)
        if not resolved.is_absolute():
            resolved = path.parent / resolved
        image = ImageBlob(source=resolved, mime_type=raw.get("image_mime_type"))

    return ProductData(
        url=str(raw.get("url") or ""),
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        key_features=[str(f).strip() for f in features if str(f).strip()],
        price=str(raw.get("price") or ""),
        brand_voice=str(raw.get("brand_voice", raw.get("brandVoice")) or ""),
        image=image,
    )


def validate_product(product: ProductData) -> None:
    """Raise ValueError listing any required field left blank."""
    missing = [name for name in REQUIRED_FIELDS if not str(getattr(product, name)).strip()]
    if missing:
        raise ValueError(f"Product is missing required fields: {', '.join(missing)}")


def merge_analysis(product: ProductData, patch: Mapping[str, Any]) -> ProductData:
    """
    Return a copy of product with analysed fields filled in.

    Only fields the patch carries a non-empty value for are replaced; the
    URL, image and everything else the user entered are kept.
    """
    updates: Dict[str, Any] = {"key_features": list(product.key_features)}
    for key, attr in ANALYSIS_FIELD_MAP.items():
        value = patch.get(key)
        if value:
            updates[attr] = list(value) if attr == "key_features" else value
    return dataclasses.replace(product, **updates)


def add_feature(product: ProductData, text: str) -> List[str]:
    """Append a trimmed feature; blank input is ignored."""
    feature = text.strip()
    if feature:
        product.key_features.append(feature)
    return product.key_features


def remove_feature(product: ProductData, index: int) -> List[str]:
    """Remove the feature at index."""
    if not 0 <= index < len(product.key_features):
        raise IndexError(f"No feature at index {index}")
    del product.key_features[index]
    return product.key_features
