from __future__ import annotations

"""
Turn a product image into the inline base64 payload Gemini expects.

Images are small single product shots, so the whole blob is read into memory
in one go.
"""

import base64
import logging
import mimetypes
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import EncodingError
from .models import EncodedMedia, ImageBlob


def _read_bytes(blob: ImageBlob) -> bytes:
    source = blob.source
    if isinstance(source, (bytes, bytearray)):
        raw = bytes(source)
    else:
        path = Path(source)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise EncodingError(f"Could not read product image {path}: {exc}") from exc

    if not raw:
        raise EncodingError("Product image is empty.")
    return raw


def _sniff_mime_type(raw: bytes) -> Optional[str]:
    """Ask Pillow what the bytes are. Returns None for non-images."""
    try:
        with Image.open(BytesIO(raw)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    if not fmt:
        return None
    return Image.MIME.get(fmt)


def resolve_mime_type(blob: ImageBlob, raw: bytes) -> str:
    """
    Resolve the content type for an image blob.

    Order of precedence:
      - The declared mime type on the blob.
      - A guess from the file extension, when the source is a path.
      - The format Pillow detects from the bytes.
    """
    if blob.mime_type:
        return blob.mime_type

    if not isinstance(blob.source, (bytes, bytearray)):
        guessed, _ = mimetypes.guess_type(str(blob.source))
        if guessed and guessed.startswith("image/"):
            return guessed

    sniffed = _sniff_mime_type(raw)
    if sniffed:
        return sniffed

    raise EncodingError("Could not determine the mime type of the product image.")


def encode_image(blob: ImageBlob) -> EncodedMedia:
    """Read the blob fully and return its base64 data plus mime type."""
    raw = _read_bytes(blob)
    mime_type = resolve_mime_type(blob, raw)

    logging.info("Encoded product image (%d bytes, %s)", len(raw), mime_type)
    return EncodedMedia(
        data=base64.b64encode(raw).decode("ascii"),
        mime_type=mime_type,
    )
