"""Image decoding for moderation.

Payloads are decoded with Pillow into RGB pixel grids. Only the configured
format family is accepted; anything else, and any corrupt or truncated stream,
comes back as :class:`Skipped` so the pipeline can let it through unmoderated.
"""

from __future__ import annotations

import base64
import binascii
from io import BytesIO
from typing import Iterable

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from chatwarden.datatypes.image_datatypes import Decoded, DecodeResult, PixelGrid, Skipped
from chatwarden.errors import DecodeError
from chatwarden.util.logger import get_logger

logger = get_logger("image_decoder")

register_heif_opener()

DEFAULT_FORMATS = ("JPEG",)

# Pillow reports multi-picture camera JPEGs as MPO.
FORMAT_FAMILIES = {"MPO": "JPEG"}


def decode_base64_payload(data: str | bytes) -> bytes:
    """Decode a base64 media payload into raw bytes.

    Raises:
        DecodeError: If the payload is not valid base64.
    """
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 payload: {exc}") from exc


def _fit_longest_side(img: Image.Image, max_side: int) -> Image.Image:
    w, h = img.size
    if max_side <= 0 or max(w, h) <= max_side:
        return img

    if w > h:
        new_w = max_side
        new_h = max(1, int(h * max_side / w))
    else:
        new_h = max_side
        new_w = max(1, int(w * max_side / h))

    resized = img.resize((new_w, new_h))
    img.close()
    return resized


def load_pixels(
    data: bytes,
    supported_formats: Iterable[str] = DEFAULT_FORMATS,
    max_side: int = 512,
) -> PixelGrid:
    """Decode ``data`` into an RGB :class:`PixelGrid`.

    Args:
        data: Encoded image bytes.
        supported_formats: Pillow format names that are accepted.
        max_side: Longest side after down-scaling; 0 disables resizing.

    Raises:
        DecodeError: When the bytes are empty, not an image, in an unsupported
            format, or truncated.
    """
    if not data:
        raise DecodeError("empty payload")

    allowed = {fmt.upper() for fmt in supported_formats}
    try:
        img = Image.open(BytesIO(data))
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"image too large: {exc}") from exc
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeError(f"not a recognizable image: {exc}") from exc

    fmt = (img.format or "").upper()
    fmt = FORMAT_FAMILIES.get(fmt, fmt)
    if fmt not in allowed:
        img.close()
        raise DecodeError(f"unsupported encoding {fmt or 'unknown'}")

    try:
        # Force the full decode so truncated streams fail here.
        img.load()
        rgb = img.convert("RGB")
    except Image.DecompressionBombError as exc:
        img.close()
        raise DecodeError(f"image too large: {exc}") from exc
    except (OSError, ValueError, SyntaxError) as exc:
        img.close()
        raise DecodeError(f"corrupt {fmt} stream: {exc}") from exc

    if rgb is not img:
        img.close()
    rgb = _fit_longest_side(rgb, max_side)
    width, height = rgb.size
    return PixelGrid(image=rgb, width=width, height=height, channels=3)


def decode_image(
    data: bytes,
    supported_formats: Iterable[str] = DEFAULT_FORMATS,
    max_side: int = 512,
) -> DecodeResult:
    """Decode ``data`` and report failures as :class:`Skipped` instead of raising."""
    try:
        pixels = load_pixels(data, supported_formats, max_side)
    except DecodeError as exc:
        logger.debug("[DECODE] Skipping image: %s", exc)
        return Skipped(reason=str(exc))

    logger.debug("[DECODE] Decoded image %dx%d", pixels.width, pixels.height)
    return Decoded(pixels=pixels)
