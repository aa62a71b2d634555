"""Sticker rendering for the ``!sticker`` command."""

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from chatwarden.datatypes.message_datatypes import MediaPayload
from chatwarden.errors import DecodeError

# EXIF tags used to carry the sticker pack metadata
EXIF_IMAGE_DESCRIPTION = 0x010E
EXIF_ARTIST = 0x013B


def make_sticker(data: bytes, name: str, author: str, size: int = 512) -> MediaPayload:
    """
    Re-encode an image as a square, transparent-padded WebP sticker.

    The image keeps its aspect ratio and is centred on a ``size`` x ``size``
    canvas. Pack name and author are written to the EXIF block. Blocking; run
    it through ``asyncio.to_thread`` from async code.

    Raises:
        DecodeError: If ``data`` is not an image Pillow can read.
    """
    try:
        with Image.open(BytesIO(data)) as source:
            source.load()
            rgba = source.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeError(f"cannot build sticker: {exc}") from exc

    fitted = ImageOps.contain(rgba, (size, size))
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    canvas.paste(fitted, ((size - fitted.width) // 2, (size - fitted.height) // 2))

    exif = Image.Exif()
    exif[EXIF_IMAGE_DESCRIPTION] = name
    exif[EXIF_ARTIST] = author

    buffer = BytesIO()
    canvas.save(buffer, format="WEBP", exif=exif.tobytes())
    return MediaPayload(data=buffer.getvalue(), mimetype="image/webp", filename="sticker.webp")
