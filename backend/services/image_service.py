"""
Image intake — turns the browser's base64 data URI into bytes + MIME type
for the providers, and makes small thumbnails for the history list.
"""
import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger("billsight.image")

DATA_URI_RE = re.compile(r'^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[^,;]*)*?);base64,', re.I)

SUPPORTED_TYPES = {"image/jpeg", "image/png", "image/webp"}
MIME_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
}
DEFAULT_MIME = "image/png"

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

THUMBNAIL_MAX = 400


@dataclass(frozen=True)
class ImagePayload:
    mime_type: str
    data_b64: str     # prefix stripped, ready for the wire
    data: bytes

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data_b64}"

    @property
    def extension(self) -> str:
        return EXTENSIONS.get(self.mime_type, "png")


def sniff_mime_type(data: bytes) -> Optional[str]:
    """Detect JPEG / PNG / WEBP from magic bytes."""
    if data[:3] == b'\xff\xd8\xff':
        return "image/jpeg"
    if data[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"
    if data[:4] == b'RIFF' and data[8:12] == b'WEBP':
        return "image/webp"
    return None


def parse_data_uri(image_data: str) -> ImagePayload:
    """
    Split a data URI into MIME type and base64 payload.

    The declared type wins when it is one we support; otherwise the decoded
    bytes are sniffed, and PNG is assumed when nothing matches.  A bare
    base64 string (no ``data:`` prefix) is accepted.
    """
    if not image_data or not image_data.strip():
        raise ValueError("No image data supplied")

    text = image_data.strip()
    declared = None
    m = DATA_URI_RE.match(text)
    if m:
        declared = (m.group("mime") or "").lower()
        declared = MIME_ALIASES.get(declared, declared)
        text = text[m.end():]

    b64 = re.sub(r'\s+', '', text)
    try:
        data = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Image data is not valid base64: {e}") from e
    if not data:
        raise ValueError("Image data is empty")

    if declared in SUPPORTED_TYPES:
        mime = declared
    else:
        mime = sniff_mime_type(data) or DEFAULT_MIME
        if declared:
            logger.debug("Declared type %s unsupported, using %s", declared, mime)

    return ImagePayload(mime_type=mime, data_b64=b64, data=data)


def generate_thumbnail(data: bytes) -> Optional[bytes]:
    """Small JPEG preview for the history list, or None if Pillow can't read it."""
    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img)
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        img.thumbnail((THUMBNAIL_MAX, THUMBNAIL_MAX), Image.LANCZOS)
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=80, optimize=True)
        return buf.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Thumbnail generation failed: %s", e)
        return None
