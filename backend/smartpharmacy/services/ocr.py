# backend/smartpharmacy/services/ocr.py
import io
import logging
import re
from typing import List

from PIL import Image, UnidentifiedImageError

from smartpharmacy.errors import BadRequestError

log = logging.getLogger("ocr")

OCR_PROMPT = "\n".join([
    "Read the prescription in the image and extract the medicine (or cosmetic) trade names only.",
    "Return them as a comma-separated list with no other text.",
    "If nothing is readable, return an empty string.",
])

_STRIP_CHARS = re.compile(r"[\[\]\"`]")
MAX_SIDE = 2048


def to_jpeg(image_bytes: bytes) -> bytes:
    """Re-encode an upload as RGB JPEG, downscaled so the longest side fits MAX_SIDE."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise BadRequestError("Invalid image") from e
    img = img.convert("RGB")
    img.thumbnail((MAX_SIDE, MAX_SIDE))
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=90)
    return out.getvalue()


def parse_names(text: str) -> List[str]:
    cleaned = _STRIP_CHARS.sub("", text or "")
    names = [n.strip() for n in re.split(r"[,\n]", cleaned)]
    return [n for n in names if len(n) > 2]


def extract_names(image_bytes: bytes, provider) -> List[str]:
    """
    Prescription image -> list of medicine names. A missing or failing
    provider yields an empty list rather than an error.
    """
    jpeg = to_jpeg(image_bytes)
    if provider is None:
        log.warning("OCR requested but no AI provider is configured")
        return []
    try:
        text = provider.generate(OCR_PROMPT, image=jpeg, mime_type="image/jpeg")
    except Exception as e:
        log.error(f"OCR provider failed: {e}")
        return []
    names = parse_names(text)
    log.info("OCR extracted %d name(s)", len(names))
    return names
