"""
Image normalization: any provider reference (remote URL or data URL) in,
a fixed-size square PNG out.

Wikipedia thumbnails are often portraits or diagrams, so they are padded
onto a white square instead of cropped. Everything else is cropped to
fill the square.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import time
from typing import Optional
from urllib.parse import unquote_to_bytes

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from thisorthat.utils.http import USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 768
DEFAULT_TIMEOUT = 10.0
OUTPUT_FORMAT = "PNG"
OUTPUT_CONTENT_TYPE = "image/png"

CONTAIN_SOURCES = {"wikipedia"}
_CHUNK_SIZE = 64 * 1024


def absolute_url(url: str) -> str:
    if url.startswith("//"):
        return f"https:{url}"
    return url


def is_vector_type(content_type: Optional[str]) -> bool:
    ct = (content_type or "").lower()
    return "svg" in ct or "xml" in ct


def _decode_data_url(ref: str) -> Optional[bytes]:
    header, sep, payload = ref.partition(",")
    if not sep:
        return None
    media_type = header[len("data:"):].split(";", 1)[0]
    if is_vector_type(media_type):
        logger.info("[images] skipping vector data url (%s)", media_type)
        return None
    if ";base64" in header:
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


def _download(url: str, timeout: float) -> Optional[bytes]:
    """
    Fetch with a total deadline. `timeout` also bounds connect/read on the
    socket, and the body is abandoned once the deadline passes.
    """
    deadline = time.monotonic() + timeout
    with requests.get(url, headers={"User-Agent": USER_AGENT}, stream=True, timeout=timeout) as r:
        r.raise_for_status()
        if is_vector_type(r.headers.get("Content-Type")):
            logger.info("[images] skipping SVG/XML image: %s", url)
            return None
        chunks = []
        for chunk in r.iter_content(_CHUNK_SIZE):
            if time.monotonic() > deadline:
                logger.warning("[images] fetch exceeded %ss, abandoning: %s", timeout, url)
                return None
            chunks.append(chunk)
    return b"".join(chunks)


def _flatten(img: Image.Image, background: tuple) -> Image.Image:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        canvas = Image.new("RGB", rgba.size, background)
        canvas.paste(rgba, mask=rgba.getchannel("A"))
        return canvas
    return img.convert("RGB")


def fit_square(img: Image.Image, size: int, contain: bool = False) -> Image.Image:
    if contain:
        flat = _flatten(img, (255, 255, 255))
        return ImageOps.pad(flat, (size, size), method=Image.LANCZOS, color=(255, 255, 255), centering=(0.5, 0.5))
    flat = _flatten(img, (0, 0, 0))
    return ImageOps.fit(flat, (size, size), method=Image.LANCZOS, centering=(0.5, 0.5))


def encode_png(img: Image.Image) -> bytes:
    out = io.BytesIO()
    img.save(out, format=OUTPUT_FORMAT)
    return out.getvalue()


def normalize_image(
    ref: Optional[str],
    source: Optional[str] = None,
    size: int = DEFAULT_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[bytes]:
    """
    Return PNG bytes of a `size` x `size` image, or None when the reference
    cannot be turned into a usable raster image. Never raises.
    """
    if not ref:
        return None
    try:
        if ref.startswith("data:"):
            raw = _decode_data_url(ref)
        else:
            raw = _download(absolute_url(ref), timeout)
        if not raw:
            return None

        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            squared = fit_square(img, size, contain=(source or "").lower() in CONTAIN_SOURCES)
        return encode_png(squared)
    except requests.RequestException as exc:
        logger.warning("[images] fetch failed for %s: %s", ref[:120], exc)
    except (UnidentifiedImageError, binascii.Error, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning("[images] decode failed for %s: %s", ref[:120], exc)
    except Exception:  # noqa: BLE001
        logger.exception("[images] unexpected failure normalizing %s", ref[:120])
    return None
