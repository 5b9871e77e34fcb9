"""
Progressive image-size reduction.

Shrinks a local image under a byte budget so it can be inlined as a data URI
in an issue description. The reduction is best effort: after a fixed number
of attempts the smallest encoding obtained is returned even when it is still
over budget.
"""

import base64
import io
import logging
import math
from pathlib import Path
from typing import Optional, Union

from .errors import ImageProcessingUnavailable

try:
    from PIL import Image
except ImportError:  # Pillow ships in the "images" extra
    Image = None

logger = logging.getLogger(__name__)

DEFAULT_TARGET_KB = 90
START_WIDTH = 800
START_QUALITY = 80
MIN_QUALITY = 30
MAX_ATTEMPTS = 8
COARSE_ATTEMPTS = 4

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}

# Extensions kept in their own format when re-encoding; the rest become JPEG
_OUTPUT_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".webp": "WEBP",
}

_ENCODED_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}

MANUAL_RESIZE_HINT = """To auto-resize images, install Pillow:

pip install "agent-skills[images]"

Or manually:
1. Resize image to smaller dimensions
2. Host externally and use --attachment "https://url"
3. Or manually drag and drop in the Linear web interface"""

PathLike = Union[str, Path]


def mime_type_for(path: PathLike) -> str:
    """MIME type of a file as stored on disk, by extension."""
    return MIME_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def output_format_for(path: PathLike) -> str:
    """Pillow format name used when re-encoding a file."""
    return _OUTPUT_FORMATS.get(Path(path).suffix.lower(), "JPEG")


def encoded_mime_type_for(path: PathLike) -> str:
    """MIME type of the buffer produced by re-encoding a file."""
    return _ENCODED_MIME_TYPES[output_format_for(path)]


def _encode(original: bytes, fmt: str, width: int, quality: int) -> bytes:
    """Re-encode an image fitting inside `width`, never enlarging it."""
    with Image.open(io.BytesIO(original)) as source:
        image = source.copy()

    if image.width > width:
        height = max(1, round(image.height * width / image.width))
        image = image.resize((width, height), Image.Resampling.LANCZOS)

    out = io.BytesIO()
    if fmt == "PNG":
        image.save(out, format="PNG", optimize=True, compress_level=9)
    elif fmt == "WEBP":
        image.save(out, format="WEBP", quality=quality)
    else:
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        image.save(out, format="JPEG", quality=quality, optimize=True)
    return out.getvalue()


def shrink_image(path: PathLike, target_kb: int = DEFAULT_TARGET_KB) -> bytes:
    """Produce an encoding of an image at or under `target_kb` kilobytes.

    Files already within budget are returned byte-for-byte. Otherwise the
    image is re-encoded starting at 800px wide and quality 80. The first four
    misses shrink the width by 20%; later misses shrink it by 10% and drop
    quality by 15 points, never below 30. After eight attempts the smallest
    buffer seen is returned.

    Args:
        path: Path to the image file
        target_kb: Byte budget in KB

    Returns:
        Encoded image bytes

    Raises:
        ImageProcessingUnavailable: If re-encoding is needed but Pillow is
            not installed
    """
    path = Path(path)
    original = path.read_bytes()
    target_bytes = target_kb * 1024

    if len(original) <= target_bytes:
        return original

    if Image is None:
        size_mb = len(original) / (1024 * 1024)
        raise ImageProcessingUnavailable(
            f"Image file is {size_mb:.1f}MB. {MANUAL_RESIZE_HINT}"
        )

    fmt = output_format_for(path)
    width = START_WIDTH
    quality = START_QUALITY
    smallest: Optional[bytes] = None

    for attempt in range(MAX_ATTEMPTS):
        buffer = _encode(original, fmt, width, quality)
        logger.info(
            "Resize attempt %d: %dpx, quality %d%% = %.1fKB",
            attempt + 1, width, quality, len(buffer) / 1024
        )

        if smallest is None or len(buffer) < len(smallest):
            smallest = buffer

        if len(buffer) <= target_bytes:
            logger.info("Image resized to %.1fKB", len(buffer) / 1024)
            return buffer

        if attempt < COARSE_ATTEMPTS:
            width = math.floor(width * 0.8)
        else:
            width = math.floor(width * 0.9)
            quality = max(MIN_QUALITY, quality - 15)

    logger.warning(
        "Final size: %.1fKB (target: %dKB)", len(smallest) / 1024, target_kb
    )
    return smallest


def image_to_data_uri(path: PathLike, target_kb: int = DEFAULT_TARGET_KB) -> str:
    """Convert an image file to a base64 data URI, shrinking it if needed."""
    path = Path(path)
    size = path.stat().st_size

    if size <= target_kb * 1024:
        logger.info("Image already optimal size: %.1fKB", size / 1024)
        data = path.read_bytes()
        mime_type = mime_type_for(path)
    else:
        logger.info("Image is %.1fKB, attempting to resize...", size / 1024)
        data = shrink_image(path, target_kb)
        mime_type = encoded_mime_type_for(path)

    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
