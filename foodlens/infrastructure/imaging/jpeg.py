"""JPEG recompression for outbound photos."""

from __future__ import annotations

import base64
import io

import structlog
from PIL import Image, UnidentifiedImageError

from foodlens.domain.shared.errors import EncodingError

logger = structlog.get_logger(__name__)


def convert_to_jpeg(image_data: bytes, quality: int) -> bytes:
    """
    Re-encode any Pillow-readable image as JPEG.

    Transparent images (RGBA, LA, P) are composited on a white background.

    Args:
        image_data: Encoded image bytes (JPEG, PNG, WebP, HEIF if supported...)
        quality: JPEG quality (1-95)

    Returns:
        JPEG bytes

    Raises:
        EncodingError: If the input is empty, cannot be decoded or exceeds
            Pillow's decompression-bomb pixel limit
    """
    if not image_data:
        raise EncodingError("Image data is empty")

    try:
        img: Image.Image = Image.open(io.BytesIO(image_data))
        img.load()

        rgb_img: Image.Image
        if img.mode in ("RGBA", "LA", "P"):
            background = Image.new("RGB", img.size, (255, 255, 255))
            if img.mode == "P":
                img = img.convert("RGBA")
            mask = img.split()[-1] if img.mode in ("RGBA", "LA") else None
            background.paste(img, mask=mask)
            rgb_img = background
        elif img.mode != "RGB":
            rgb_img = img.convert("RGB")
        else:
            rgb_img = img

        output = io.BytesIO()
        rgb_img.save(output, format="JPEG", quality=quality)
        return output.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning("JPEG conversion failed", size=len(image_data), error=str(e))
        raise EncodingError(f"Could not convert image to JPEG: {e}") from e


def encode_image_for_transport(image_data: bytes, quality: int) -> str:
    """Recompress to JPEG and return the base64 text sent as inline data."""
    jpeg = convert_to_jpeg(image_data, quality)
    logger.debug(
        "Image recompressed",
        original_size=len(image_data),
        jpeg_size=len(jpeg),
        quality=quality,
    )
    return base64.b64encode(jpeg).decode("ascii")
