"""
Image conversion utility for converting uploads to WebP format.
Reduces file size before uploading to Cloudinary.
"""
import asyncio
import io
import logging
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # Balance between quality and file size (0-100)
DEFAULT_WEBP_METHOD = 6    # Compression method (0-6, higher = better compression but slower)
MAX_DIMENSION = 3840       # Larger slide photos are downscaled before upload


def _encode_webp(
    image_bytes: bytes,
    quality: int,
    method: int,
    max_dimension: Optional[int],
    skip_if_webp: bool,
) -> bytes:
    image = Image.open(io.BytesIO(image_bytes))

    if skip_if_webp and image.format == "WEBP":
        return image_bytes

    # WebP keeps transparency; everything else becomes RGB
    if image.mode == "P":
        image = image.convert("RGBA")
    elif image.mode not in ("RGB", "RGBA", "LA"):
        image = image.convert("RGB")

    if max_dimension:
        width, height = image.size
        if width > max_dimension or height > max_dimension:
            scale = max_dimension / max(width, height)
            new_size = (int(width * scale), int(height * scale))
            logger.info(f"Downscaling image from {width}x{height} to {new_size[0]}x{new_size[1]}")
            image = image.resize(new_size, Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    image.save(buffer, format="WEBP", quality=quality, method=method, lossless=quality == 100)
    return buffer.getvalue()


async def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
    skip_if_webp: bool = True
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP format to reduce file size.

    Returns:
        Tuple[bytes, bool]:
            - Converted image bytes (or original if skipped/failed)
            - True if converted or skipped, False if conversion failed
    """
    try:
        webp_bytes = await asyncio.to_thread(
            _encode_webp, image_bytes, quality, method, max_dimension, skip_if_webp
        )
    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False
    except Exception as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False

    if webp_bytes is not image_bytes:
        logger.info(
            f"Converted image to WebP: {len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes "
            f"(quality={quality})"
        )
    return webp_bytes, True
