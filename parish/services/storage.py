"""
Cloudinary image storage for slide and photo uploads.
Uploads are validated and converted to WebP before being sent.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from parish.config import settings
from parish.utils.image_converter import convert_to_webp
import logging
import asyncio
import re
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

SLIDES_FOLDER = "slides"
PHOTOS_FOLDER = "photos"

# Configure Cloudinary with credentials from settings
cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True
)


class ImageValidationError(ValueError):
    """Upload rejected before it reaches Cloudinary."""


def validate_image_upload(content_type: Optional[str], size: int, max_bytes: Optional[int] = None) -> None:
    """
    Check an upload is an image within the size limit.

    Raises:
        ImageValidationError: with a message suitable for the admin toast
    """
    max_bytes = settings.SLIDE_IMAGE_MAX_BYTES if max_bytes is None else max_bytes
    if not content_type or not content_type.startswith("image/"):
        raise ImageValidationError("Por favor, selecione uma imagem válida")
    if size > max_bytes:
        raise ImageValidationError(f"Imagem muito grande (máximo {max_bytes // (1024 * 1024)}MB)")


async def upload_image(
    file: Any,
    folder: str = SLIDES_FOLDER,
    public_id: Optional[str] = None,
    max_retries: int = 3
) -> Dict[str, Any]:
    """
    Upload image to Cloudinary with automatic optimization and retry logic.

    Args:
        file: File object, file path, or bytes to upload
        folder: Cloudinary folder ("slides" or "photos")
        public_id: Optional custom public ID for the image
        max_retries: Maximum number of retry attempts for transient failures

    Returns:
        dict: url (secure HTTPS URL), public_id, format, width, height, bytes

    Raises:
        CloudinaryError: If upload fails after all retries
    """
    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                file,
                folder=folder,
                public_id=public_id,
                fetch_format="auto",
                quality="auto",
                transformation=[{"width": 1920, "height": 1080, "crop": "limit"}],
            )

            logger.info(f"Successfully uploaded image: {result['public_id']}")

            return {
                "url": result["secure_url"],
                "public_id": result["public_id"],
                "format": result.get("format"),
                "width": result.get("width"),
                "height": result.get("height"),
                "bytes": result.get("bytes"),
            }

        except CloudinaryError as e:
            logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{max_retries}): {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue

            logger.error(f"Cloudinary upload failed after {max_retries} attempts: {str(e)}")
            raise


async def delete_image(public_id: str, max_retries: int = 3) -> Dict[str, Any]:
    """
    Delete image from Cloudinary with retry logic.

    Raises:
        CloudinaryError: If deletion fails after all retries
    """
    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,
                resource_type="image",
            )
            if result.get("result") not in ("ok", "not found"):
                logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
            else:
                logger.info(f"Deleted image from Cloudinary: {public_id} (result: {result.get('result')})")
            return result

        except CloudinaryError as e:
            logger.warning(f"Cloudinary delete error (attempt {attempt + 1}/{max_retries}) for {public_id}: {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue

            logger.error(f"Cloudinary delete failed after {max_retries} attempts for {public_id}: {str(e)}")
            raise


async def store_image(content: bytes, filename: str, folder: str) -> Dict[str, Any]:
    """Convert an upload to WebP when that makes it smaller, then upload it."""
    converted, ok = await convert_to_webp(content, skip_if_webp=True)
    if ok and len(converted) < len(content):
        logger.info(f"Converted {filename} to WebP: {len(content):,} bytes -> {len(converted):,} bytes")
        content = converted
    elif not ok:
        logger.warning(f"WebP conversion failed for {filename}, uploading original format")

    return await upload_image(content, folder=folder)


def extract_public_id_from_url(cloudinary_url: str) -> str:
    """
    Extract the Cloudinary public_id from a delivery URL.

    https://res.cloudinary.com/{cloud}/image/upload/v{version}/{folder}/{name}.{ext}
    -> "{folder}/{name}"

    Raises:
        ValueError: If URL format is invalid
    """
    match = re.search(r"/image/upload(?:/v\d+)?/(.+)$", cloudinary_url)
    if not match:
        raise ValueError(f"Invalid Cloudinary URL format: {cloudinary_url}")

    parts = match.group(1).split("/")
    if "." in parts[-1]:
        parts[-1] = parts[-1].rsplit(".", 1)[0]
    return "/".join(parts)


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
        if not getattr(settings, name):
            logger.warning(f"{name} not configured")
            return False

    logger.info("Cloudinary configuration validated successfully")
    return True
