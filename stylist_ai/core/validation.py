"""
Input Validation Module (v1.1.0)
Validates uploaded barcode images, image URLs and UPC codes.
"""
import io
import re
import logging
from typing import Tuple, Optional
from urllib.parse import unquote, urlparse

from PIL import Image

logger = logging.getLogger(__name__)

# Configuration
MAX_FILE_SIZE_MB = 10
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}

UPC_PATTERN = re.compile(r"^\d{8,14}$")


class ValidationError(Exception):
    """Custom exception for validation errors."""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def validate_file_size(content: bytes) -> None:
    """
    Check if file size is within limits.

    Raises:
        ValidationError: If file is empty or exceeds MAX_FILE_SIZE_MB
    """
    if not content:
        raise ValidationError("Uploaded file is empty", status_code=400)

    size_mb = len(content) / (1024 * 1024)
    if len(content) > MAX_FILE_SIZE_BYTES:
        raise ValidationError(
            f"File too large: {size_mb:.1f}MB (max {MAX_FILE_SIZE_MB}MB)",
            status_code=413
        )
    logger.debug(f"File size OK: {size_mb:.2f}MB")


def validate_mime_type(content_type: Optional[str]) -> str:
    """
    Check if MIME type is allowed.

    Returns:
        Normalized MIME type

    Raises:
        ValidationError: If MIME type is not in ALLOWED_MIME_TYPES
    """
    if content_type is None:
        raise ValidationError("Missing Content-Type header", status_code=415)

    # Normalize content type (remove charset etc.)
    mime = content_type.split(";")[0].strip().lower()
    if mime == "image/jpg":
        mime = "image/jpeg"

    if mime not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"Unsupported file type: {mime}. Allowed: {', '.join(sorted(ALLOWED_MIME_TYPES))}",
            status_code=415
        )
    logger.debug(f"MIME type OK: {mime}")
    return mime


def decode_image(content: bytes) -> Image.Image:
    """
    Decode image bytes to PIL Image.

    Raises:
        ValidationError: If image cannot be decoded
    """
    try:
        image = Image.open(io.BytesIO(content))
        image.load()  # Force load to catch truncated images
        return image
    except Exception as e:
        raise ValidationError(
            f"Cannot decode image: {str(e)}",
            status_code=400
        )


def validate_image_upload(content: bytes, content_type: Optional[str]) -> Tuple[bytes, str]:
    """
    Complete validation pipeline for an uploaded image.

    Args:
        content: File bytes
        content_type: MIME type from request

    Returns:
        Tuple of (validated bytes, normalized MIME type)

    Raises:
        ValidationError: If any validation fails
    """
    validate_file_size(content)
    mime = validate_mime_type(content_type)
    image = decode_image(content)

    logger.info(f"Image validated: {image.size[0]}x{image.size[1]}, {image.mode}")
    return content, mime


def unwrap_image_url(raw_url: str) -> str:
    """
    Return the real image URL behind a Next.js `_next/image?url=` proxy URL.

    Non-proxy URLs are returned unchanged (trimmed).
    """
    url = (raw_url or "").strip()
    if "_next/image" in url and "?url=" in url:
        url = unquote(url.split("?url=", 1)[1].split("&", 1)[0])
    return url


def validate_image_url(raw_url: Optional[str]) -> str:
    """
    Validate an image URL coming from a client.

    Raises:
        ValidationError: If the URL is missing or not http(s)
    """
    url = unwrap_image_url(raw_url or "")
    if not url:
        raise ValidationError("Missing image URL", status_code=400)

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"Invalid image URL: {url[:80]}", status_code=400)

    return url


def validate_upc(raw: Optional[str]) -> str:
    """
    Normalize and validate a UPC/EAN code (8-14 digits).

    Raises:
        ValidationError: If the code is missing or malformed
    """
    code = re.sub(r"[\s-]", "", raw or "")
    if not code:
        raise ValidationError("Missing UPC", status_code=400)
    if not UPC_PATTERN.match(code):
        raise ValidationError(f"Invalid UPC: {code}", status_code=400)
    return code
