"""Image and key utilities for the thumbnail pipeline."""

import io
from typing import Tuple

from PIL import Image

THUMBNAIL_WIDTH = 100
THUMBNAIL_HEIGHT = 100
DESTINATION_PREFIX = "thumbnails/"
THUMBNAIL_FILE_PREFIX = "thumbnail-"

# Formats Pillow can write back out unchanged
WRITABLE_FORMATS = ("JPEG", "PNG", "GIF", "WEBP", "BMP", "TIFF")
FALLBACK_FORMAT = "PNG"


def calculate_dest_key(source_key: str) -> str:
    """
    Calculate the destination S3 key for a thumbnail.

    The prefix is concatenated as-is; the source key is not normalized.

    Args:
        source_key: Original S3 key

    Returns:
        Destination S3 key
    """
    return DESTINATION_PREFIX + source_key


def output_format(source_format: str) -> str:
    """
    Choose the format a thumbnail is written in.

    Args:
        source_format: Format Pillow detected for the source image (may be empty)

    Returns:
        The source format if Pillow can write it, otherwise PNG
    """
    fmt = (source_format or "").upper()
    return fmt if fmt in WRITABLE_FORMATS else FALLBACK_FORMAT


def content_type_for(image_format: str) -> str:
    """Return the MIME type for a Pillow format name."""
    # Image.MIME is filled in as format plugins load
    Image.init()
    return Image.MIME.get(image_format.upper(), "application/octet-stream")


def fit_within(img: "Image.Image", width: int, height: int) -> "Image.Image":
    """
    Resize an image to fit inside width x height, keeping its aspect ratio.

    Images already inside the box are never upscaled.

    Args:
        img: PIL Image to resize
        width: Maximum thumbnail width
        height: Maximum thumbnail height

    Returns:
        A resized copy of the image
    """
    thumbnail = img.copy()
    thumbnail.thumbnail((width, height), Image.Resampling.LANCZOS)
    return thumbnail


def prepare_for_format(img: "Image.Image", image_format: str) -> "Image.Image":
    """Convert image modes the target format cannot store."""
    if image_format == "JPEG" and img.mode not in ("RGB", "L"):
        return img.convert("RGB")
    return img


def describe_image(image_bytes: bytes) -> Tuple[Tuple[int, int], str]:
    """Return ((width, height), format) of encoded image bytes."""
    with Image.open(io.BytesIO(image_bytes)) as img:
        return img.size, img.format or ""
