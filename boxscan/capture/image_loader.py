"""
Upload validation and decoding.
"""

from typing import Optional

import cv2
import numpy as np

from boxscan.constants import IMAGE_MIME_PREFIX, MAX_UPLOAD_BYTES
from boxscan.errors import InvalidImage


def validate_upload(data: bytes, content_type: Optional[str], max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    """
    Check an upload before decoding.

    Raises:
        InvalidImage: not an ``image/*`` type, empty, or larger than *max_bytes*
    """
    if not content_type or not content_type.lower().startswith(IMAGE_MIME_PREFIX):
        raise InvalidImage(f"Please select a valid image file (got type {content_type!r})")
    if not data:
        raise InvalidImage("Image file is empty")
    if len(data) > max_bytes:
        raise InvalidImage(
            f"Image file is too large ({len(data) / (1024 * 1024):.1f} MB), "
            f"limit is {max_bytes / (1024 * 1024):.1f} MB"
        )


def decode_image(data: bytes) -> np.ndarray:
    """
    Fully decode an encoded image into a BGR array.

    Raises:
        InvalidImage: bytes are not a decodable image or decode to zero size
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise InvalidImage(f"Image could not be decoded: {e}") from e
    if image is None or image.size == 0 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImage("Image could not be decoded")
    return image
