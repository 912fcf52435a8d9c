"""
Image Decoder
=============

Dedicated module for decoding base64 PNG/JPEG payloads into OpenCV matrices.

Design Rules:
    - This is the ONLY place in the codebase that decodes picker images
    - Validates shape and dtype
    - Fails fast on corrupt payloads with ImageDecodeError
    - Returns BGR (H, W, 3), uint8
"""

import base64
import binascii
import logging

import cv2
import numpy as np

from collage_studio.exceptions import ImageDecodeError


logger = logging.getLogger(__name__)


def decode_image_bytes(image_bytes: bytes, image_id: str = "?") -> np.ndarray:
    """
    Decode PNG/JPEG bytes to a BGR numpy array.

    Args:
        image_bytes: Encoded image data
        image_id: Identifier used in error messages

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    if not image_bytes:
        raise ImageDecodeError(f"Empty image payload for {image_id}")

    nparr = np.frombuffer(image_bytes, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise ImageDecodeError(
            f"Failed to decode image {image_id}: cv2.imdecode returned None"
        )

    if len(bgr.shape) != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(f"Invalid image shape for {image_id}: {bgr.shape}")

    if bgr.dtype != np.uint8:
        raise ImageDecodeError(f"Invalid dtype for {image_id}: {bgr.dtype}")

    return bgr


def decode_image_b64(image_b64: str, image_id: str = "?") -> np.ndarray:
    """
    Decode a base64 PNG/JPEG string to a BGR numpy array.

    Raises:
        ImageDecodeError: If base64 or image decoding fails
    """
    try:
        image_bytes = base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Base64 decode failed for {image_id}: {e}") from e

    return decode_image_bytes(image_bytes, image_id)


def encode_image_png(image: np.ndarray) -> bytes:
    """
    Encode a BGR array as PNG bytes.

    Raises:
        ImageDecodeError: If OpenCV cannot encode the array
    """
    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise ImageDecodeError(f"PNG encoding failed for array of shape {image.shape}")
    return encoded.tobytes()
