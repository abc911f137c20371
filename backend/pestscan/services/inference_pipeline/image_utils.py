# backend/pestscan/services/inference_pipeline/image_utils.py
"""
Inference Image Utilities

Image loading and downsizing helpers for the local classifier. Images are
shrunk so neither side exceeds MAX_IMAGE_DIMENSION before inference, and are
never upscaled.
"""

import io
from pathlib import Path
from typing import Any, Tuple, Union

import cv2
import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from ...constants import INFERENCE_JPEG_QUALITY, MAX_IMAGE_DIMENSION
from ...exceptions import ValidationError

ImageSource = Union[str, Path, bytes, Image.Image, np.ndarray]

IMAGE_FETCH_TIMEOUT_SECONDS = 30


def _open_image(fp: Any) -> Image.Image:
    """Open and fully decode an image so corrupt data fails here."""
    try:
        image = Image.open(fp)
        image.load()
        return image
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Unreadable image: {e}") from e


def load_image(source: ImageSource) -> Image.Image:
    """
    Load an image from a file path, URL, raw bytes, PIL image or OpenCV frame.

    Args:
        source: Image source. Strings starting with http(s):// are fetched.

    Returns:
        PIL Image (not yet converted or resized)

    Raises:
        ValidationError: If the data cannot be decoded as an image
        ValueError: If the source type is not supported
    """
    if isinstance(source, Image.Image):
        return source

    if isinstance(source, np.ndarray):
        # OpenCV frames are BGR
        if source.ndim == 3 and source.shape[2] == 3:
            return Image.fromarray(cv2.cvtColor(source, cv2.COLOR_BGR2RGB))
        return Image.fromarray(source)

    if isinstance(source, (bytes, bytearray)):
        return _open_image(io.BytesIO(source))

    if isinstance(source, str) and source.lower().startswith(("http://", "https://")):
        response = requests.get(source, timeout=IMAGE_FETCH_TIMEOUT_SECONDS)
        response.raise_for_status()
        return _open_image(io.BytesIO(response.content))

    if isinstance(source, (str, Path)):
        return _open_image(source)

    raise ValueError(f"Unsupported image source type: {type(source).__name__}")


def compute_target_size(
    width: int, height: int, max_dimension: int = MAX_IMAGE_DIMENSION
) -> Tuple[int, int]:
    """
    Scale (width, height) down so the longer side equals max_dimension.

    Images already within bounds are returned unchanged.
    """
    if width <= max_dimension and height <= max_dimension:
        return width, height

    if width > height:
        return max_dimension, int((height * max_dimension) / width + 0.5)
    return int((width * max_dimension) / height + 0.5), max_dimension


def resize_for_inference(
    image: Image.Image, max_dimension: int = MAX_IMAGE_DIMENSION
) -> Image.Image:
    """Convert to RGB and downsize to fit within max_dimension."""
    if image.mode != "RGB":
        image = image.convert("RGB")

    target_size = compute_target_size(image.width, image.height, max_dimension)
    if target_size == image.size:
        return image
    return image.resize(target_size, Image.Resampling.LANCZOS)


def prepare_for_inference(
    source: Any,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    quality: int = INFERENCE_JPEG_QUALITY,
) -> Image.Image:
    """
    Load, downsize and JPEG re-encode an image for the classifier.

    Returns the decoded re-encoded image so the model sees the same
    compression artifacts regardless of the input format.
    """
    resized = resize_for_inference(load_image(source), max_dimension)

    buffer = io.BytesIO()
    resized.save(buffer, format="JPEG", quality=quality)
    buffer.seek(0)

    payload = Image.open(buffer)
    payload.load()
    return payload
