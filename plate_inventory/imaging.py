# plate_inventory/imaging.py

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .config import (
    ALLOWED_IMAGE_EXTENSIONS,
    MAX_FILE_SIZE,
    NORMALIZE_MAX_HEIGHT,
    NORMALIZE_MAX_WIDTH,
    NORMALIZE_QUALITY,
    REPORT_CONTRAST_FACTOR,
    REPORT_THUMBNAIL_MAX_DIMENSION,
)
from .exceptions import CanvasUnavailable, FileSizeError, ImageLoadError, InvalidImageError

logger = logging.getLogger(__name__)


def validate_image(file_content: bytes, filename: str) -> None:
    """
    Checks upload size and extension, then verifies that Pillow can parse
    the file. Raises the matching API error otherwise.
    """
    if len(file_content) > MAX_FILE_SIZE:
        raise FileSizeError(f"File size exceeds {MAX_FILE_SIZE // (1024*1024)}MB limit")

    file_ext = Path(filename or "").suffix.lower()
    if file_ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise InvalidImageError(f"Unsupported file type. Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}")

    try:
        image = Image.open(io.BytesIO(file_content))
        image.verify()
    except Exception:
        raise InvalidImageError("Invalid or corrupted image file")


def correct_orientation(image: Image.Image) -> Image.Image:
    """
    Applies the EXIF orientation tag, mirrored variants included. Phone
    cameras usually store the orientation in metadata instead of the pixels.
    """
    return ImageOps.exif_transpose(image)


def _decode(image_bytes: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        return image
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"Image load error: {e}")


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Scales (width, height) down to fit the bounds, keeping the aspect ratio. Never scales up."""
    if width > max_width or height > max_height:
        ratio = min(max_width / width, max_height / height)
        return max(1, int(width * ratio)), max(1, int(height * ratio))
    return width, height


def _encode_jpeg(image: Image.Image, quality: float) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=max(1, min(95, round(quality * 100))))
    return buffer.getvalue()


def normalize_image(
    image_bytes: bytes,
    max_width: int = NORMALIZE_MAX_WIDTH,
    max_height: int = NORMALIZE_MAX_HEIGHT,
    quality: float = NORMALIZE_QUALITY,
) -> bytes:
    """
    Resizes and recompresses a captured or uploaded image before it is sent
    for recognition and stored.

    The aspect ratio is preserved and the image is only scaled down, when
    either side exceeds its maximum. Output is always JPEG at `quality`
    (0 to 1).

    Raises:
        ImageLoadError: the source bytes cannot be decoded.
        CanvasUnavailable: the output surface cannot be allocated or encoded.
    """
    source = _decode(image_bytes)
    try:
        image = correct_orientation(source)
        image = image.convert("RGB")
        new_size = fit_within(image.width, image.height, max_width, max_height)
        if new_size != image.size:
            logger.info(f"Resizing image from {image.size} to {new_size}")
            image = image.resize(new_size, Image.Resampling.LANCZOS)
        return _encode_jpeg(image, quality)
    except (MemoryError, OSError, ValueError) as e:
        raise CanvasUnavailable(f"Canvas not supported: {e}")
    finally:
        source.close()


def _boost_contrast(image: Image.Image, factor: float) -> Image.Image:
    pixels = np.asarray(image, dtype=np.float32)
    pixels = np.clip(np.rint((pixels - 128.0) * factor + 128.0), 0, 255)
    return Image.fromarray(pixels.astype(np.uint8))


def compress_for_report(
    image_bytes: bytes,
    max_dimension: int = REPORT_THUMBNAIL_MAX_DIMENSION,
    contrast: float = REPORT_CONTRAST_FACTOR,
) -> Image.Image:
    """
    Report thumbnail: longest side limited to `max_dimension`, transparency
    flattened onto white and a slight contrast boost around mid-grey.
    """
    source = _decode(image_bytes)
    try:
        image = correct_orientation(source)
        new_size = fit_within(image.width, image.height, max_dimension, max_dimension)

        canvas = Image.new("RGB", new_size, (255, 255, 255))
        rgba = image.convert("RGBA").resize(new_size, Image.Resampling.LANCZOS)
        canvas.paste(rgba, mask=rgba.getchannel("A"))

        try:
            canvas = _boost_contrast(canvas, contrast)
        except (ValueError, MemoryError):
            logger.warning("Image enhancement failed, using original")
        return canvas
    except (MemoryError, OSError) as e:
        raise CanvasUnavailable(f"Canvas context not available: {e}")
    finally:
        source.close()
