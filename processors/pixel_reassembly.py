"""
Pixel Reassembly

Inflates image (and soft mask) streams and interleaves color and alpha
samples into a flat pixel buffer for one of four PNG color types, then
hands the buffer to Pillow for PNG encoding.
"""

import io
import logging
import zlib
from typing import Optional

import numpy as np
from PIL import Image

from constants.pdf_keys import VAL_DEVICE_GRAY
from models.pdf_types import ImageRecord, PngColorType, ReassembledImage

logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when an image stream cannot be decoded"""
    pass


class UnknownColorTypeError(ImageDecodeError):
    """Raised for a color type outside the four supported PNG modes"""
    pass


# Pillow modes for each PNG color type
PIL_MODES = {
    PngColorType.GRAYSCALE: 'L',
    PngColorType.RGB: 'RGB',
    PngColorType.GRAYSCALE_ALPHA: 'LA',
    PngColorType.RGB_ALPHA: 'RGBA',
}


def components_per_pixel(color_type: PngColorType) -> int:
    if color_type == PngColorType.GRAYSCALE:
        return 1
    elif color_type == PngColorType.RGB:
        return 3
    elif color_type == PngColorType.GRAYSCALE_ALPHA:
        return 2
    elif color_type == PngColorType.RGB_ALPHA:
        return 4
    else:
        raise UnknownColorTypeError(f"Unknown color type {color_type!r}")


def select_color_type(is_grayscale: bool, has_alpha: bool) -> PngColorType:
    if is_grayscale:
        return PngColorType.GRAYSCALE_ALPHA if has_alpha else PngColorType.GRAYSCALE
    return PngColorType.RGB_ALPHA if has_alpha else PngColorType.RGB


def is_grayscale(record: ImageRecord) -> bool:
    return record.color_space == VAL_DEVICE_GRAY


def decompress_flate(data: bytes) -> bytes:
    """
    Inflate FlateDecode data.

    Tries a standard zlib stream first, then raw deflate, then skips up to
    four leading garbage bytes.

    Raises:
        ImageDecodeError: If no strategy succeeds
    """
    if not data:
        raise ImageDecodeError("Stream is empty")

    strategies = [
        lambda: zlib.decompress(data),
        lambda: zlib.decompress(data, -15),
    ]
    for skip in [1, 2, 3, 4]:
        if len(data) > skip:
            strategies.extend([
                lambda s=skip: zlib.decompress(data[s:]),
                lambda s=skip: zlib.decompress(data[s:], -15),
            ])

    first_error: Optional[zlib.error] = None
    for strategy in strategies:
        try:
            return strategy()
        except zlib.error as e:
            if first_error is None:
                first_error = e
            continue

    raise ImageDecodeError(f"Flate decompression failed: {first_error}")


def _fit(samples: bytes, length: int, what: str, pad: bool) -> np.ndarray:
    """View samples as uint8, zero-padding or truncating to exactly length."""
    array = np.frombuffer(samples, dtype=np.uint8)
    if array.size < length:
        if not pad:
            raise ImageDecodeError(f"{what} data too short: {array.size} bytes, need {length}")
        logger.warning(f"{what} data too short ({array.size} < {length} bytes), padding with zeros")
        array = np.concatenate([array, np.zeros(length - array.size, dtype=np.uint8)])
    return array[:length]


def interleave_pixels(color_type: PngColorType, pixel_count: int, color: bytes,
                      alpha: Optional[bytes] = None, pad: bool = True) -> bytes:
    """
    Build the flat pixel buffer for a color type.

    - RGB: three color bytes per pixel, verbatim.
    - RGB_ALPHA: three color bytes followed by the pixel's alpha byte.
    - GRAYSCALE: the most significant bit of each input byte, expanded to
      0x00 or 0xFF.
    - GRAYSCALE_ALPHA: thresholded gray byte followed by the alpha byte.

    Args:
        color_type: Target PNG color type
        pixel_count: width * height
        color: Inflated color samples
        alpha: Inflated alpha samples, required for the alpha color types
        pad: Zero-pad short input instead of raising

    Returns:
        Buffer of pixel_count * components_per_pixel(color_type) bytes
    """
    components = components_per_pixel(color_type)
    if color_type.has_alpha and alpha is None:
        raise ImageDecodeError(f"Color type {color_type.name} requires alpha samples")

    output = np.empty((pixel_count, components), dtype=np.uint8)

    if color_type in (PngColorType.RGB, PngColorType.RGB_ALPHA):
        output[:, 0:3] = _fit(color, pixel_count * 3, "Color", pad).reshape(pixel_count, 3)
    else:
        gray = _fit(color, pixel_count, "Color", pad)
        output[:, 0] = np.where(gray >> 7, 0xFF, 0x00)

    if color_type.has_alpha:
        output[:, components - 1] = _fit(alpha, pixel_count, "Alpha", pad)

    return output.tobytes()


def check_pixel_count(record: ImageRecord) -> int:
    """
    Return width * height, refusing images larger than Pillow would open.

    Raises:
        ImageDecodeError: If the image exceeds Image.MAX_IMAGE_PIXELS
    """
    pixel_count = record.width * record.height
    limit = Image.MAX_IMAGE_PIXELS
    if limit is not None and pixel_count > limit:
        raise ImageDecodeError(
            f"Image {record.label}: {record.width}x{record.height} exceeds the {limit} pixel limit"
        )
    return pixel_count


def reassemble(record: ImageRecord, alpha_record: Optional[ImageRecord] = None,
               pad: bool = True) -> ReassembledImage:
    """
    Decompress an image (and its soft mask) into an interleaved pixel buffer.

    Raises:
        ImageDecodeError: On decompression failure, oversized dimensions,
            or short data when pad is False
    """
    pixel_count = check_pixel_count(record)

    try:
        color = decompress_flate(record.raw_data)
    except ImageDecodeError as e:
        raise ImageDecodeError(f"Image {record.label}: {e}") from e

    alpha = None
    if alpha_record is not None:
        try:
            alpha = decompress_flate(alpha_record.raw_data)
        except ImageDecodeError as e:
            raise ImageDecodeError(f"Soft mask {alpha_record.label} of image {record.label}: {e}") from e

    color_type = select_color_type(is_grayscale(record), alpha is not None)
    pixels = interleave_pixels(color_type, pixel_count, color, alpha, pad=pad)

    logger.debug(f"Reassembled {record.label} as {color_type.name} ({len(pixels)} bytes)")
    return ReassembledImage(pixels=pixels, width=record.width, height=record.height, color_type=color_type)


def encode_png(image: ReassembledImage, optimize: bool = False) -> bytes:
    """Encode a reassembled pixel buffer as PNG bytes."""
    mode = PIL_MODES.get(image.color_type)
    if mode is None:
        raise UnknownColorTypeError(f"Unknown color type {image.color_type!r}")

    pil_image = Image.frombytes(mode, (image.width, image.height), image.pixels)
    buffer = io.BytesIO()
    pil_image.save(buffer, format='PNG', optimize=optimize)
    return buffer.getvalue()
