"""
Object Scanner

Walks the resolved object table and builds an ImageRecord for every stream
whose /Subtype is /Image.
"""

import logging
from typing import List, Optional

import pikepdf

from constants.pdf_keys import (
    DEFAULT_BITS_PER_COMPONENT,
    JPEG_FILTERS,
    KEY_BITS_PER_COMPONENT,
    KEY_COLOR_SPACE,
    KEY_FILTER,
    KEY_HEIGHT,
    KEY_NAME,
    KEY_SOFT_MASK,
    KEY_SUBTYPE,
    KEY_WIDTH,
    VAL_IMAGE,
)
from models.pdf_types import ImageKind, ImageRecord, ObjectRef
from processors.object_table import (
    ObjectTable,
    get_color_space,
    get_filters,
    get_int,
    get_name,
    get_reference,
)

logger = logging.getLogger(__name__)


def classify_filters(filters) -> ImageKind:
    """A stream is passed through as JPEG only when DCT is its whole filter chain."""
    if len(filters) == 1 and filters[0] in JPEG_FILTERS:
        return ImageKind.JPEG
    return ImageKind.PNG


def build_image_record(position: int, reference: ObjectRef, stream: pikepdf.Object) -> Optional[ImageRecord]:
    """
    Build an ImageRecord from an image stream.

    Args:
        position: 1-based position of the object in the scan, used for the
            placeholder name
        reference: Indirect reference of the stream
        stream: The image stream

    Returns:
        ImageRecord, or None if the stream has no usable dimensions
    """
    width = get_int(stream, KEY_WIDTH)
    height = get_int(stream, KEY_HEIGHT)
    if width is None or height is None or width <= 0 or height <= 0:
        logger.warning(f"Skipping image {reference}: invalid dimensions {width}x{height}")
        return None

    name = get_name(stream, KEY_NAME)
    bits_per_component = get_int(stream, KEY_BITS_PER_COMPONENT) or DEFAULT_BITS_PER_COMPONENT

    return ImageRecord(
        reference=reference,
        kind=classify_filters(get_filters(stream, KEY_FILTER)),
        name=name.lstrip('/') if name else f"Object{position}",
        width=width,
        height=height,
        bits_per_component=bits_per_component,
        raw_data=bytes(stream.read_raw_bytes()),
        color_space=get_color_space(stream, KEY_COLOR_SPACE),
        smask_reference=get_reference(stream, KEY_SOFT_MASK),
    )


def scan_image_objects(table: ObjectTable) -> List[ImageRecord]:
    """
    Produce the ordered list of image records found in an object table.

    Objects that are not streams, or streams that are not images, are
    skipped silently.
    """
    records: List[ImageRecord] = []
    seen = set()

    for position, reference, obj in table:
        if reference is None or not ObjectTable.is_stream(obj):
            continue
        if get_name(obj, KEY_SUBTYPE) != VAL_IMAGE:
            continue
        if reference in seen:
            continue

        record = build_image_record(position, reference, obj)
        if record is None:
            continue

        seen.add(reference)
        records.append(record)
        logger.debug(
            f"Found image {record.label}: {record.width}x{record.height}, "
            f"{record.bits_per_component} bpc, {record.color_space}, {record.kind.name}"
        )

    logger.info(f"Scanned {len(table)} objects, found {len(records)} image stream(s)")
    return records
