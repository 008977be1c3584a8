"""
Soft mask pairing.

Links each PNG-candidate image to the image record its /SMask refers to.
The mask is flagged as an alpha layer so it is never emitted on its own.
"""

import logging
from typing import Dict, List

from models.pdf_types import ImageKind, ImageRecord, ObjectRef

logger = logging.getLogger(__name__)


def pair_soft_masks(records: List[ImageRecord]) -> int:
    """
    Pair images with their soft masks, mutating the records in place.

    A reference that matches no image record leaves the owner without an
    alpha channel. When several owners name the same mask, each of them is
    paired with it. Masks never own masks: an image already used as a mask
    keeps no alpha layer, and an image that already has a mask is not used
    as one, so images whose /SMask entries form a cycle still produce output.

    Args:
        records: Image record arena from the scanner

    Returns:
        Number of owners paired with a mask
    """
    handles: Dict[ObjectRef, int] = {record.reference: handle for handle, record in enumerate(records)}
    owners_by_mask: Dict[int, int] = {}
    paired = 0

    for handle, image in enumerate(records):
        if image.kind is not ImageKind.PNG or image.smask_reference is None:
            continue
        if image.is_alpha_layer:
            logger.debug(f"Image {image.label} is already a soft mask, ignoring its own /SMask")
            continue

        mask_handle = handles.get(image.smask_reference)
        if mask_handle is None:
            logger.debug(f"Image {image.label} has dangling soft mask {image.smask_reference}, treating as opaque")
            continue
        if mask_handle == handle:
            logger.warning(f"Image {image.label} names itself as soft mask, ignoring")
            continue
        if records[mask_handle].alpha_layer is not None:
            logger.warning(
                f"Image {image.label} names {records[mask_handle].label} as soft mask, "
                f"but that image has a soft mask of its own, ignoring"
            )
            continue

        if mask_handle in owners_by_mask:
            logger.debug(
                f"Soft mask {records[mask_handle].label} is shared with "
                f"{records[owners_by_mask[mask_handle]].label}"
            )
        else:
            owners_by_mask[mask_handle] = handle

        records[mask_handle].is_alpha_layer = True
        image.alpha_layer = mask_handle
        paired += 1

    if paired:
        logger.debug(f"Paired {paired} image(s) with soft masks")
    return paired
