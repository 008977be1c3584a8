"""
PDF Image Processing Components

The image-reconstruction pipeline, leaf first:

- ObjectTable: typed lookups over the pikepdf object table
- scan_image_objects: image stream discovery
- pair_soft_masks: soft mask to owner pairing
- reassemble / encode_png: inflate, interleave, PNG encode

These differ from utils/ which contains validation and plumbing helpers.
"""

from processors.object_table import ObjectTable
from processors.object_scanner import scan_image_objects
from processors.mask_pairing import pair_soft_masks
from processors.pixel_reassembly import (
    ImageDecodeError,
    UnknownColorTypeError,
    encode_png,
    reassemble,
)

__version__ = "1.0.0"
__all__ = [
    'ObjectTable',
    'scan_image_objects',
    'pair_soft_masks',
    'reassemble',
    'encode_png',
    'ImageDecodeError',
    'UnknownColorTypeError',
]
