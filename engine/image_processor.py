"""Image Processor for PDFEngine

Owns the image record arena of one document: scans the object table,
pairs soft masks, and renders each output image on demand.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from engine.config import ImageProcessorOptions
from models.pdf_types import ImageKind, ImageRecord, PngColorType
from processors.mask_pairing import pair_soft_masks
from processors.object_scanner import scan_image_objects
from processors.object_table import ObjectTable
from processors.pixel_reassembly import encode_png, reassemble

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class ImageProcessor:
    """
    Image extraction processor for PDFEngine.

    The record list is built once per document. Records are addressed by
    their index ("handle") in that list.
    """

    def __init__(self, engine: 'PDFEngine', options: Optional[ImageProcessorOptions] = None,
                 enable_caching: bool = True):
        """
        Initialize image processor.

        Args:
            engine: Parent PDFEngine instance
            options: ImageProcessorOptions or None for defaults
            enable_caching: Keep rendered bytes per handle
        """
        self.engine = engine
        self.options = options or ImageProcessorOptions()
        self.enable_caching = enable_caching

        self._records: List[ImageRecord] = []
        self._color_types: Dict[int, PngColorType] = {}
        self._image_cache: Dict[int, bytes] = {}
        self._initialized = False

    def initialize(self) -> None:
        """Scan the document and pair soft masks"""
        if self._initialized:
            logger.warning("ImageProcessor already initialized")
            return

        table = ObjectTable(self.engine.pikepdf_document)
        self._records = scan_image_objects(table)
        pair_soft_masks(self._records)
        self._initialized = True

        alpha_layers = sum(1 for record in self._records if record.is_alpha_layer)
        logger.debug(f"ImageProcessor ready: {len(self._records)} records, {alpha_layers} alpha layer(s)")

    def cleanup(self) -> None:
        """Drop the arena and cached output"""
        self._records = []
        self._color_types.clear()
        self._image_cache.clear()
        self._initialized = False

    @property
    def records(self) -> List[ImageRecord]:
        return self._records

    def output_handles(self) -> List[int]:
        """Handles of records that are emitted, in discovery order."""
        return [handle for handle, record in enumerate(self._records) if not record.is_alpha_layer]

    def alpha_record(self, handle: int) -> Optional[ImageRecord]:
        alpha_handle = self._records[handle].alpha_layer
        return self._records[alpha_handle] if alpha_handle is not None else None

    def color_type(self, handle: int) -> Optional[PngColorType]:
        """Color type chosen when the handle was rendered, None for JPEG or not yet rendered"""
        return self._color_types.get(handle)

    def render(self, handle: int) -> bytes:
        """
        Produce the output bytes for one record.

        JPEG records return their raw stream bytes unchanged; everything else
        is reassembled and encoded as PNG.

        Raises:
            ImageDecodeError: If the image or its soft mask cannot be decoded
        """
        if not self._initialized:
            raise RuntimeError("ImageProcessor not initialized")

        if handle in self._image_cache:
            return self._image_cache[handle]

        record = self._records[handle]
        if record.kind is ImageKind.JPEG:
            data = record.raw_data
        else:
            image = reassemble(record, self.alpha_record(handle), pad=self.options.pad_short_streams)
            data = encode_png(image, optimize=self.options.optimize_png)
            self._color_types[handle] = image.color_type

        if self.enable_caching:
            self._image_cache[handle] = data
        return data

    def clear_cache(self) -> None:
        """Clear the image cache"""
        self._image_cache.clear()

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics"""
        return {
            'cached_images': len(self._image_cache),
            'cache_size_bytes': sum(len(data) for data in self._image_cache.values())
        }
