"""
PDF Image Extraction Module

Public API for extracting embedded raster images. Runs the scan, pair and
reassemble pipeline over one document and either returns the encoded images
or writes them to a directory as out1.png, out2.jpg, ...
"""

import io
import logging
from pathlib import Path
from typing import Iterator, List, Optional

from PIL import Image, UnidentifiedImageError

from engine import EngineConfig, ExtractorOptions, ImageProcessor, PDFEngine, PdfSource
from models.pdf_types import ExtractedImage, ExtractionFailure, ImageKind
from processors.pixel_reassembly import ImageDecodeError
from utils.validation import PdfValidationError

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "out"
CLEANUP_PATTERNS = ("*.jpg", "*.png")


class ImageExtractionError(Exception):
    """Raised when a run aborts: strict-mode decode failure or unusable output directory"""
    pass


class PdfImageExtractor:
    """
    Extract every non-mask image of a PDF document.

    Example:
        >>> extractor = PdfImageExtractor("document.pdf", ExtractorOptions(output_directory="images"))
        >>> extractor.extract_images()
        >>> images = PdfImageExtractor(pdf_bytes, ExtractorOptions(in_memory=True)).extract_images()
    """

    def __init__(self, source: PdfSource, options: Optional[ExtractorOptions] = None,
                 config: Optional[EngineConfig] = None):
        """
        Args:
            source: Path, PDF bytes, or open pikepdf.Pdf
            options: Output options (defaults to in-memory)
            config: Engine configuration

        Raises:
            PdfValidationError: If the options select no or both output modes
        """
        self.source = source
        self.options = options or ExtractorOptions(in_memory=True)
        self.config = config or EngineConfig.default()

        if not self.options.validate():
            raise PdfValidationError("Invalid extractor options")

        self.images: List[ExtractedImage] = []
        self.failures: List[ExtractionFailure] = []

    def iter_images(self, engine: PDFEngine) -> Iterator[ExtractedImage]:
        """
        Render the non-mask images of an open engine in discovery order.

        An image that fails to decode is logged and recorded in
        self.failures; the remaining images are still produced unless
        strict mode is on. Images and failures carry the same 1-based
        index that get_image() accepts.

        Raises:
            ImageExtractionError: On the first failure in strict mode
        """
        processor = engine.image_processor

        for index, handle in enumerate(processor.output_handles(), start=1):
            record = processor.records[handle]
            try:
                image = _render_image(processor, index, handle)
            except ImageDecodeError as e:
                logger.error(f"Failed to extract image {record.label}: {e}")
                self.failures.append(
                    ExtractionFailure(index=index, name=record.name, reference=record.reference, error=str(e))
                )
                if self.options.strict:
                    raise ImageExtractionError(f"Failed to extract image {record.label}: {e}") from e
                continue

            yield image

    def extract_images(self) -> Optional[List[bytes]]:
        """
        Run the extraction.

        Returns:
            List of encoded images in in-memory mode, None in directory mode

        Raises:
            PdfValidationError: If the document cannot be loaded
            ImageExtractionError: If strict mode aborts or the directory is unusable
        """
        self.images = []
        self.failures = []

        with PDFEngine(self.source, config=self.config) as engine:
            if self.options.in_memory:
                self.images = list(self.iter_images(engine))
                result = [image.data for image in self.images]
            else:
                self._write_directory(engine)
                result = None

        logger.info(
            f"Extracted {len(self.images)} image(s)"
            + (f", {len(self.failures)} failed" if self.failures else "")
        )
        return result

    def _prepare_directory(self) -> Path:
        """Create the output directory and remove images left by an earlier run."""
        directory = Path(self.options.output_directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            removed = 0
            for pattern in CLEANUP_PATTERNS:
                for stale in directory.glob(pattern):
                    if stale.is_file():
                        stale.unlink()
                        removed += 1
        except OSError as e:
            raise ImageExtractionError(f"Cannot prepare output directory {directory}: {e}") from e

        if removed:
            logger.debug(f"Removed {removed} previous image file(s) from {directory}")
        return directory

    def output_filename(self, index: int, kind: ImageKind) -> str:
        """File name for the index-th (1-based) written image."""
        extension = ImageKind.PNG.extension if self.options.legacy_png_extension else kind.extension
        return f"{OUTPUT_PREFIX}{index}.{extension}"

    def _write_directory(self, engine: PDFEngine) -> None:
        directory = self._prepare_directory()

        index = 0
        for image in self.iter_images(engine):
            index += 1
            path = directory / self.output_filename(index, image.kind)
            try:
                path.write_bytes(image.data)
            except OSError as e:
                raise ImageExtractionError(f"Cannot write {path}: {e}") from e

            image.path = str(path)
            self.images.append(image)
            logger.debug(f"Wrote {path.name} from image {image.name} ({len(image.data)} bytes)")


# --- Module-level Utility Functions ---

def detect_image_mime_type(img_bytes: bytes) -> str:
    """Detect MIME type from image bytes."""
    if not img_bytes or len(img_bytes) < 8:
        return "image/unknown"

    if img_bytes[:8] == b'\x89PNG\r\n\x1a\n':
        return "image/png"
    elif img_bytes[:3] == b'\xff\xd8\xff':
        return "image/jpeg"

    # Fallback to PIL
    try:
        img = Image.open(io.BytesIO(img_bytes))
    except (UnidentifiedImageError, OSError):
        return "image/unknown"
    format_name = img.format.lower() if img.format else 'unknown'
    return f"image/{format_name}"


# --- Public API Functions ---

def extract_images(source: PdfSource, output_directory: Optional[str] = None, in_memory: bool = False,
                   legacy_png_extension: bool = False, strict: bool = False,
                   config: Optional[EngineConfig] = None) -> Optional[List[bytes]]:
    """Extract all images from a PDF, returning them (in_memory) or writing them to output_directory."""
    options = ExtractorOptions(
        output_directory=output_directory,
        in_memory=in_memory,
        legacy_png_extension=legacy_png_extension,
        strict=strict,
    )
    return PdfImageExtractor(source, options, config).extract_images()


def _render_image(processor: ImageProcessor, index: int, handle: int) -> ExtractedImage:
    record = processor.records[handle]
    data = processor.render(handle)
    return ExtractedImage(
        handle=handle,
        index=index,
        name=record.name,
        reference=record.reference,
        kind=record.kind,
        width=record.width,
        height=record.height,
        data=data,
        color_type=processor.color_type(handle),
    )


def get_image(source: PdfSource, index: int, config: Optional[EngineConfig] = None) -> Optional[ExtractedImage]:
    """
    Extract the image at a 1-based index among the non-mask images.

    The index is the one reported by PdfImageExtractor for both images and
    failures, so images that fail to decode still occupy their position.
    Only that image is rendered.

    Returns:
        ExtractedImage, or None if the index is out of range

    Raises:
        ImageDecodeError: If the image cannot be decoded
    """
    with PDFEngine(source, config=config) as engine:
        processor = engine.image_processor
        handles = processor.output_handles()
        if index < 1 or index > len(handles):
            logger.warning(f"Image {index} not found (document has {len(handles)} images)")
            return None

        return _render_image(processor, index, handles[index - 1])
