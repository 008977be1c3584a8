"""
PDF Processing Engine - Core Coordinator

The PDFEngine opens a document with pikepdf, validates it, and owns the
image processor that works on its object table.

Usage:
    >>> from engine.pdf_engine import PDFEngine
    >>> from engine.config import EngineConfig
    >>>
    >>> with PDFEngine('document.pdf') as engine:
    ...     handles = engine.image_processor.output_handles()
    ...     print(f"Document has {len(handles)} images")
"""

import io
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pikepdf

from engine.config import EngineConfig
from engine.image_processor import ImageProcessor
from utils.validation import (
    PdfValidationError,
    environment_warnings,
    validate_pdf_bytes,
    validate_pdf_path,
)

logger = logging.getLogger(__name__)

PdfSource = Union[str, Path, bytes, pikepdf.Pdf]


class PDFEngine:
    """
    PDF engine with resource management and processor coordination.

    Accepts a file path, raw PDF bytes, or an already open pikepdf.Pdf. An
    open Pdf is borrowed: it is neither validated nor closed by the engine.

    Example:
        >>> with PDFEngine(pdf_bytes) as engine:
        ...     records = engine.image_processor.records
    """

    def __init__(self, source: PdfSource, config: Optional[EngineConfig] = None):
        """
        Initialize PDF engine with a source and optional configuration.

        Note: Document is not opened until entering context manager (__enter__).

        Args:
            source: Path, bytes, or open pikepdf.Pdf
            config: Engine configuration (uses defaults if None)

        Raises:
            FileNotFoundError: If a path source does not exist
            PdfValidationError: If configuration is invalid
        """
        self.source = source
        self.config = config or EngineConfig.default()

        if isinstance(source, (str, Path)) and not os.path.exists(source):
            raise FileNotFoundError(f"PDF file not found: {source}")

        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        self._pikepdf_doc: Optional[pikepdf.Pdf] = None
        self._owns_document = not isinstance(source, pikepdf.Pdf)
        self._is_open = False
        self._image_processor: Optional[ImageProcessor] = None

        logger.debug(f"PDFEngine initialized for: {self.source_label}")

    @property
    def source_label(self) -> str:
        """Short description of the source for log messages."""
        if isinstance(self.source, (str, Path)):
            return Path(self.source).name
        if isinstance(self.source, bytes):
            return f"<{len(self.source)} bytes>"
        return "<open document>"

    def __enter__(self) -> 'PDFEngine':
        """
        Enter context manager - open PDF and initialize resources.

        Returns:
            Self for use in with-statement

        Raises:
            PdfValidationError: If PDF cannot be opened or is invalid
        """
        try:
            logger.info(f"Opening PDF: {self.source_label}")

            if self.config.validate_on_open and self._owns_document:
                self._validate_source()

            self._pikepdf_doc = self._open_document()
            self._is_open = True

            self._initialize_processors()

            logger.info(f"PDF opened successfully: {len(self._pikepdf_doc.objects)} objects")
            return self

        except PdfValidationError:
            self._cleanup_resources()
            raise
        except (pikepdf.PdfError, OSError, ValueError) as e:
            logger.error(f"Failed to open PDF: {e}")
            self._cleanup_resources()
            raise PdfValidationError(f"Failed to open PDF: {str(e)}") from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit context manager - clean up all resources.

        Resources are cleaned up even if an exception occurred.
        """
        logger.debug("Closing PDF engine")
        self._cleanup_resources()

        if exc_type is not None:
            logger.error(f"Exception during engine operation: {exc_val}")

        # Don't suppress exceptions
        return False

    def _validate_source(self) -> None:
        """
        Validate the document before opening it.

        Raises:
            PdfValidationError: If validation fails
        """
        if isinstance(self.source, bytes):
            validate_pdf_bytes(self.source, self.config.max_file_size_mb)
        else:
            validate_pdf_path(self.source, self.config.max_file_size_mb)

        for warning in environment_warnings():
            logger.warning(warning)

    def _open_document(self) -> pikepdf.Pdf:
        if isinstance(self.source, pikepdf.Pdf):
            return self.source
        if isinstance(self.source, bytes):
            return pikepdf.open(io.BytesIO(self.source))
        return pikepdf.open(self.source)

    def _initialize_processors(self) -> None:
        """Create and initialize the image processor."""
        self._image_processor = ImageProcessor(self, self.config.image_options(), enable_caching=self.config.enable_caching)
        self._image_processor.initialize()

    def _cleanup_resources(self) -> None:
        """
        Clean up processors and close the document if the engine opened it.

        This method is idempotent and safe to call multiple times.
        """
        if self._image_processor is not None:
            try:
                self._image_processor.cleanup()
            finally:
                self._image_processor = None

        if self._pikepdf_doc is not None and self._owns_document:
            try:
                self._pikepdf_doc.close()
            except pikepdf.PdfError as e:
                logger.warning(f"Error closing pikepdf document: {e}")
        self._pikepdf_doc = None

        self._is_open = False

    # Public API - Resource Access (for processors)

    @property
    def pikepdf_document(self) -> pikepdf.Pdf:
        """
        Access pikepdf document (for processors).

        Raises:
            RuntimeError: If engine not opened
        """
        if self._pikepdf_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")

        return self._pikepdf_doc

    @property
    def image_processor(self) -> ImageProcessor:
        """Access ImageProcessor instance."""
        if self._image_processor is None:
            raise RuntimeError("ImageProcessor not yet initialized")
        return self._image_processor

    # Status and Debugging

    @property
    def is_open(self) -> bool:
        """Check if engine is currently open."""
        return self._is_open

    def get_status(self) -> Dict[str, Any]:
        """
        Get engine status information.

        Returns:
            Dictionary with status information
        """
        processor = self._image_processor
        return {
            'is_open': self._is_open,
            'source': self.source_label,
            'image_records': len(processor.records) if processor else 0,
            'cache': processor.get_cache_stats() if processor else None,
            'config': self.config.to_dict()
        }

    def __repr__(self) -> str:
        """String representation for debugging."""
        status = "open" if self._is_open else "closed"
        return f"PDFEngine({self.source_label}, {status})"
