"""
Pre-open checks for PDF sources.

A source is accepted when it starts with the %PDF signature and fits the
size limit. Low memory or temp disk space is reported as a warning and
never rejects a document.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

import psutil

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b'%PDF'
DEFAULT_MAX_FILE_SIZE_MB = 50
MIN_FREE_MEMORY_MB = 100
MIN_FREE_DISK_MB = 100

_MB = 1024 * 1024


class PdfValidationError(Exception):
    """Raised when a document or configuration is rejected before extraction"""
    pass


def _check_size(size_bytes: int, max_size_mb: Optional[int]) -> None:
    limit = max_size_mb if max_size_mb is not None else DEFAULT_MAX_FILE_SIZE_MB
    if size_bytes > limit * _MB:
        raise PdfValidationError(f"File too large: {size_bytes / _MB:.1f}MB (max: {limit}MB)")


def _check_signature(header: bytes) -> None:
    if len(header) < len(PDF_SIGNATURE):
        raise PdfValidationError("File too small to be a valid PDF")
    if not header.startswith(PDF_SIGNATURE):
        raise PdfValidationError(f"Invalid PDF signature. Expected {PDF_SIGNATURE!r}, got {header[:4]!r}")


def validate_pdf_bytes(content: bytes, max_size_mb: Optional[int] = None) -> None:
    """
    Check an in-memory document (uploads and byte sources).

    Raises:
        PdfValidationError: If the content is too large or not a PDF
    """
    _check_size(len(content), max_size_mb)
    _check_signature(content[:len(PDF_SIGNATURE)])


def validate_pdf_path(path: Union[str, Path], max_size_mb: Optional[int] = None) -> None:
    """
    Check a document on disk without loading it.

    Raises:
        PdfValidationError: If the file is unreadable, too large or not a PDF
    """
    try:
        _check_size(os.path.getsize(path), max_size_mb)
        with open(path, 'rb') as f:
            header = f.read(len(PDF_SIGNATURE))
    except OSError as e:
        raise PdfValidationError(f"Cannot read {path}: {e}") from e

    _check_signature(header)
    logger.debug(f"Validated {Path(path).name}")


def environment_warnings() -> List[str]:
    """Describe memory or temp disk shortages; empty when resources are fine."""
    warnings = []
    try:
        available_mb = psutil.virtual_memory().available / _MB
        if available_mb < MIN_FREE_MEMORY_MB:
            warnings.append(f"Low memory: {available_mb:.1f}MB available")

        temp_dir = tempfile.gettempdir()
        free_mb = psutil.disk_usage(temp_dir).free / _MB
        if free_mb < MIN_FREE_DISK_MB:
            warnings.append(f"Low disk space in {temp_dir}: {free_mb:.1f}MB free")
    except (OSError, RuntimeError) as e:
        warnings.append(f"Could not check system resources: {e}")

    return warnings
