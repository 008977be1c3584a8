"""
Upload handling for the PDF endpoints.

handle_pdf_processing turns an uploaded PDF into a temporary file for the
wrapped endpoint and translates extraction errors into HTTP responses.
"""

import asyncio
import logging
import os
import tempfile
from contextlib import contextmanager
from functools import wraps
from typing import Callable, Iterator

from fastapi import HTTPException, Request, UploadFile

from extractors.image_extractor import ImageExtractionError
from processors.pixel_reassembly import ImageDecodeError
from utils.validation import DEFAULT_MAX_FILE_SIZE_MB, PdfValidationError, validate_pdf_bytes

logger = logging.getLogger(__name__)

DEFAULT_PROCESSING_TIMEOUT_SECONDS = 300

# (error type, status code, detail prefix)
ERROR_STATUS = (
    (PdfValidationError, 400, "PDF validation failed"),
    (ImageDecodeError, 422, "Image extraction failed"),
    (ImageExtractionError, 422, "Image extraction failed"),
)


async def _read_upload(file: UploadFile) -> bytes:
    """Read an upload, rejecting anything that is not a PDF within the size limit."""
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")

    try:
        content = await file.read()
    except OSError as e:
        logger.error(f"Error reading uploaded file: {e}")
        raise HTTPException(status_code=400, detail=f"Error reading uploaded file: {e}") from e

    try:
        validate_pdf_bytes(content, DEFAULT_MAX_FILE_SIZE_MB)
    except PdfValidationError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    return content


@contextmanager
def _temporary_pdf(content: bytes) -> Iterator[str]:
    """Write content to a temporary .pdf file that is removed on exit."""
    handle, path = tempfile.mkstemp(suffix='.pdf')
    try:
        with os.fdopen(handle, 'wb') as f:
            f.write(content)
        yield path
    finally:
        try:
            os.unlink(path)
        except OSError as e:
            logger.warning(f"Failed to clean up temporary file {path}: {e}")


def _to_http_error(error: Exception, filename: str) -> HTTPException:
    for error_type, status_code, prefix in ERROR_STATUS:
        if isinstance(error, error_type):
            logger.warning(f"{prefix} for {filename}: {error}")
            return HTTPException(status_code=status_code, detail=f"{prefix}: {error}")

    logger.exception(f"Unexpected error processing {filename}: {error}")
    return HTTPException(status_code=500, detail=f"Internal server error during PDF processing: {error}")


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Wrap a PDF upload endpoint.

    The endpoint must take `request: Request` and `file: UploadFile` as
    keyword arguments, and may take `processing_timeout`. Before it runs,
    the upload is validated and stored in `request.state.temp_file_path`
    (a temporary file) and `request.state.file_content` (the raw bytes).
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        file: UploadFile = kwargs.get('file')
        if request is None or file is None:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request' and 'file'"
            )

        timeout_seconds = kwargs.get('processing_timeout') or DEFAULT_PROCESSING_TIMEOUT_SECONDS
        content = await _read_upload(file)

        with _temporary_pdf(content) as path:
            request.state.temp_file_path = path
            request.state.file_content = content
            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=timeout_seconds)
            except asyncio.TimeoutError:
                logger.error(f"Processing timed out after {timeout_seconds}s for {file.filename}")
                raise HTTPException(
                    status_code=408,
                    detail=f"PDF processing timed out after {timeout_seconds} seconds."
                )
            except HTTPException:
                raise
            except Exception as e:
                raise _to_http_error(e, file.filename) from e

    return wrapper
