"""PDF Image Extractor Python Server"""

import asyncio
import base64
import hashlib
import logging
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, UploadFile, File, HTTPException, Query, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from engine import ExtractorOptions
from extractors.image_extractor import PdfImageExtractor, detect_image_mime_type, get_image
from models.pdf_types import (
    ExtractedImage,
    ExtractImagesResponse,
    PdfImageFailure,
    PdfImageInfo,
)
from utils.endpoint_decorators import handle_pdf_processing
from utils.log_config import configure_logging

API_VERSION = "1.0.0"
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
DEFAULT_CACHE_MAX_AGE = 3600
DEFAULT_TIMEOUT_SECONDS = 300
MIN_TIMEOUT_SECONDS = 30
MAX_TIMEOUT_SECONDS = 600

logger = logging.getLogger("main")

app = FastAPI(
    title="PDF Image Extractor API",
    description="Extract embedded raster images from PDF files",
    version=API_VERSION
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _to_image_info(image: ExtractedImage, include_data: bool) -> PdfImageInfo:
    mime_type = image.kind.mime_type
    data_uri = None
    if include_data:
        data_uri = f"data:{mime_type};base64,{base64.b64encode(image.data).decode('utf-8')}"

    return PdfImageInfo(
        index=image.index,
        name=image.name,
        reference=str(image.reference),
        kind=image.kind,
        mimeType=mime_type,
        width=image.width,
        height=image.height,
        colorType=image.color_type.name if image.color_type is not None else None,
        hasAlpha=image.color_type.has_alpha if image.color_type is not None else False,
        size=len(image.data),
        data=data_uri
    )


def _extract_all(file_path: str, include_data: bool) -> ExtractImagesResponse:
    extractor = PdfImageExtractor(file_path, ExtractorOptions(in_memory=True))
    extractor.extract_images()

    return ExtractImagesResponse(
        images=[_to_image_info(image, include_data) for image in extractor.images],
        failures=[
            PdfImageFailure(index=failure.index, name=failure.name, reference=str(failure.reference), error=failure.error)
            for failure in extractor.failures
        ]
    )


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "message": "PDF Image Extractor API",
        "version": API_VERSION,
        "features": [
            "Image XObject discovery",
            "Soft mask (alpha channel) merging",
            "JPEG pass-through",
            "PNG reassembly for Flate-compressed images"
        ]
    }


@app.get("/health")
async def health_check():
    """Health check with dependency verification"""
    try:
        import PIL
        import pikepdf
        import numpy

        return {
            "status": "healthy",
            "version": API_VERSION,
            "dependencies": {
                "PIL": PIL.__version__,
                "pikepdf": pikepdf.__version__,
                "numpy": numpy.__version__
            }
        }
    except ImportError as e:
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": f"Missing dependency: {str(e)}"
            }
        )


@app.post("/extract-pdf-images", response_model=ExtractImagesResponse)
@handle_pdf_processing
async def extract_pdf_images(
    *,
    request: Request,
    file: UploadFile = File(...),
    include_image_data: Optional[bool] = Form(False, description="Include base64-encoded image data in response"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Extract every embedded image from a PDF.

    **Configuration:**
    - `include_image_data=false` (default): Returns metadata only
    - `include_image_data=true`: Includes base64-encoded image data

    **Returns:**
    - `images`: one entry per extracted image, in document order. Soft masks
      are merged into their owner and never listed on their own.
    - `failures`: images that could not be decoded

    **Note:** Use [/extract-image](#/default/extract_image_extract_image_post) to fetch one image as binary.
    """
    temp_file_path = request.state.temp_file_path

    logger.info(f"Extracting images from PDF (include_data={include_image_data})")

    response = await asyncio.to_thread(_extract_all, temp_file_path, bool(include_image_data))

    logger.info(f"Successfully extracted {len(response.images)} image(s), {len(response.failures)} failed")
    return response


@app.post("/extract-image")
@handle_pdf_processing
async def extract_image(
    *,
    request: Request,
    file: UploadFile = File(...),
    index: int = Query(..., ge=1, description="1-based image index as listed by /extract-pdf-images"),
    processing_timeout: Optional[int] = Query(DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS, le=MAX_TIMEOUT_SECONDS, description="Processing timeout in seconds")
):
    """
    Extract a single image from a PDF.

    **Returns:**
    - Binary image data with appropriate Content-Type
    - Response headers: `ETag`, `Cache-Control` (1 hour)
    """
    temp_file_path = request.state.temp_file_path
    file_content = request.state.file_content

    content_hash = hashlib.md5(file_content).hexdigest()[:16]
    etag = f'"{content_hash}-i{index}"'

    logger.info(f"Extracting image {index}")

    image = await asyncio.to_thread(get_image, temp_file_path, index)

    if image is None:
        raise HTTPException(status_code=404, detail=f"Image {index} not found")

    mime_type = detect_image_mime_type(image.data)

    logger.info(f"Successfully extracted image {index} '{image.name}' ({len(image.data)} bytes, {mime_type})")

    return Response(
        content=image.data,
        media_type=mime_type,
        headers={
            "ETag": etag,
            "Cache-Control": f"public, max-age={DEFAULT_CACHE_MAX_AGE}",
            "Content-Length": str(len(image.data))
        }
    )


def _find_free_port(start_port: int = 8000) -> int:
    """Find an available port starting from the given port"""
    import socket

    port = start_port
    max_port = start_port + 100

    while port < max_port:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('localhost', port))
                return port
        except OSError:
            port += 1

    return start_port


if __name__ == "__main__":
    server_console = configure_logging()
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)

    free_port = _find_free_port()
    server_console.print(f"[bold green]Starting server on http://localhost:{free_port}[/bold green]")

    try:
        uvicorn.run("main:app", host="0.0.0.0", port=free_port, reload=True, log_config=None)
    except KeyboardInterrupt:
        server_console.print("\n[bold yellow]Server stopped.[/bold yellow]")
