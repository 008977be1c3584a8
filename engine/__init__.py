"""
PDF Processing Engine

Core engine module for opening documents and coordinating image extraction.
"""

__version__ = "1.0.0"

from engine.pdf_engine import PDFEngine, PdfSource
from engine.config import EngineConfig, ExtractorOptions, ImageProcessorOptions
from engine.image_processor import ImageProcessor

__all__ = [
    'PDFEngine',
    'PdfSource',
    'EngineConfig',
    'ExtractorOptions',
    'ImageProcessorOptions',
    'ImageProcessor',
]
