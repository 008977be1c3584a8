"""
Data models for PDF image extraction.

Internal pipeline records are plain dataclasses (mutated in place during
soft-mask pairing); API-facing models are Pydantic.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel


class ObjectRef(NamedTuple):
    """Indirect object reference (object number, generation)"""
    objnum: int
    gen: int

    def __str__(self) -> str:
        return f"{self.objnum} {self.gen} R"


class ImageKind(str, Enum):
    """Output kind of an image stream, derived from its compression filter"""
    JPEG = "jpg"
    PNG = "png"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return "image/jpeg" if self is ImageKind.JPEG else "image/png"


class PngColorType(IntEnum):
    """PNG color types (IHDR values) produced by pixel reassembly"""
    GRAYSCALE = 0
    RGB = 2
    GRAYSCALE_ALPHA = 4
    RGB_ALPHA = 6

    @property
    def has_alpha(self) -> bool:
        return self in (PngColorType.GRAYSCALE_ALPHA, PngColorType.RGB_ALPHA)


@dataclass
class ImageRecord:
    """
    One image stream discovered in the object table.

    Records live in an arena (a list owned by the image processor) and refer
    to each other by integer handle, never by object identity.
    """
    reference: ObjectRef
    kind: ImageKind
    name: str
    width: int
    height: int
    bits_per_component: int
    raw_data: bytes
    color_space: Optional[str] = None  # Name, or the family name of an array color space
    smask_reference: Optional[ObjectRef] = None
    is_alpha_layer: bool = False
    alpha_layer: Optional[int] = None  # Arena handle of the paired soft mask

    @property
    def label(self) -> str:
        """Human readable identifier for log and error messages"""
        return f"'{self.name}' ({self.reference})"


@dataclass
class ReassembledImage:
    """Interleaved pixel buffer ready for the PNG encoder"""
    pixels: bytes
    width: int
    height: int
    color_type: PngColorType


@dataclass
class ExtractedImage:
    """A single emitted output file"""
    handle: int
    index: int  # 1-based position among the non-mask images, shared with failures
    name: str
    reference: ObjectRef
    kind: ImageKind
    width: int
    height: int
    data: bytes
    color_type: Optional[PngColorType] = None  # None for JPEG pass-through
    path: Optional[str] = None  # Set in directory mode


@dataclass
class ExtractionFailure:
    """An image that could not be reassembled"""
    index: int
    name: str
    reference: ObjectRef
    error: str


# --- API models ---

class PdfImageInfo(BaseModel):
    """Extracted image metadata with optional base64 data"""
    index: int  # 1-based position, the index accepted by /extract-image
    name: str
    reference: str
    kind: ImageKind
    mimeType: str
    width: int
    height: int
    colorType: Optional[str] = None
    hasAlpha: bool = False
    size: int  # Output size in bytes
    data: Optional[str] = None  # data URI, only when requested


class PdfImageFailure(BaseModel):
    """Image that failed to decode"""
    index: int
    name: str
    reference: str
    error: str


class ExtractImagesResponse(BaseModel):
    """Response of the image extraction endpoint"""
    images: List[PdfImageInfo]
    failures: List[PdfImageFailure] = []
