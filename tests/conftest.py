import io
import zlib

import pikepdf
import pytest
from PIL import Image
from pikepdf import Name


@pytest.fixture
def pdf():
    """Empty in-memory document"""
    document = pikepdf.new()
    yield document
    document.close()


@pytest.fixture
def jpeg_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (4, 2), (200, 10, 10)).save(buffer, format='JPEG')
    return buffer.getvalue()


@pytest.fixture
def make_image(pdf):
    """Factory adding an image XObject stream to the document"""
    def _make_image(pixels=b'', width=1, height=1, color_space='/DeviceRGB', bits_per_component=8,
                    filter_name='/FlateDecode', compress=True, smask=None, name=None, raw=None):
        payload = raw if raw is not None else (zlib.compress(pixels) if compress else pixels)
        stream = pikepdf.Stream(pdf, payload)
        stream.Type = Name.XObject
        stream.Subtype = Name.Image
        stream.Width = width
        stream.Height = height
        if bits_per_component is not None:
            stream.BitsPerComponent = bits_per_component
        if color_space is not None:
            stream.ColorSpace = Name(color_space)
        if filter_name is not None:
            stream.Filter = Name(filter_name)
        if smask is not None:
            stream.SMask = smask
        if name is not None:
            stream.Name = Name(name)
        return stream
    return _make_image


@pytest.fixture
def make_jpeg(make_image, jpeg_bytes):
    def _make_jpeg(**kwargs):
        return make_image(raw=jpeg_bytes, width=4, height=2, filter_name='/DCTDecode', **kwargs)
    return _make_jpeg


@pytest.fixture
def masked_document(pdf, make_image, make_jpeg):
    """
    Three image streams: an RGB image, its grayscale soft mask, and a JPEG.

    Returns (pdf, owner, mask, jpeg).
    """
    owner = make_image(bytes([255, 0, 0, 0, 255, 0]), width=2, height=1)
    mask = make_image(bytes([0x80, 0x40]), width=2, height=1, color_space='/DeviceGray')
    owner.SMask = mask
    jpeg = make_jpeg()
    return pdf, owner, mask, jpeg


def _place_on_page(document, images):
    """Reference images from a page so they survive saving"""
    page = document.add_blank_page(page_size=(100, 100))
    xobjects = pikepdf.Dictionary({f'/Im{i}': image for i, image in enumerate(images, start=1)})
    page.obj.Resources = pikepdf.Dictionary(XObject=xobjects)
    return page


@pytest.fixture
def save_document(pdf):
    """Factory saving the document as PDF bytes with the given images on a page

    Streams are written as stored so deliberately corrupt data survives.
    """
    def _save_document(images):
        _place_on_page(pdf, images)
        buffer = io.BytesIO()
        pdf.save(buffer, stream_decode_level=pikepdf.StreamDecodeLevel.none)
        return buffer.getvalue()
    return _save_document


@pytest.fixture
def masked_pdf_bytes(masked_document, save_document):
    """The masked document saved as a PDF file"""
    _pdf, owner, _mask, jpeg = masked_document
    return save_document([owner, jpeg])


@pytest.fixture
def decode_png():
    def _decode_png(data):
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    return _decode_png
