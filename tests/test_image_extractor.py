import pikepdf
import pytest

from engine import EngineConfig, ExtractorOptions
from extractors.image_extractor import (
    ImageExtractionError,
    PdfImageExtractor,
    detect_image_mime_type,
    extract_images,
    get_image,
)
from models.pdf_types import ImageKind, ObjectRef, PngColorType
from utils.validation import PdfValidationError

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


def test_masked_document_in_memory(masked_document, jpeg_bytes, decode_png):
    pdf, _owner, _mask, _jpeg = masked_document

    images = extract_images(pdf, in_memory=True)

    assert len(images) == 2
    assert images[0].startswith(PNG_SIGNATURE)
    decoded = decode_png(images[0])
    assert decoded.mode == 'RGBA'
    assert list(decoded.getdata()) == [(255, 0, 0, 0x80), (0, 255, 0, 0x40)]
    assert images[1] == jpeg_bytes


def test_masked_document_to_directory(masked_document, jpeg_bytes, decode_png, tmp_path):
    pdf, _owner, _mask, _jpeg = masked_document
    output = tmp_path / 'images'

    result = extract_images(pdf, output_directory=str(output))

    assert result is None
    assert sorted(path.name for path in output.iterdir()) == ['out1.png', 'out2.jpg']
    assert decode_png((output / 'out1.png').read_bytes()).mode == 'RGBA'
    assert (output / 'out2.jpg').read_bytes() == jpeg_bytes


def test_legacy_extension_names_everything_png(masked_document, jpeg_bytes, tmp_path):
    pdf, _owner, _mask, _jpeg = masked_document

    extract_images(pdf, output_directory=str(tmp_path), legacy_png_extension=True)

    assert sorted(path.name for path in tmp_path.iterdir()) == ['out1.png', 'out2.png']
    assert (tmp_path / 'out2.png').read_bytes() == jpeg_bytes


def test_directory_is_cleaned_before_writing(pdf, make_image, tmp_path):
    make_image(b'\x00\x00\x00')
    (tmp_path / 'old.png').write_bytes(b'stale')
    (tmp_path / 'old.jpg').write_bytes(b'stale')
    (tmp_path / 'notes.txt').write_text('keep me')

    extract_images(pdf, output_directory=str(tmp_path))

    assert sorted(path.name for path in tmp_path.iterdir()) == ['notes.txt', 'out1.png']


def test_nested_output_directory_is_created(pdf, make_image, tmp_path):
    make_image(b'\x00\x00\x00')
    output = tmp_path / 'a' / 'b'

    extract_images(pdf, output_directory=str(output))

    assert (output / 'out1.png').is_file()


def test_output_order_follows_discovery(pdf, make_image, decode_png):
    for shade in (0x00, 0x80, 0xFF):
        make_image(bytes([shade]), color_space='/DeviceGray')

    images = extract_images(pdf, in_memory=True)

    assert [decode_png(data).getpixel((0, 0)) for data in images] == [0x00, 0xFF, 0xFF]


def test_no_images_gives_empty_result(pdf, tmp_path):
    assert extract_images(pdf, in_memory=True) == []

    extract_images(pdf, output_directory=str(tmp_path))
    assert list(tmp_path.iterdir()) == []


def test_dangling_soft_mask_yields_opaque_image(pdf, make_image, decode_png):
    owner = make_image(bytes([1, 2, 3]))
    owner.SMask = pdf.make_indirect(pikepdf.Dictionary(Type=pikepdf.Name.Placeholder))

    images = extract_images(pdf, in_memory=True)

    assert len(images) == 1
    assert decode_png(images[0]).mode == 'RGB'


def test_jpeg_owner_mask_is_emitted_on_its_own(pdf, make_image, make_jpeg, jpeg_bytes, decode_png):
    mask = make_image(bytes([0xFF] * 8), width=4, height=2, color_space='/DeviceGray')
    make_jpeg(smask=mask)

    images = extract_images(pdf, in_memory=True)

    assert len(images) == 2
    assert decode_png(images[0]).mode == 'L'
    assert images[1] == jpeg_bytes


def test_failed_image_is_recorded_and_skipped(pdf, make_image):
    broken = make_image(raw=b'\xff' * 16, name='/Broken')
    make_image(b'\x01\x02\x03')

    extractor = PdfImageExtractor(pdf, ExtractorOptions(in_memory=True))
    images = extractor.extract_images()

    assert len(images) == 1
    failure, = extractor.failures
    assert failure.name == 'Broken'
    assert failure.reference == ObjectRef(*broken.objgen)


def test_failed_image_does_not_consume_a_file_number(pdf, make_image, tmp_path):
    make_image(raw=b'\xff' * 16)
    make_image(b'\x01\x02\x03')

    extract_images(pdf, output_directory=str(tmp_path))

    assert [path.name for path in tmp_path.iterdir()] == ['out1.png']


def test_strict_mode_aborts_on_failure(pdf, make_image):
    make_image(raw=b'\xff' * 16)
    make_image(b'\x01\x02\x03')

    with pytest.raises(ImageExtractionError):
        extract_images(pdf, in_memory=True, strict=True)


def test_short_stream_is_rejected_without_padding(pdf, make_image):
    make_image(b'\x01', width=2, height=2)
    config = EngineConfig(image_processor_options={'pad_short_streams': False})

    extractor = PdfImageExtractor(pdf, ExtractorOptions(in_memory=True), config)

    assert extractor.extract_images() == []
    assert len(extractor.failures) == 1


@pytest.mark.parametrize("options", [
    ExtractorOptions(),
    ExtractorOptions(output_directory='images', in_memory=True),
])
def test_output_mode_must_be_exactly_one(pdf, options):
    with pytest.raises(PdfValidationError):
        PdfImageExtractor(pdf, options)


def test_non_pdf_bytes_are_rejected():
    with pytest.raises(PdfValidationError):
        extract_images(b'this is not a pdf at all', in_memory=True)


def test_missing_file_is_reported(tmp_path):
    with pytest.raises(FileNotFoundError):
        extract_images(str(tmp_path / 'missing.pdf'), in_memory=True)


def test_saved_bytes_and_path_sources(masked_pdf_bytes, jpeg_bytes, tmp_path):
    from_bytes = extract_images(masked_pdf_bytes, in_memory=True)

    path = tmp_path / 'document.pdf'
    path.write_bytes(masked_pdf_bytes)
    from_path = extract_images(str(path), in_memory=True)

    assert sorted(from_bytes) == sorted(from_path)
    assert len(from_bytes) == 2
    assert jpeg_bytes in from_bytes


def test_extracted_image_metadata(masked_document):
    pdf, owner, _mask, jpeg = masked_document

    extractor = PdfImageExtractor(pdf)
    extractor.extract_images()

    png, jpg = extractor.images
    assert png.reference == ObjectRef(*owner.objgen)
    assert png.kind is ImageKind.PNG
    assert png.color_type is PngColorType.RGB_ALPHA
    assert (png.width, png.height) == (2, 1)
    assert jpg.reference == ObjectRef(*jpeg.objgen)
    assert jpg.kind is ImageKind.JPEG
    assert jpg.color_type is None


def test_directory_mode_records_paths(masked_document, tmp_path):
    pdf, _owner, _mask, _jpeg = masked_document

    extractor = PdfImageExtractor(pdf, ExtractorOptions(output_directory=str(tmp_path)))
    extractor.extract_images()

    assert [image.path for image in extractor.images] == [str(tmp_path / 'out1.png'), str(tmp_path / 'out2.jpg')]


def test_get_image_by_position(masked_document, jpeg_bytes):
    pdf, _owner, _mask, _jpeg = masked_document

    image = get_image(pdf, 2)

    assert image.kind is ImageKind.JPEG
    assert image.data == jpeg_bytes
    assert get_image(pdf, 3) is None
    assert get_image(pdf, 0) is None


def test_detect_image_mime_type(jpeg_bytes):
    assert detect_image_mime_type(jpeg_bytes) == 'image/jpeg'
    assert detect_image_mime_type(PNG_SIGNATURE + b'rest') == 'image/png'
    assert detect_image_mime_type(b'') == 'image/unknown'
    assert detect_image_mime_type(b'not an image') == 'image/unknown'


def test_oversized_image_is_skipped(pdf, make_image, decode_png):
    huge = make_image(b'\x00', width=10_000_000, height=10_000_000, name='/Huge')
    make_image(b'\x01\x02\x03')

    extractor = PdfImageExtractor(pdf)
    images = extractor.extract_images()

    assert len(images) == 1
    assert decode_png(images[0]).getpixel((0, 0)) == (1, 2, 3)
    failure, = extractor.failures
    assert failure.name == 'Huge'
    assert failure.reference == ObjectRef(*huge.objgen)


def test_images_and_failures_share_indexes_with_get_image(pdf, make_image, decode_png):
    make_image(raw=b'\xff' * 16, name='/Broken')
    make_image(b'\x01\x02\x03', name='/Good')

    extractor = PdfImageExtractor(pdf)
    extractor.extract_images()

    image, = extractor.images
    failure, = extractor.failures
    assert (failure.index, failure.name) == (1, 'Broken')
    assert (image.index, image.name) == (2, 'Good')
    assert get_image(pdf, image.index).data == image.data


def test_soft_masks_naming_each_other_still_emit_an_image(pdf, make_image, decode_png):
    first = make_image(bytes([10, 20, 30]))
    second = make_image(bytes([0x80]), color_space='/DeviceGray')
    first.SMask = second
    second.SMask = first

    images = extract_images(pdf, in_memory=True)

    assert len(images) == 1
    assert decode_png(images[0]).mode == 'RGBA'
