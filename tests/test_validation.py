from types import SimpleNamespace

import pytest

from utils import validation
from utils.validation import PdfValidationError, environment_warnings, validate_pdf_bytes, validate_pdf_path


def test_pdf_bytes_are_accepted():
    validate_pdf_bytes(b'%PDF-1.7\n...')


@pytest.mark.parametrize("content, message", [
    (b'%PD', "too small"),
    (b'GIF89a.....', "Invalid PDF signature"),
])
def test_non_pdf_bytes_are_rejected(content, message):
    with pytest.raises(PdfValidationError, match=message):
        validate_pdf_bytes(content)


def test_size_limit_applies_to_bytes():
    content = b'%PDF-1.7\n' + b'\x00' * (1024 * 1024)

    validate_pdf_bytes(content, max_size_mb=2)
    with pytest.raises(PdfValidationError, match="too large"):
        validate_pdf_bytes(content, max_size_mb=1)


def test_pdf_path_checks(tmp_path):
    good = tmp_path / 'good.pdf'
    good.write_bytes(b'%PDF-1.4\n')
    bad = tmp_path / 'bad.pdf'
    bad.write_bytes(b'<html></html>')

    validate_pdf_path(good)
    validate_pdf_path(str(good))
    with pytest.raises(PdfValidationError, match="Invalid PDF signature"):
        validate_pdf_path(bad)
    with pytest.raises(PdfValidationError, match="Cannot read"):
        validate_pdf_path(tmp_path / 'missing.pdf')


def test_environment_warnings_report_shortages(monkeypatch):
    monkeypatch.setattr(validation.psutil, 'virtual_memory', lambda: SimpleNamespace(available=1024))
    monkeypatch.setattr(validation.psutil, 'disk_usage', lambda path: SimpleNamespace(free=1024))

    warnings = environment_warnings()

    assert len(warnings) == 2
    assert warnings[0].startswith("Low memory")
    assert warnings[1].startswith("Low disk space")


def test_environment_warnings_empty_with_resources(monkeypatch):
    plenty = 1024 ** 4
    monkeypatch.setattr(validation.psutil, 'virtual_memory', lambda: SimpleNamespace(available=plenty))
    monkeypatch.setattr(validation.psutil, 'disk_usage', lambda path: SimpleNamespace(free=plenty))

    assert environment_warnings() == []
