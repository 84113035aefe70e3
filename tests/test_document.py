"""
Tests for document preparation: type detection, encoding and image compression.
"""

import base64
import io
import pytest
from PIL import Image
from src.core.errors import FileInvalidError
from src.services.document import DocumentPreparer


@pytest.fixture
def preparer():
    return DocumentPreparer()


def _noisy_png(path, side=600):
    """PNG of random noise, which compresses poorly and stays large"""
    Image.effect_noise((side, side), 20).convert("RGB").save(path, format="PNG")
    return path


def test_supported_extensions():
    assert DocumentPreparer.supported_extensions() == ["jpg", "jpeg", "png", "bmp", "pdf"]


@pytest.mark.parametrize("name,expected", [
    ("a.jpg", "jpeg"),
    ("a.JPEG", "jpeg"),
    ("a.Png", "png"),
    ("a.bmp", "bmp"),
    ("a.PDF", "pdf"),
])
def test_detect_file_type_is_case_insensitive(tmp_path, name, expected):
    assert DocumentPreparer.detect_file_type(tmp_path / name) == expected


def test_unsupported_extension_is_rejected(preparer, tmp_path):
    path = tmp_path / "invoice.gif"
    path.write_bytes(b"GIF89a")
    with pytest.raises(FileInvalidError, match="Unsupported file type: gif"):
        preparer.prepare(path)


def test_missing_extension_is_rejected(preparer, tmp_path):
    path = tmp_path / "invoice"
    path.write_bytes(b"data")
    with pytest.raises(FileInvalidError, match="extension"):
        preparer.prepare(path)


def test_nonexistent_file_is_rejected(preparer, tmp_path):
    with pytest.raises(FileInvalidError, match="Cannot read file"):
        preparer.prepare(tmp_path / "missing.png")


def test_pdf_is_encoded_verbatim(preparer, pdf_file):
    document = preparer.prepare(pdf_file)

    assert document.kind == "pdf"
    assert document.file_type == "pdf"
    assert document.name == "invoice.pdf"
    assert document.size == len(b"%PDF-1.4 minimal")
    assert base64.b64decode(document.payload) == b"%PDF-1.4 minimal"


def test_small_image_is_not_recompressed(preparer, jpeg_file):
    document = preparer.prepare(str(jpeg_file))

    assert document.kind == "image"
    assert document.path == str(jpeg_file)
    assert base64.b64decode(document.payload) == jpeg_file.read_bytes()


def test_oversized_pdf_is_sent_as_is(tmp_path):
    path = tmp_path / "big.pdf"
    path.write_bytes(b"%PDF" + b"0" * 500)
    document = DocumentPreparer(max_image_bytes=100).prepare(path)
    assert base64.b64decode(document.payload) == path.read_bytes()


def test_oversized_image_is_downscaled_to_jpeg(tmp_path):
    path = _noisy_png(tmp_path / "scan.png")
    original_size = path.stat().st_size
    preparer = DocumentPreparer(max_image_bytes=100_000)
    assert original_size > 100_000

    document = preparer.prepare(path)
    data = base64.b64decode(document.payload)

    assert document.size == original_size
    assert document.file_type == "png"
    assert len(data) <= 100_000
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "JPEG"
        assert img.width < 600


def test_image_still_oversized_after_compression_is_rejected(tmp_path):
    path = _noisy_png(tmp_path / "scan.png")
    with pytest.raises(FileInvalidError, match="after compression"):
        DocumentPreparer(max_image_bytes=100).prepare(path)


def test_oversized_non_image_bytes_are_rejected(tmp_path):
    path = tmp_path / "fake.jpg"
    path.write_bytes(b"not an image" * 100)
    with pytest.raises(FileInvalidError, match="Cannot load image"):
        DocumentPreparer(max_image_bytes=100).prepare(path)


@pytest.mark.parametrize("size,expected", [
    (4 * 1024 * 1024, 1.0),
    (2 * 1024 * 1024, 1.0),
    (16 * 1024 * 1024, 0.5),
    (4 * 1024 * 1024 * 10_000, 0.1),
])
def test_scale_for(size, expected):
    assert DocumentPreparer().scale_for(size) == pytest.approx(expected)


def test_decompression_bomb_is_file_invalid(tmp_path, monkeypatch):
    """Pillow's pixel-count guard surfaces as a file error, not a raw exception"""
    path = _noisy_png(tmp_path / "huge.png")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    with pytest.raises(FileInvalidError, match="Cannot load image"):
        DocumentPreparer(max_image_bytes=100).prepare(path)


def test_describe_reports_file_info(jpeg_file):
    info = DocumentPreparer().describe(jpeg_file)

    assert info.path == str(jpeg_file)
    assert info.name == "invoice.jpg"
    assert info.file_type == "jpeg"
    assert info.size == jpeg_file.stat().st_size


def test_describe_missing_file(tmp_path):
    with pytest.raises(FileInvalidError, match="Cannot read file info"):
        DocumentPreparer().describe(tmp_path / "gone.pdf")
