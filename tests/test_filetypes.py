import pytest

from fileshare.core.filetypes import FileKind, classify, extension_of, format_file_size, size_label


@pytest.mark.parametrize("name, kind", [
    ("a.png", FileKind.IMAGE),
    ("a.JPEG", FileKind.IMAGE),
    ("a.webp", FileKind.IMAGE),
    ("a.pdf", FileKind.PDF),
    ("a.pdf.txt", FileKind.OTHER),
    ("noext", FileKind.OTHER),
])
def test_classify_by_suffix(name, kind):
    assert classify(name) == kind


@pytest.mark.parametrize("name, ext", [
    ("photo.png", ".png"),
    ("Photo.JPG", ".jpg"),
    ("archive.tar.gz", ".gz"),
    ("README", ""),
    (".bashrc", ""),
    ("weird.p$g", ""),
    (None, ""),
])
def test_extension_of(name, ext):
    assert extension_of(name) == ext


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(512) == "512 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(10 * 1024 * 1024) == "10 MB"


def test_size_label_is_compact():
    assert size_label(10 * 1024 * 1024) == "10MB"
    assert size_label(1024) == "1KB"
    assert size_label(100) == "100 Bytes"
