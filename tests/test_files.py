"""Tests for image loading and text saving."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from regionocr.capture.files import (
    default_save_name,
    ensure_txt_suffix,
    format_file_size,
    is_supported_image,
    load_image,
    save_text,
)


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    img = np.zeros((30, 40, 3), dtype=np.uint8)
    img[:, :, 2] = 200  # red in BGR
    path = tmp_path / "sample.png"
    ok, encoded = cv2.imencode(".png", img)
    assert ok
    path.write_bytes(encoded.tobytes())
    return path


class TestLoadImage:
    def test_loads_bgr_array(self, png_file: Path):
        img = load_image(png_file)
        assert img.shape == (30, 40, 3)
        assert img.dtype == np.uint8
        assert tuple(img[0, 0]) == (0, 0, 200)

    def test_non_ascii_path(self, tmp_path: Path, png_file: Path):
        target = tmp_path / "übersicht 画像.png"
        target.write_bytes(png_file.read_bytes())
        assert load_image(target) is not None

    def test_missing_file(self, tmp_path: Path):
        assert load_image(tmp_path / "nope.png") is None

    def test_unsupported_extension(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        assert load_image(path) is None

    def test_corrupt_image(self, tmp_path: Path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not really a jpeg")
        assert load_image(path) is None

    def test_is_supported_image_case_insensitive(self, tmp_path: Path, png_file: Path):
        upper = tmp_path / "PHOTO.PNG"
        upper.write_bytes(png_file.read_bytes())
        assert is_supported_image(upper)
        assert not is_supported_image(tmp_path)


class TestSaveText:
    def test_writes_utf8(self, tmp_path: Path):
        path = tmp_path / "out.txt"
        assert save_text("héllo 日本", path)
        assert path.read_text(encoding="utf-8") == "héllo 日本"

    def test_failure_returns_false(self, tmp_path: Path):
        assert not save_text("x", tmp_path / "missing_dir" / "out.txt")

    def test_ensure_txt_suffix(self):
        assert ensure_txt_suffix("notes").name == "notes.txt"
        assert ensure_txt_suffix("notes.TXT").name == "notes.TXT"
        assert ensure_txt_suffix("scan.v2").name == "scan.v2.txt"


class TestNaming:
    def test_default_save_name_from_image(self):
        assert default_save_name("/scans/receipt.jpg") == "receipt_extracted.txt"

    def test_default_save_name_without_image(self):
        assert default_save_name(None) == "extracted_text.txt"

    @pytest.mark.parametrize(
        "size, expected",
        [
            (-1, "Unknown"),
            (512, "512 B"),
            (2048, "2.00 KB"),
            (5 * 1024**2, "5.00 MB"),
            (3 * 1024**3, "3.00 GB"),
        ],
    )
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected
