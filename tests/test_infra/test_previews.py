"""Tests for upload previews."""

import io

import pytest
from PIL import Image

from catalog.core.errors import ValidationError
from catalog.infra.previews import create_preview


def png_bytes(size: tuple[int, int] = (64, 32), mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=0).save(buffer, format="PNG")
    return buffer.getvalue()


class TestCreatePreview:
    def test_writes_thumbnail_file(self):
        handle = create_preview(png_bytes((800, 400)), max_size=100)
        try:
            assert handle.path.exists()
            assert handle.uri.startswith("file://")
            with Image.open(handle.path) as img:
                assert img.size == (100, 50)
        finally:
            handle.release()

    def test_small_image_keeps_size(self):
        handle = create_preview(png_bytes((20, 10)), max_size=100)
        try:
            with Image.open(handle.path) as img:
                assert img.size == (20, 10)
        finally:
            handle.release()

    def test_cmyk_is_converted(self):
        buffer = io.BytesIO()
        Image.new("CMYK", (10, 10)).save(buffer, format="JPEG")
        handle = create_preview(buffer.getvalue())
        try:
            assert handle.path.exists()
        finally:
            handle.release()

    def test_rejects_non_image_bytes(self):
        with pytest.raises(ValidationError) as exc_info:
            create_preview(b"%PDF-1.4 not an image")
        assert exc_info.value.field == "photos"


def test_release_happens_once():
    handle = create_preview(png_bytes())
    assert handle.release()
    assert not handle.path.exists()
    assert handle.released
    assert not handle.release()
