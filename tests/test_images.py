"""
Tests for listing image uploads and watermarking.
"""

import asyncio
import io
import re

import pytest
from fastapi import UploadFile
from hypothesis import given, settings, strategies as st
from PIL import Image
from starlette.datastructures import Headers

from propfinder.config import UploadConfig, WatermarkConfig
from propfinder.error_handling import (
    ImageTooLargeError,
    TooManyImagesError,
    UnsupportedImageError,
    WatermarkError,
)
from propfinder.services.images import ImageUploadHandler, ImageWatermarker, watermark_or_keep


def image_bytes(fmt="PNG", size=(400, 300), color=(255, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def upload_config(tmp_path):
    return UploadConfig(upload_dir=str(tmp_path / "properties"))


class TestImageUploadHandler:
    """Tests for validating and storing uploads"""

    def test_image_is_saved_with_unique_name(self, upload_config, tmp_path):
        handler = ImageUploadHandler(upload_config)
        content = image_bytes()

        stored = asyncio.run(handler.save(make_upload(content, "front.png", "image/png")))

        assert re.fullmatch(r"images-\d+-\d+\.png", stored.filename)
        assert stored.path == tmp_path / "properties" / stored.filename
        assert stored.path.read_bytes() == content
        assert stored.public_url == f"/uploads/properties/{stored.filename}"

    def test_non_image_is_rejected_and_not_written(self, upload_config, tmp_path):
        handler = ImageUploadHandler(upload_config)

        with pytest.raises(UnsupportedImageError, match="Only image files are allowed!"):
            asyncio.run(handler.save(make_upload(b"hello", "notes.txt", "text/plain")))

        assert not (tmp_path / "properties").exists()

    def test_file_at_limit_is_accepted(self, tmp_path):
        handler = ImageUploadHandler(
            UploadConfig(upload_dir=str(tmp_path), max_file_size_bytes=10)
        )

        stored = asyncio.run(handler.save(make_upload(b"x" * 10, "a.jpg", "image/jpeg")))

        assert stored.path.stat().st_size == 10

    def test_file_over_limit_is_rejected(self, tmp_path):
        handler = ImageUploadHandler(
            UploadConfig(upload_dir=str(tmp_path / "out"), max_file_size_bytes=10)
        )

        with pytest.raises(ImageTooLargeError):
            asyncio.run(handler.save(make_upload(b"x" * 11, "a.jpg", "image/jpeg")))

        assert not (tmp_path / "out").exists()

    def test_too_large_message_uses_megabytes(self):
        assert str(ImageTooLargeError(10 * 1024 * 1024)) == "File too large. Maximum size is 10MB."

    def test_too_many_files_is_rejected(self, upload_config):
        handler = ImageUploadHandler(upload_config)
        uploads = [make_upload(b"x", f"{i}.png", "image/png") for i in range(11)]

        with pytest.raises(TooManyImagesError):
            handler.check_count(uploads)

        handler.check_count(uploads[:10])

    def test_unique_filenames_differ(self, upload_config):
        handler = ImageUploadHandler(upload_config)

        names = {handler.unique_filename("photo.jpeg") for _ in range(20)}

        assert len(names) > 1
        assert all(name.startswith("images-") and name.endswith(".jpeg") for name in names)


@given(width=st.integers(min_value=1, max_value=10000))
@settings(max_examples=100)
def test_font_size_scales_with_width(width):
    """
    **Feature: property-finder, Property 13: Watermark font size**

    For any image width W, the font size is max(W / 10, 24).
    """
    watermarker = ImageWatermarker(WatermarkConfig())

    assert watermarker.font_size_for(width) == max(width // 10, 24)


class TestImageWatermarker:
    """Tests for applying the company-name watermark"""

    @pytest.mark.parametrize("fmt, suffix", [("PNG", ".png"), ("JPEG", ".jpg")])
    def test_watermark_replaces_file_in_place(self, tmp_path, fmt, suffix):
        path = tmp_path / f"front{suffix}"
        path.write_bytes(image_bytes(fmt))
        before = path.read_bytes()

        result = ImageWatermarker(WatermarkConfig()).apply(path, "Acme Realty")

        assert result == path
        assert path.read_bytes() != before
        assert not (tmp_path / f"front_watermarked{suffix}").exists()
        with Image.open(path) as image:
            assert image.size == (400, 300)
            assert image.format == fmt
            # Dark text pixels now exist on a white background
            assert image.convert("L").getextrema()[0] < 128

    def test_watermark_sits_in_bottom_right(self, tmp_path):
        path = tmp_path / "front.png"
        path.write_bytes(image_bytes())

        ImageWatermarker(WatermarkConfig()).apply(path, "Acme")

        with Image.open(path) as image:
            grey = image.convert("L")
            top_left = grey.crop((0, 0, 100, 100))
            assert top_left.getextrema() == (255, 255)

    def test_unreadable_image_raises_and_is_left_alone(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        with pytest.raises(WatermarkError):
            ImageWatermarker(WatermarkConfig()).apply(path, "Acme")

        assert path.read_bytes() == b"not an image"
        assert not (tmp_path / "broken_watermarked.png").exists()

    def test_watermark_or_keep_reports_outcome(self, tmp_path):
        good = tmp_path / "good.png"
        good.write_bytes(image_bytes())
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"garbage")
        watermarker = ImageWatermarker(WatermarkConfig())

        assert watermark_or_keep(watermarker, good, "Acme")
        assert not watermark_or_keep(watermarker, broken, "Acme")
        assert broken.read_bytes() == b"garbage"
        assert not watermark_or_keep(None, good, "Acme")
        assert not watermark_or_keep(watermarker, good, "")

    def test_oversized_image_is_kept_unwatermarked(self, tmp_path, monkeypatch):
        # 400x300 is more than twice this limit, so Pillow treats it as a bomb
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        path = tmp_path / "huge.png"
        path.write_bytes(image_bytes())
        before = path.read_bytes()
        watermarker = ImageWatermarker(WatermarkConfig())

        with pytest.raises(WatermarkError):
            watermarker.apply(path, "Acme")

        assert not watermark_or_keep(watermarker, path, "Acme")
        assert path.read_bytes() == before
        assert not (tmp_path / "huge_watermarked.png").exists()

    @pytest.mark.parametrize("error", [
        EOFError("truncated"),
        SyntaxError("not a PNG file"),
        Image.DecompressionBombError("too many pixels"),
    ])
    def test_any_decoder_error_becomes_watermark_error(self, tmp_path, monkeypatch, error):
        path = tmp_path / "front.png"
        path.write_bytes(image_bytes())

        def broken_open(*args, **kwargs):
            raise error

        monkeypatch.setattr(Image, "open", broken_open)

        with pytest.raises(WatermarkError):
            ImageWatermarker(WatermarkConfig()).apply(path, "Acme")


def test_discard_removes_a_stored_image(upload_config):
    handler = ImageUploadHandler(upload_config)
    stored = asyncio.run(handler.save(make_upload(image_bytes(), "front.png", "image/png")))

    handler.discard(stored)
    handler.discard(stored)

    assert not stored.path.exists()
