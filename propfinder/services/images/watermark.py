"""
Text watermarking for listing images.

Draws the company name in the bottom-right corner with a soft drop shadow and
overwrites the original file with the result.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from propfinder.config import WatermarkConfig
from propfinder.error_handling import WatermarkError

logger = logging.getLogger(__name__)

# Tried in order when no font path is configured
FALLBACK_FONTS = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")

# Modes that can be written back unchanged
PRESERVED_MODES = ("RGB", "RGBA", "L", "LA")


class ImageWatermarker:
    """Applies a company-name watermark to image files in place"""

    def __init__(self, config: WatermarkConfig):
        self.config = config

    def font_size_for(self, width: int) -> int:
        return max(width // self.config.width_divisor, self.config.min_font_size)

    def apply(self, image_path: Path, text: str) -> Path:
        """
        Watermark an image file, replacing it with the watermarked version.

        Args:
            image_path: Image to watermark
            text: Watermark text (the company name)

        Returns:
            The same path, now holding the watermarked image

        Raises:
            WatermarkError: If the image cannot be read, drawn or written;
                the original file is left untouched
        """
        image_path = Path(image_path)
        temp_path = image_path.with_name(f"{image_path.stem}_watermarked{image_path.suffix}")

        try:
            with Image.open(image_path) as original:
                image_format = original.format
                original_mode = original.mode
                base = original.convert("RGBA")

            watermarked = Image.alpha_composite(base, self._render_overlay(base.size, text))

            if original_mode in PRESERVED_MODES:
                output = watermarked.convert(original_mode)
            elif image_format == "PNG":
                output = watermarked
            else:
                output = watermarked.convert("RGB")

            output.save(temp_path, format=image_format)
            os.replace(temp_path, image_path)
        except Exception as e:
            logger.error(f"Watermarking error for {image_path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            raise WatermarkError(str(e)) from e

        return image_path

    def _render_overlay(self, size, text: str) -> Image.Image:
        width, height = size
        font = self._load_font(self.font_size_for(width))

        overlay = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)

        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = width - self.config.margin_right - (right - left)
        y = height - self.config.margin_bottom - (bottom - top)

        offset = self.config.shadow_offset
        draw.text((x + offset, y + offset), text, font=font,
                  fill=(0, 0, 0, self.config.shadow_opacity))
        draw.text((x, y), text, font=font, fill=(0, 0, 0, 255))

        return overlay

    def _load_font(self, size: int):
        candidates = (self.config.font_path,) + FALLBACK_FONTS
        for candidate in candidates:
            if not candidate:
                continue
            try:
                return ImageFont.truetype(candidate, size)
            except OSError:
                continue
        return ImageFont.load_default(size=size)


def watermark_or_keep(watermarker: Optional[ImageWatermarker], image_path: Path, text: str) -> bool:
    """
    Watermark an image, keeping the original on failure.

    Returns:
        True if the watermark was applied
    """
    if watermarker is None or not text:
        return False
    try:
        watermarker.apply(image_path, text)
        return True
    except WatermarkError:
        logger.warning(f"Keeping unwatermarked image {image_path}")
        return False
