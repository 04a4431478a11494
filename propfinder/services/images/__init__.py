"""Image upload and watermarking services"""

from .uploads import ImageUploadHandler, StoredImage
from .watermark import ImageWatermarker, watermark_or_keep

__all__ = ["ImageUploadHandler", "StoredImage", "ImageWatermarker", "watermark_or_keep"]
