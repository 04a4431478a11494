"""
Exception hierarchy for the Property Finder API.

Routers translate these into HTTP responses; the enrichment adapter absorbs
EnrichmentError itself and never lets it reach a caller.
"""


class PropertyFinderError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500


class QueryValidationError(PropertyFinderError):
    """A search request arrived without a usable query."""

    status_code = 400


class EnrichmentError(PropertyFinderError):
    """The remote model answered with something that is not a filter object."""


class StoreError(PropertyFinderError):
    """Listing or search-log persistence failed."""

    status_code = 500


class UploadRejectedError(PropertyFinderError):
    """An uploaded file was refused before it was stored."""

    status_code = 400


class UnsupportedImageError(UploadRejectedError):
    def __init__(self, filename: str = ""):
        super().__init__("Only image files are allowed!")
        self.filename = filename


class ImageTooLargeError(UploadRejectedError):
    def __init__(self, max_bytes: int):
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(f"File too large. Maximum size is {max_mb:g}MB.")
        self.max_bytes = max_bytes


class TooManyImagesError(UploadRejectedError):
    def __init__(self, max_files: int):
        super().__init__(f"Too many images. Maximum is {max_files} per property.")
        self.max_files = max_files


class WatermarkError(PropertyFinderError):
    """Watermarking an image failed; the original file is left in place."""
