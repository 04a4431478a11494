"""
Error handling module for the Property Finder API.

Provides the domain exception taxonomy shared by services and routers.
"""

from .exceptions import (
    PropertyFinderError,
    QueryValidationError,
    EnrichmentError,
    StoreError,
    UploadRejectedError,
    UnsupportedImageError,
    ImageTooLargeError,
    TooManyImagesError,
    WatermarkError,
)

__all__ = [
    'PropertyFinderError',
    'QueryValidationError',
    'EnrichmentError',
    'StoreError',
    'UploadRejectedError',
    'UnsupportedImageError',
    'ImageTooLargeError',
    'TooManyImagesError',
    'WatermarkError',
]
