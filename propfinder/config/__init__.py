"""Configuration module for the Property Finder API."""

from .settings import (
    DatabaseConfig,
    EnrichmentConfig,
    ExtractionConfig,
    UploadConfig,
    WatermarkConfig,
    Settings,
    load_settings,
)

__all__ = [
    'DatabaseConfig',
    'EnrichmentConfig',
    'ExtractionConfig',
    'UploadConfig',
    'WatermarkConfig',
    'Settings',
    'load_settings',
]
