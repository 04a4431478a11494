"""API routers"""

from . import properties, search

__all__ = ["properties", "search"]
