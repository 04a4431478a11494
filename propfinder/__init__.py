"""Property Finder API: listings with watermarked images and natural-language search."""
