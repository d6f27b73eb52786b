"""Favicon and touch-icon generation driven by ImageMagick."""

__version__ = "0.1.0"
