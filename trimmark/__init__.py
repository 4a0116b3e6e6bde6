"""Trimmark: trim, watermark, and export videos through ffmpeg."""

__version__ = "0.1.0"
