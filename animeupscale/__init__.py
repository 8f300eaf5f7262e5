"""Anime-style image upscaling: the Anime4K09 upscaler, filters, image helpers and CNN layers."""

__version__ = "0.1.0"
__all__ = ["ac", "anime4k09", "cnn", "creator", "filters", "imageops"]