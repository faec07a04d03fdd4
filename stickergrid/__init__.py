"""Split still images and animated GIFs into a grid of stickers."""

__version__ = "0.1.0"
