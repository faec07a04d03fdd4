from __future__ import annotations


class StickerGridError(Exception):
    """Base class for failures in the decode -> crop -> encode pipeline."""


class DecodeError(StickerGridError):
    """The input is not a loadable image, or is a GIF without frames."""


class EmptyFrameSequenceError(StickerGridError):
    """An animated export was requested for a source with no frames."""


class EncodeError(StickerGridError):
    """The image codec rejected the data handed to it."""
