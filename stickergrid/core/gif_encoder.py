from __future__ import annotations

import io
import logging
from typing import List, Sequence

import numpy as np
from PIL import GifImagePlugin, Image

from .errors import EmptyFrameSequenceError, EncodeError
from .extraction import CroppedFrame


logger = logging.getLogger(__name__)

MAX_PALETTE_COLORS = 256
GIF_TRAILER = b";"


def to_rgb(pixels: np.ndarray) -> np.ndarray:
    """Drop the alpha channel; the quantizer works on RGB triples."""
    return np.ascontiguousarray(pixels[..., :3], dtype=np.uint8)


def quantize_frame(pixels: np.ndarray, max_colors: int = MAX_PALETTE_COLORS) -> Image.Image:
    """RGBA pixels -> palette ("P") image with its own palette of <= max_colors."""
    colors = min(max(int(max_colors), 2), MAX_PALETTE_COLORS)
    rgb = Image.fromarray(to_rgb(pixels))
    return rgb.quantize(colors=colors)


def encode_gif(frames: Sequence[CroppedFrame], max_colors: int = MAX_PALETTE_COLORS, loop: int = 0) -> bytes:
    """Encode cropped frames as an animated GIF.

    Every input frame becomes exactly one image in the stream, with its own
    local palette, its own delay and its own disposal, even when it repeats
    the frame before it. ``Image.save(save_all=True)`` would fold such
    repeats together, so the stream is assembled from Pillow's GIF header
    and frame writers instead.
    """
    if not frames:
        raise EmptyFrameSequenceError("Nothing to encode: frame sequence is empty")

    try:
        images: List[Image.Image] = [quantize_frame(f.pixels, max_colors) for f in frames]

        buf = io.BytesIO()
        header, _ = GifImagePlugin.getheader(images[0], info={"loop": loop, "duration": int(frames[0].delay)})
        for chunk in header:
            buf.write(chunk)

        for image, frame in zip(images, frames):
            for chunk in GifImagePlugin.getdata(
                image,
                offset=(0, 0),
                duration=int(frame.delay),
                disposal=int(frame.disposal),
                include_color_table=True,
            ):
                buf.write(chunk)

        buf.write(GIF_TRAILER)
    except (OSError, ValueError, SystemError) as e:
        raise EncodeError(f"GIF encoding failed: {e}") from e

    data = buf.getvalue()
    logger.debug("Encoded %d frame(s) -> %d bytes", len(frames), len(data))
    return data
