from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
from PIL import Image, ImageSequence, UnidentifiedImageError

from .errors import DecodeError
from .frames import Disposal, FrameDims, LoadedImage, RawGifFrame, readonly


logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes, bytearray]


def _open(source: Source) -> Tuple[Image.Image, str]:
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise DecodeError("Empty file")
        return Image.open(io.BytesIO(bytes(source))), "<memory>"

    path = Path(source)
    if not path.exists():
        raise DecodeError(f"Image not found: {path}")
    return Image.open(path), path.name


def _frame_extent(frame: Image.Image, width: int, height: int) -> Tuple[int, int, int, int]:
    """Update rectangle of the current frame, clipped to the logical screen."""
    extent = getattr(frame, "dispose_extent", None) or (0, 0, width, height)
    x0, y0, x1, y1 = (int(v) for v in extent)
    x0, y0 = min(max(x0, 0), width), min(max(y0, 0), height)
    x1, y1 = min(max(x1, x0), width), min(max(y1, y0), height)
    return x0, y0, x1, y1


def decode_gif_frames(im: Image.Image) -> List[RawGifFrame]:
    """Split an opened GIF into per-frame patches.

    Pillow hands back each frame already drawn onto its own canvas, so the
    patch is the frame's update rectangle cut out of that canvas. Painting it
    back over the rectangle reproduces what the frame displays there.

    Limitation: when a frame is disposed to background, the GIF declares no
    transparent index, and the next frame leaves pixels transparent, Pillow
    fills those pixels inside the next frame's rectangle with the GIF's
    background colour. The compositor clears the rest of the disposed
    rectangle to transparent, so that output frame can show two different
    backgrounds.
    """
    width, height = im.size
    frames: List[RawGifFrame] = []

    for index, frame in enumerate(ImageSequence.Iterator(im)):
        x0, y0, x1, y1 = _frame_extent(frame, width, height)
        rgba = frame.convert("RGBA")
        patch = np.array(rgba.crop((x0, y0, x1, y1)), dtype=np.uint8).reshape(y1 - y0, x1 - x0, 4)

        disposal = Disposal.normalize(getattr(frame, "disposal_method", 0))
        delay = int(frame.info.get("duration", 0) or 0)

        frames.append(
            RawGifFrame(
                patch=readonly(patch),
                dims=FrameDims(width=x1 - x0, height=y1 - y0, top=y0, left=x0),
                delay=delay,
                disposal=disposal,
            )
        )
        logger.debug(
            "frame %d: %dx%d at (%d,%d) delay=%dms disposal=%s",
            index, x1 - x0, y1 - y0, x0, y0, delay, disposal.name,
        )

    return frames


def load_image(source: Source) -> LoadedImage:
    """Decode a file (path or raw bytes) into a LoadedImage.

    Raises DecodeError for anything Pillow cannot read and for GIFs that
    contain no frames.
    """
    try:
        im, name = _open(source)
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Not a loadable image: {e}") from e

    with im:
        width, height = im.size
        if width <= 0 or height <= 0:
            raise DecodeError(f"Image has no pixels ({width}x{height})")

        try:
            if im.format == "GIF":
                frames = decode_gif_frames(im)
                if not frames:
                    raise DecodeError("GIF contains no frames")
                logger.info("Loaded GIF %s: %dx%d, %d frame(s)", name, width, height, len(frames))
                return LoadedImage(kind="gif", width=width, height=height, frames=tuple(frames), name=name)

            raster = np.array(im.convert("RGBA"), dtype=np.uint8)
        except (OSError, ValueError, EOFError) as e:
            raise DecodeError(f"Failed to decode {name}: {e}") from e

    logger.info("Loaded image %s: %dx%d (%s)", name, width, height, im.format)
    return LoadedImage(kind="static", width=width, height=height, raster=readonly(raster), name=name)
