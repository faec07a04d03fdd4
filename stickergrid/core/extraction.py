from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..models.grid_model import CellRect
from .errors import EmptyFrameSequenceError
from .frames import CompositedFrame, Disposal, LoadedImage


# Crops carry fully composited pixels; every output frame is left in place.
OUTPUT_DISPOSAL = Disposal.NONE


@dataclass(frozen=True)
class CroppedFrame:
    pixels: np.ndarray  # (cell.height, cell.width, 4) uint8 RGBA
    delay: int
    disposal: Disposal = OUTPUT_DISPOSAL


def crop_raster(raster: np.ndarray, cell: CellRect) -> np.ndarray:
    """Copy the cell's sub-rectangle out of an (H, W, 4) raster."""
    height, width = raster.shape[:2]
    if cell.x < 0 or cell.y < 0 or cell.x + cell.width > width or cell.y + cell.height > height:
        raise ValueError(f"Cell {cell} lies outside a {width}x{height} image")
    return raster[cell.y:cell.y + cell.height, cell.x:cell.x + cell.width].copy()


def crop_frames(frames: Sequence[CompositedFrame], cell: CellRect) -> List[CroppedFrame]:
    if not frames:
        raise EmptyFrameSequenceError("Cannot crop an animation with no frames")
    return [CroppedFrame(pixels=crop_raster(f.pixels, cell), delay=f.delay) for f in frames]


def crop_static(image: LoadedImage, cell: CellRect) -> np.ndarray:
    """Still crop: the raster for static images, the first composited frame for GIFs."""
    return crop_raster(image.first_frame(), cell)


def crop_animation(image: LoadedImage, cell: CellRect) -> List[CroppedFrame]:
    if not image.is_gif:
        return [CroppedFrame(pixels=crop_static(image, cell), delay=0)]
    return crop_frames(image.composited(), cell)
