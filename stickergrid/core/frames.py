from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Literal, Optional, Tuple

import numpy as np

from .errors import DecodeError, EmptyFrameSequenceError


class Disposal(IntEnum):
    """GIF disposal methods. 0 (unspecified) and 1 both leave the canvas alone."""
    UNSPECIFIED = 0
    NONE = 1
    RESTORE_BACKGROUND = 2
    RESTORE_PREVIOUS = 3

    @classmethod
    def normalize(cls, value: Optional[int]) -> "Disposal":
        try:
            return cls(int(value or 0))
        except ValueError:
            return cls.UNSPECIFIED


@dataclass(frozen=True)
class FrameDims:
    width: int
    height: int
    top: int
    left: int


def readonly(pixels: np.ndarray) -> np.ndarray:
    pixels.setflags(write=False)
    return pixels


@dataclass(frozen=True)
class RawGifFrame:
    """One frame as stored in the file: a patch placed at (left, top)."""
    patch: np.ndarray  # (dims.height, dims.width, 4) uint8 RGBA
    dims: FrameDims
    delay: int  # milliseconds
    disposal: Disposal = Disposal.UNSPECIFIED


@dataclass(frozen=True)
class CompositedFrame:
    """What a viewer sees while one frame is on screen."""
    pixels: np.ndarray  # (height, width, 4) uint8 RGBA, full canvas
    delay: int


@dataclass
class LoadedImage:
    """The single image being edited: a static raster or a decoded GIF.

    Composited GIF frames are computed on first request and cached on the
    instance; loading another file builds a new LoadedImage, which drops the
    cache with the old one.
    """

    kind: Literal["static", "gif"]
    width: int
    height: int
    raster: Optional[np.ndarray] = None  # static only, (height, width, 4) RGBA
    frames: Tuple[RawGifFrame, ...] = ()
    name: str = ""

    _composited: Optional[Tuple[CompositedFrame, ...]] = field(default=None, init=False, repr=False, compare=False)

    @property
    def is_gif(self) -> bool:
        return self.kind == "gif"

    @property
    def frame_count(self) -> int:
        return len(self.frames) if self.is_gif else 1

    def composited(self) -> Tuple[CompositedFrame, ...]:
        if not self.is_gif:
            return ()
        if self._composited is None:
            from .compositor import composite_frames

            self._composited = composite_frames(self.frames, self.width, self.height)
        return self._composited

    def first_frame(self) -> np.ndarray:
        """Full-size RGBA raster used for previews and still exports."""
        if not self.is_gif:
            if self.raster is None:
                raise DecodeError(f"Static image {self.name or '<memory>'} has no pixel data")
            return self.raster
        composited = self.composited()
        if not composited:
            raise EmptyFrameSequenceError("GIF has no frames")
        return composited[0].pixels
