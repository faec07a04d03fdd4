from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .frames import CompositedFrame, Disposal, RawGifFrame, readonly


logger = logging.getLogger(__name__)


class FrameCompositor:
    """Replays GIF disposal over one canvas, the way a player would.

    The canvas starts fully transparent. Per frame:
      1) RESTORE_PREVIOUS -> snapshot the canvas
      2) paint the patch at (left, top), overwriting that rectangle
      3) emit a copy of the canvas
      4) dispose: clear the rectangle (RESTORE_BACKGROUND), put the
         snapshot back (RESTORE_PREVIOUS), or keep everything

    An instance owns its canvas for a single pass; build a new one per GIF.
    """

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self._canvas = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    def _region(self, frame: RawGifFrame) -> Tuple[slice, slice, slice, slice]:
        d = frame.dims
        top, left = max(d.top, 0), max(d.left, 0)
        bottom = min(d.top + d.height, self.height)
        right = min(d.left + d.width, self.width)
        dst = (slice(top, max(bottom, top)), slice(left, max(right, left)))
        src = (slice(top - d.top, max(bottom, top) - d.top), slice(left - d.left, max(right, left) - d.left))
        return dst + src

    def step(self, frame: RawGifFrame) -> CompositedFrame:
        snapshot: Optional[np.ndarray] = None
        if frame.disposal == Disposal.RESTORE_PREVIOUS:
            snapshot = self._canvas.copy()

        dy, dx, sy, sx = self._region(frame)
        self._canvas[dy, dx] = frame.patch[sy, sx]

        out = CompositedFrame(pixels=readonly(self._canvas.copy()), delay=frame.delay)

        if frame.disposal == Disposal.RESTORE_BACKGROUND:
            self._canvas[dy, dx] = 0
        elif snapshot is not None:
            self._canvas = snapshot

        return out


def composite_frames(frames: Sequence[RawGifFrame], width: int, height: int) -> Tuple[CompositedFrame, ...]:
    """One full-canvas frame per input frame, in input order."""
    compositor = FrameCompositor(width, height)
    out = tuple(compositor.step(f) for f in frames)
    logger.debug("Composited %d frame(s) on a %dx%d canvas", len(out), width, height)
    return out
