import numpy as np
import pytest

from stickergrid.core.compositor import FrameCompositor, composite_frames
from stickergrid.core.frames import Disposal, FrameDims, RawGifFrame

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


def frame(width, height, left, top, color, disposal=Disposal.UNSPECIFIED, delay=100):
    patch = np.zeros((height, width, 4), dtype=np.uint8)
    patch[:, :] = color
    return RawGifFrame(patch=patch, dims=FrameDims(width, height, top, left), delay=delay, disposal=disposal)


def canvas(width, height, fill=CLEAR):
    out = np.zeros((height, width, 4), dtype=np.uint8)
    out[:, :] = fill
    return out


def test_single_frame_paints_patch_at_offset():
    (only,) = composite_frames([frame(2, 2, 1, 1, RED)], 4, 4)

    expected = canvas(4, 4)
    expected[1:3, 1:3] = RED
    assert np.array_equal(only.pixels, expected)
    assert only.delay == 100


def test_unspecified_disposal_accumulates():
    out = composite_frames([frame(2, 2, 0, 0, RED), frame(2, 2, 2, 2, GREEN)], 4, 4)

    expected = canvas(4, 4)
    expected[0:2, 0:2] = RED
    expected[2:4, 2:4] = GREEN
    assert np.array_equal(out[1].pixels, expected)


def test_restore_background_clears_previous_patch():
    out = composite_frames(
        [
            frame(4, 4, 0, 0, RED, Disposal.RESTORE_BACKGROUND),
            frame(1, 1, 0, 0, GREEN),
        ],
        4,
        4,
    )

    assert np.array_equal(out[0].pixels, canvas(4, 4, RED))
    expected = canvas(4, 4)
    expected[0, 0] = GREEN
    assert np.array_equal(out[1].pixels, expected)


def test_restore_background_only_touches_patch_rect():
    out = composite_frames(
        [
            frame(4, 4, 0, 0, BLUE),
            frame(2, 2, 0, 0, RED, Disposal.RESTORE_BACKGROUND),
            frame(1, 1, 3, 3, GREEN),
        ],
        4,
        4,
    )

    expected = canvas(4, 4, BLUE)
    expected[0:2, 0:2] = CLEAR
    expected[3, 3] = GREEN
    assert np.array_equal(out[2].pixels, expected)


def test_restore_previous_rolls_back_after_display():
    out = composite_frames(
        [
            frame(4, 4, 0, 0, BLUE),
            frame(2, 2, 0, 0, RED, Disposal.RESTORE_PREVIOUS),
            frame(1, 1, 3, 3, GREEN),
        ],
        4,
        4,
    )

    shown = canvas(4, 4, BLUE)
    shown[0:2, 0:2] = RED
    assert np.array_equal(out[1].pixels, shown)

    expected = canvas(4, 4, BLUE)
    expected[3, 3] = GREEN
    assert np.array_equal(out[2].pixels, expected)


def test_output_order_and_delays_follow_input():
    frames = [frame(1, 1, i, 0, RED, delay=10 * (i + 1)) for i in range(4)]
    out = composite_frames(frames, 4, 1)

    assert [f.delay for f in out] == [10, 20, 30, 40]
    assert [int(f.pixels[0, :, 3].astype(bool).sum()) for f in out] == [1, 2, 3, 4]


def test_emitted_frames_are_frozen_copies():
    out = composite_frames([frame(2, 2, 0, 0, RED), frame(2, 2, 0, 0, GREEN)], 2, 2)

    assert np.array_equal(out[0].pixels, canvas(2, 2, RED))
    with pytest.raises(ValueError):
        out[0].pixels[0, 0] = GREEN


def test_patch_hanging_off_canvas_is_clipped():
    out = composite_frames([frame(3, 3, 2, 2, RED)], 4, 4)

    expected = canvas(4, 4)
    expected[2:4, 2:4] = RED
    assert np.array_equal(out[0].pixels, expected)


def test_empty_sequence():
    assert composite_frames([], 4, 4) == ()


def test_compositor_step_by_step():
    c = FrameCompositor(2, 1)
    first = c.step(frame(1, 1, 0, 0, RED, Disposal.RESTORE_BACKGROUND))
    second = c.step(frame(1, 1, 1, 0, GREEN))

    assert tuple(first.pixels[0, 0]) == RED
    assert tuple(second.pixels[0, 0]) == CLEAR
    assert tuple(second.pixels[0, 1]) == GREEN
