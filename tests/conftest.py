import os

import numpy as np
import pytest
from PIL import Image

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def solid(width, height, color):
    return Image.new("RGB", (width, height), color)


def write_gif(path, frames, durations, **kwargs):
    frames[0].save(
        path,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=0,
        **kwargs,
    )
    return path


@pytest.fixture
def two_frame_gif(tmp_path):
    """100x100, frame 1 red, frame 2 red with a blue top-left quarter."""
    first = solid(100, 100, (255, 0, 0))
    second = first.copy()
    second.paste((0, 0, 255), (0, 0, 50, 50))
    return write_gif(tmp_path / "anim.gif", [first, second], [100, 200])


@pytest.fixture
def static_png(tmp_path):
    im = Image.new("RGBA", (200, 100), (0, 200, 0, 255))
    im.paste((200, 0, 0, 255), (100, 0, 200, 100))
    path = tmp_path / "still.png"
    im.save(path)
    return path


@pytest.fixture(scope="session")
def qt_app():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


def near(actual, expected, tol=8):
    return bool(np.all(np.abs(np.asarray(actual, dtype=int)[: len(expected)] - np.asarray(expected)) <= tol))
