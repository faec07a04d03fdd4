import io
import zipfile

import numpy as np
import pytest
from PIL import Image

from conftest import near
from stickergrid.core import export as export_mod
from stickergrid.core.errors import EncodeError
from stickergrid.core.export import (
    cell_filename,
    cell_thumbnail,
    default_format,
    export_cell,
    export_cells_to_dir,
    export_zip,
)
from stickergrid.core.gif_decoder import load_image
from stickergrid.models.config import GridConfig
from stickergrid.models.grid_model import CellRect, GridModel


def cells_for(image, rows=2, cols=2):
    return GridModel.create(image.width, image.height, GridConfig(rows=rows, cols=cols)).get_cells()


def test_cell_filename_is_one_based():
    cell = CellRect(x=0, y=0, width=1, height=1, row=0, col=2)
    assert cell_filename(cell, "jpg") == "sticker_1_3.jpg"
    assert cell_filename(CellRect(0, 0, 1, 1, 4, 0), "gif") == "sticker_5_1.gif"


def test_default_format(static_png, two_frame_gif):
    assert default_format(load_image(static_png)) == "jpg"
    assert default_format(load_image(two_frame_gif)) == "gif"


def test_jpeg_export_of_static_cell(static_png):
    image = load_image(static_png)
    cell = cells_for(image)[1]  # right half, top row

    data = export_cell(image, cell, "jpg")
    assert data[:2] == b"\xff\xd8"
    im = Image.open(io.BytesIO(data))
    assert im.size == (100, 50)
    assert near(im.convert("RGB").getpixel((50, 25)), (200, 0, 0), tol=12)


def test_gif_source_as_jpeg_uses_first_frame(two_frame_gif):
    image = load_image(two_frame_gif)
    im = Image.open(io.BytesIO(export_cell(image, cells_for(image)[0], "jpg")))
    assert im.format == "JPEG"
    assert near(im.convert("RGB").getpixel((25, 25)), (255, 0, 0), tol=12)


def test_gif_export_of_animated_cell(two_frame_gif):
    image = load_image(two_frame_gif)
    im = Image.open(io.BytesIO(export_cell(image, cells_for(image)[0], "gif")))
    assert im.format == "GIF"
    assert im.n_frames == 2
    assert im.size == (50, 50)


def test_unknown_format(static_png):
    image = load_image(static_png)
    with pytest.raises(ValueError):
        export_cell(image, cells_for(image)[0], "bmp")


def test_export_to_directory(static_png, tmp_path):
    image = load_image(static_png)
    paths = export_cells_to_dir(image, cells_for(image), "jpg", tmp_path / "out")

    assert [p.name for p in paths] == ["sticker_1_1.jpg", "sticker_1_2.jpg", "sticker_2_1.jpg", "sticker_2_2.jpg"]
    assert all(p.stat().st_size > 0 for p in paths)


def test_export_zip(two_frame_gif, tmp_path):
    image = load_image(two_frame_gif)
    target = tmp_path / "stickers.zip"

    names = export_zip(image, cells_for(image), "gif", target)

    assert names == ["sticker_1_1.gif", "sticker_1_2.gif", "sticker_2_1.gif", "sticker_2_2.gif"]
    with zipfile.ZipFile(target) as zf:
        assert zf.namelist() == names
        first = Image.open(io.BytesIO(zf.read("sticker_1_1.gif")))
        assert first.n_frames == 2


def test_export_zip_keeps_entries_written_before_a_failure(static_png, tmp_path, monkeypatch):
    image = load_image(static_png)
    cells = cells_for(image)
    real_export = export_mod.export_cell

    def flaky(img, cell, fmt, cfg):
        if cell.row == 1:
            raise EncodeError("codec refused")
        return real_export(img, cell, fmt, cfg)

    monkeypatch.setattr(export_mod, "export_cell", flaky)
    target = tmp_path / "partial.zip"

    with pytest.raises(EncodeError):
        export_zip(image, cells, "jpg", target)

    with zipfile.ZipFile(target) as zf:
        assert zf.namelist() == ["sticker_1_1.jpg", "sticker_1_2.jpg"]


def test_cell_thumbnail_fits_box(static_png):
    image = load_image(static_png)
    thumb = cell_thumbnail(image, cells_for(image, 1, 1)[0], size=40)
    assert max(thumb.size) == 40
    assert np.asarray(thumb).shape[2] == 4
