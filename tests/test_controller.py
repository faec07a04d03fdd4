import zipfile

import pytest

from stickergrid.controllers.app_controller import AppController
from stickergrid.core.errors import DecodeError
from stickergrid.models.config import GridConfig
from stickergrid.models.state import AppState


@pytest.fixture
def controller(qt_app):
    return AppController(AppState(grid=GridConfig(rows=2, cols=2)))


def record(signal):
    seen = []
    signal.connect(lambda *args: seen.append(args[0] if len(args) == 1 else args))
    return seen


def test_load_static_image(controller, static_png):
    images = record(controller.image_changed)
    cells = record(controller.cells_changed)
    formats = record(controller.format_changed)

    controller.load_image(static_png)

    assert len(images) == 1 and images[0].kind == "static"
    assert formats == ["jpg"]
    assert [(c.x, c.y, c.width, c.height) for c in cells[-1]] == [
        (0, 0, 100, 50),
        (100, 0, 100, 50),
        (0, 50, 100, 50),
        (100, 50, 100, 50),
    ]


def test_gif_defaults_to_gif_output(controller, two_frame_gif):
    controller.load_image(two_frame_gif)
    assert controller.state.output_format == "gif"


def test_failed_load_keeps_previous_image(controller, static_png, tmp_path):
    controller.load_image(static_png)
    before = controller.image
    bad = tmp_path / "broken.gif"
    bad.write_bytes(b"nope")

    with pytest.raises(DecodeError):
        controller.load_image(bad)

    assert controller.image is before
    assert len(controller.state.cells()) == 4


def test_set_grid_clamps_and_resets(controller, static_png):
    controller.load_image(static_png)
    controller.move_boundary("col", 1, 60)

    controller.set_grid(0, 50)

    assert controller.state.grid == GridConfig(rows=1, cols=20)
    assert len(controller.state.cells()) == 20
    assert controller.model.col_boundaries[1] == 10


def test_drag_updates_model_then_commits(controller, static_png):
    controller.load_image(static_png)
    models = record(controller.grid_changed)
    cells = record(controller.cells_changed)

    controller.toggle_selection(0)
    controller.move_boundary("col", 1, 150)
    controller.move_boundary("col", 1, 160)
    assert cells == []
    controller.finish_drag()

    assert [m.col_boundaries for m in models] == [(0, 150, 200), (0, 160, 200)]
    assert cells[-1][0].width == 160
    assert controller.selected_indices() == frozenset()


def test_redistribute_mode_applies_to_edges(controller, static_png):
    controller.load_image(static_png)
    controller.set_redistribute(True)

    controller.move_boundary("row", 2, 80)
    assert controller.model.row_boundaries == (0, 40, 80)

    controller.move_boundary("row", 1, 60)
    assert controller.model.row_boundaries == (0, 60, 80)


def test_selection(controller, static_png):
    controller.load_image(static_png)
    changes = record(controller.selection_changed)

    controller.toggle_selection(1)
    controller.toggle_selection(3)
    controller.toggle_selection(1)
    controller.toggle_selection(99)

    assert controller.selected_indices() == frozenset({3})
    assert changes[-1] == frozenset({3})
    controller.select_all()
    assert controller.selected_indices() == frozenset(range(4))
    controller.deselect_all()
    assert controller.selected_indices() == frozenset()


def test_zip_without_selection_exports_all(controller, two_frame_gif, tmp_path):
    controller.load_image(two_frame_gif)
    target = tmp_path / "all.zip"

    names = controller.save_zip(target)

    assert len(names) == 4
    with zipfile.ZipFile(target) as zf:
        assert sorted(zf.namelist()) == sorted(names)


def test_save_selected(controller, static_png, tmp_path):
    controller.load_image(static_png)
    controller.set_selection([2, 0])
    controller.set_output_format("gif")

    paths = controller.save_selected(tmp_path)

    assert [p.name for p in paths] == ["sticker_1_1.gif", "sticker_2_1.gif"]


def test_export_cell_bytes(controller, static_png):
    controller.load_image(static_png)
    assert controller.export_cell_bytes(0, "jpg")[:2] == b"\xff\xd8"


def test_invalid_format(controller):
    with pytest.raises(ValueError):
        controller.set_output_format("tiff")


def test_save_single_cell(controller, two_frame_gif, tmp_path):
    controller.load_image(two_frame_gif)
    assert controller.sticker_filename(3) == "sticker_2_2.gif"

    path = controller.save_cell(3, tmp_path / controller.sticker_filename(3))

    assert path.read_bytes()[:6] == b"GIF89a"


def test_redistribute_change_is_announced_once(controller):
    changes = record(controller.redistribute_changed)
    controller.set_redistribute(True)
    controller.set_redistribute(True)
    controller.set_redistribute(False)
    assert changes == [True, False]
