from stickergrid.core.gif_decoder import load_image
from stickergrid.models.config import GridConfig
from stickergrid.models.grid_model import GridModel
from stickergrid.ui.cell_panel import CellPanel


def record(signal):
    seen = []
    signal.connect(seen.append)
    return seen


def test_set_redistribute_does_not_echo(qt_app):
    panel = CellPanel()
    toggled = record(panel.redistribute_toggled)

    panel.set_redistribute(True)
    assert panel.redistribute_box.isChecked()
    assert toggled == []

    panel.redistribute_box.setChecked(False)
    assert toggled == [False]


def test_gallery_items_request_a_save(qt_app, static_png):
    image = load_image(static_png)
    cells = GridModel.create(image.width, image.height, GridConfig(rows=2, cols=2)).get_cells()
    panel = CellPanel()
    panel.set_cells(image, cells)
    requested = record(panel.cell_save_requested)

    assert panel.list.count() == 4
    panel.request_save(2)
    assert requested == [2]
