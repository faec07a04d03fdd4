from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QSplitter

from .controllers.app_controller import AppController
from .core.errors import StickerGridError
from .models.config import ExportConfig, UiConfig
from .ui.cell_panel import CellPanel
from .ui.image_canvas import ImageCanvas


logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.gif *.png *.jpg *.jpeg *.webp *.bmp);;All files (*)"


class MainWindow(QMainWindow):
    def __init__(self, controller: AppController, ui: UiConfig = UiConfig(), export: ExportConfig = ExportConfig()):
        super().__init__()
        self.controller = controller
        self._export = export
        self._last_dir: Optional[Path] = None

        # UI setup
        self.setWindowTitle(ui.window_title)
        self.resize(ui.window_width, ui.window_height)
        self.setAcceptDrops(True)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        self.canvas = ImageCanvas(hit_radius_px=ui.hit_radius_px)
        splitter.addWidget(self.canvas)

        self.panel = CellPanel(controller.state.grid, thumbnail_size=ui.thumbnail_size)
        splitter.addWidget(self.panel)

        splitter.setStretchFactor(0, ui.left_pane_weight)
        splitter.setStretchFactor(1, ui.right_pane_weight)
        splitter.setSizes([int(ui.window_width * 0.75), int(ui.window_width * 0.25)])

        self.panel.setMinimumWidth(ui.right_min_width)
        self.panel.setMaximumWidth(ui.right_max_width)

        self.setCentralWidget(splitter)

        # Wiring: image + overlay
        self.controller.image_changed.connect(self.canvas.set_image)
        self.controller.grid_changed.connect(self.canvas.set_grid_model)
        self.canvas.boundary_moved.connect(self.controller.move_boundary)
        self.canvas.drag_finished.connect(self.controller.finish_drag)
        self.canvas.cell_clicked.connect(self._on_canvas_click)

        # Wiring: panel
        self.panel.grid_requested.connect(self.controller.apply_grid)
        self.panel.redistribute_toggled.connect(self.controller.set_redistribute)
        self.panel.format_selected.connect(self.controller.set_output_format)
        self.panel.cell_toggled.connect(self.controller.toggle_selection)
        self.panel.cell_save_requested.connect(self._save_cell)
        self.panel.select_all_clicked.connect(self.controller.select_all)
        self.panel.deselect_all_clicked.connect(self.controller.deselect_all)
        self.panel.save_selected_clicked.connect(self._save_selected)
        self.panel.save_zip_clicked.connect(self._save_zip)

        self.controller.cells_changed.connect(self._on_cells_changed)
        self.controller.selection_changed.connect(self.panel.set_selection)
        self.controller.format_changed.connect(self.panel.set_format)
        self.controller.redistribute_changed.connect(self.panel.set_redistribute)
        self.controller.status_message.connect(self.statusBar().showMessage)

        QShortcut(QKeySequence.StandardKey.Open, self, activated=self._open_dialog)
        QShortcut(QKeySequence("Ctrl+A"), self, activated=self.controller.select_all)
        QShortcut(QKeySequence("Ctrl+S"), self, activated=self._save_zip)

        self.statusBar().showMessage("Open or drop an image (Ctrl+O)")

    # ------------------------
    # Input
    # ------------------------
    def open_path(self, path: str) -> None:
        try:
            self.controller.load_image(path)
            self._last_dir = Path(path).parent
        except StickerGridError as e:
            self._fail("Failed to load image", e)

    def _open_dialog(self) -> None:
        start = str(self._last_dir or Path.home())
        path, _ = QFileDialog.getOpenFileName(self, "Open image", start, IMAGE_FILTER)
        if path:
            self.open_path(path)

    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event):
        urls = [u for u in event.mimeData().urls() if u.isLocalFile()]
        if urls:
            self.open_path(urls[0].toLocalFile())
            event.acceptProposedAction()

    # ------------------------
    # Cells
    # ------------------------
    @Slot(list)
    def _on_cells_changed(self, cells: list) -> None:
        self.panel.set_cells(self.controller.image, cells)

    @Slot(float, float)
    def _on_canvas_click(self, x: float, y: float) -> None:
        model = self.controller.model
        cell = model.cell_at(x, y) if model is not None else None
        if cell is not None:
            self.controller.toggle_selection(cell.row * model.cols + cell.col)

    # ------------------------
    # Export
    # ------------------------
    def _save_cell(self, index: int) -> None:
        if self.controller.image is None:
            return
        start = str((self._last_dir or Path.home()) / self.controller.sticker_filename(index))
        target, _ = QFileDialog.getSaveFileName(self, "Save sticker", start)
        if not target:
            return
        try:
            self.controller.save_cell(index, target)
        except (StickerGridError, OSError) as e:
            self._fail("Export failed", e)

    def _save_selected(self) -> None:
        if self.controller.image is None or not self.controller.selected_indices():
            return
        start = str(self._last_dir or Path.home())
        out_dir = QFileDialog.getExistingDirectory(self, "Save stickers to", start)
        if not out_dir:
            return
        self.statusBar().showMessage("Exporting...")
        try:
            self.controller.save_selected(out_dir)
        except (StickerGridError, OSError) as e:
            self._fail("Export failed", e)

    def _save_zip(self) -> None:
        if self.controller.image is None:
            return
        start = str((self._last_dir or Path.home()) / self._export.zip_name)
        target, _ = QFileDialog.getSaveFileName(self, "Save ZIP", start, "ZIP archive (*.zip)")
        if not target:
            return
        self.statusBar().showMessage("Packing...")
        try:
            self.controller.save_zip(target)
        except (StickerGridError, OSError) as e:
            self._fail("Export failed", e)

    def _fail(self, title: str, error: Exception) -> None:
        logger.error("%s: %s", title, error)
        self.statusBar().showMessage(f"{title}: {error}")
        QMessageBox.critical(self, title, str(error))
