from __future__ import annotations

from typing import FrozenSet, List, Optional

import numpy as np
from PySide6.QtCore import QPoint, QSize, Qt, Signal, Slot
from PySide6.QtGui import QIcon, QPixmap
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMenu,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from ..core.export import OUTPUT_FORMATS, cell_thumbnail
from ..core.frames import LoadedImage
from ..models.config import GRID_PRESETS, MAX_GRID_SIZE, MIN_GRID_SIZE, GridConfig
from ..models.grid_model import CellRect
from .image_canvas import rgba_to_qimage


class CellPanel(QWidget):
    """Right pane: grid settings, export settings and the cell gallery."""

    grid_requested = Signal(object)          # GridConfig
    redistribute_toggled = Signal(bool)
    format_selected = Signal(str)
    cell_toggled = Signal(int)
    cell_save_requested = Signal(int)
    select_all_clicked = Signal()
    deselect_all_clicked = Signal()
    save_selected_clicked = Signal()
    save_zip_clicked = Signal()

    def __init__(self, grid: GridConfig = GridConfig(), thumbnail_size: int = 96):
        super().__init__()
        layout = QVBoxLayout(self)
        self._thumb = thumbnail_size
        self._syncing = False

        # --- Grid settings ---
        title = QLabel("Grid")
        title.setStyleSheet("font-size: 14px; font-weight: 700; letter-spacing: 1px;")
        layout.addWidget(title)

        presets = QGridLayout()
        self._preset_buttons: list[QPushButton] = []
        for i, (label, config) in enumerate(GRID_PRESETS):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.clicked.connect(lambda _=False, c=config: self._on_preset(c))
            presets.addWidget(btn, i // 2, i % 2)
            self._preset_buttons.append(btn)
        layout.addLayout(presets)

        custom = QHBoxLayout()
        custom.addWidget(QLabel("Custom"))
        self.rows_spin = self._make_spin(grid.rows)
        self.cols_spin = self._make_spin(grid.cols)
        custom.addWidget(self.rows_spin)
        custom.addWidget(QLabel("x"))
        custom.addWidget(self.cols_spin)
        layout.addLayout(custom)

        self.redistribute_box = QCheckBox("Edges re-split evenly")
        self.redistribute_box.toggled.connect(self.redistribute_toggled.emit)
        layout.addWidget(self.redistribute_box)

        # --- Export settings ---
        export_title = QLabel("Export")
        export_title.setStyleSheet("font-size: 14px; font-weight: 700; letter-spacing: 1px;")
        layout.addWidget(export_title)

        self.format_combo = QComboBox()
        for fmt in OUTPUT_FORMATS:
            self.format_combo.addItem(fmt.upper(), fmt)
        self.format_combo.currentIndexChanged.connect(self._on_format_index)
        layout.addWidget(self.format_combo)

        select_row = QHBoxLayout()
        select_all = QPushButton("Select all")
        select_all.clicked.connect(self.select_all_clicked.emit)
        deselect = QPushButton("Clear")
        deselect.clicked.connect(self.deselect_all_clicked.emit)
        select_row.addWidget(select_all)
        select_row.addWidget(deselect)
        layout.addLayout(select_row)

        self.save_selected_btn = QPushButton("Save selected")
        self.save_selected_btn.setEnabled(False)
        self.save_selected_btn.clicked.connect(self.save_selected_clicked.emit)
        layout.addWidget(self.save_selected_btn)

        zip_btn = QPushButton("Save as ZIP")
        zip_btn.clicked.connect(self.save_zip_clicked.emit)
        layout.addWidget(zip_btn)

        # --- Gallery ---
        self.list = QListWidget()
        self.list.setViewMode(QListWidget.ViewMode.IconMode)
        self.list.setIconSize(QSize(thumbnail_size, thumbnail_size))
        self.list.setResizeMode(QListWidget.ResizeMode.Adjust)
        self.list.setMovement(QListWidget.Movement.Static)
        self.list.setSelectionMode(QListWidget.SelectionMode.NoSelection)
        self.list.itemClicked.connect(self._on_item_clicked)
        self.list.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.list.customContextMenuRequested.connect(self._on_context_menu)
        layout.addWidget(self.list, 1)

        self._sync_presets(grid)

    def _make_spin(self, value: int) -> QSpinBox:
        spin = QSpinBox()
        spin.setRange(MIN_GRID_SIZE, MAX_GRID_SIZE)
        spin.setValue(value)
        spin.valueChanged.connect(self._on_custom)
        return spin

    # -----------------------------
    # Grid controls
    # -----------------------------
    def _sync_presets(self, config: GridConfig) -> None:
        self._syncing = True
        try:
            self.rows_spin.setValue(config.rows)
            self.cols_spin.setValue(config.cols)
            for btn, (_, preset) in zip(self._preset_buttons, GRID_PRESETS):
                btn.setChecked(preset == config)
        finally:
            self._syncing = False

    def _on_preset(self, config: GridConfig) -> None:
        self._sync_presets(config)
        self.grid_requested.emit(config)

    def _on_custom(self, _value: int) -> None:
        if self._syncing:
            return
        config = GridConfig.clamped(self.rows_spin.value(), self.cols_spin.value())
        self._sync_presets(config)
        self.grid_requested.emit(config)

    def _on_format_index(self, index: int) -> None:
        fmt = self.format_combo.itemData(index)
        if fmt and not self._syncing:
            self.format_selected.emit(fmt)

    @Slot(bool)
    def set_redistribute(self, enabled: bool) -> None:
        self.redistribute_box.blockSignals(True)
        try:
            self.redistribute_box.setChecked(enabled)
        finally:
            self.redistribute_box.blockSignals(False)

    @Slot(str)
    def set_format(self, fmt: str) -> None:
        index = self.format_combo.findData(fmt)
        if index < 0 or index == self.format_combo.currentIndex():
            return
        self._syncing = True
        try:
            self.format_combo.setCurrentIndex(index)
        finally:
            self._syncing = False

    # -----------------------------
    # Gallery
    # -----------------------------
    def set_cells(self, image: Optional[LoadedImage], cells: List[CellRect]) -> None:
        self.list.clear()
        if image is None:
            return
        for index, cell in enumerate(cells):
            thumb = cell_thumbnail(image, cell, self._thumb).convert("RGBA")
            pixmap = QPixmap.fromImage(rgba_to_qimage(np.asarray(thumb)))
            item = QListWidgetItem(QIcon(pixmap), f"{cell.row + 1}-{cell.col + 1}")
            item.setData(Qt.ItemDataRole.UserRole, index)
            self.list.addItem(item)

    @Slot(object)
    def set_selection(self, selected: FrozenSet[int]) -> None:
        for i in range(self.list.count()):
            it = self.list.item(i)
            f = it.font()
            f.setBold(i in selected)
            it.setFont(f)
            it.setForeground(Qt.GlobalColor.green if i in selected else Qt.GlobalColor.white)
        count = len(selected)
        self.save_selected_btn.setEnabled(count > 0)
        self.save_selected_btn.setText(f"Save selected ({count})" if count else "Save selected")

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        self.cell_toggled.emit(int(item.data(Qt.ItemDataRole.UserRole)))

    def _on_context_menu(self, pos: QPoint) -> None:
        item = self.list.itemAt(pos)
        if item is None:
            return
        menu = QMenu(self)
        save = menu.addAction("Save sticker...")
        if menu.exec(self.list.viewport().mapToGlobal(pos)) is save:
            self.request_save(int(item.data(Qt.ItemDataRole.UserRole)))

    def request_save(self, index: int) -> None:
        self.cell_save_requested.emit(index)
