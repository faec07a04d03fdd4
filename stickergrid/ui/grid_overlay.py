from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsLineItem, QGraphicsScene

from ..models.grid_model import BoundaryHit, GridModel


class GridOverlay:
    """Draws the grid boundaries and cell labels over the image.

    Everything is kept in *image coordinates*.
    """

    def __init__(self, scene: QGraphicsScene):
        self._scene = scene
        self._model: Optional[GridModel] = None
        self._hover: Optional[BoundaryHit] = None

        self._items: list[QGraphicsItem] = []

        accent = QColor(108, 99, 255)

        self._line_pen = QPen(QColor(accent.red(), accent.green(), accent.blue(), 205))
        self._line_pen.setCosmetic(True)
        self._line_pen.setWidthF(1.5)
        self._line_pen.setStyle(Qt.PenStyle.DashLine)

        self._edge_pen = QPen(self._line_pen)
        self._edge_pen.setColor(QColor(accent.red(), accent.green(), accent.blue(), 80))

        self._hover_pen = QPen(Qt.GlobalColor.yellow)
        self._hover_pen.setCosmetic(True)
        self._hover_pen.setWidthF(2.5)

        self._label_color = QColor(accent.red(), accent.green(), accent.blue(), 130)

    def set_model(self, model: Optional[GridModel]) -> None:
        self._model = model
        self._rebuild()

    def set_hover(self, hit: Optional[BoundaryHit]) -> None:
        if hit == self._hover:
            return
        self._hover = hit
        self._rebuild()

    def clear(self) -> None:
        for item in self._items:
            self._scene.removeItem(item)
        self._items.clear()

    def _pen_for(self, axis: str, index: int, last: int) -> QPen:
        if self._hover is not None and self._hover.axis == axis and self._hover.index == index:
            return self._hover_pen
        return self._edge_pen if index in (0, last) else self._line_pen

    def _add_line(self, x1: float, y1: float, x2: float, y2: float, pen: QPen) -> None:
        li: QGraphicsLineItem = self._scene.addLine(x1, y1, x2, y2, pen)
        li.setZValue(5)
        self._items.append(li)

    def _rebuild(self) -> None:
        self.clear()
        m = self._model
        if m is None:
            return

        cb, rb = m.col_boundaries, m.row_boundaries

        # Vertical lines
        for i, x in enumerate(cb):
            self._add_line(x, 0, x, m.image_height, self._pen_for("col", i, len(cb) - 1))

        # Horizontal lines
        for i, y in enumerate(rb):
            self._add_line(0, y, m.image_width, y, self._pen_for("row", i, len(rb) - 1))

        # 1-based "row,col" labels, only where the cell is big enough to read
        font = QFont()
        font.setPixelSize(max(8, min(m.image_width, m.image_height) // 40))
        for cell in m.get_cells():
            if cell.width < 30 or cell.height < 20:
                continue
            label = self._scene.addSimpleText(f"{cell.row + 1},{cell.col + 1}", font)
            label.setBrush(self._label_color)
            r: QRectF = label.boundingRect()
            label.setPos(cell.x + (cell.width - r.width()) / 2, cell.y + (cell.height - r.height()) / 2)
            label.setZValue(6)
            self._items.append(label)
