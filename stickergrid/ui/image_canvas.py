from __future__ import annotations

from typing import Optional

import numpy as np
from PySide6.QtCore import QPointF, Qt, Signal, Slot
from PySide6.QtGui import QBrush, QColor, QImage, QPainter, QPixmap
from PySide6.QtWidgets import QGraphicsPixmapItem, QGraphicsScene, QGraphicsView

from ..core.frames import LoadedImage
from ..models.grid_model import BoundaryHit, GridModel
from .grid_overlay import GridOverlay


def rgba_to_qimage(pixels: np.ndarray) -> QImage:
    """(H, W, 4) uint8 RGBA -> QImage that owns its own copy of the data."""
    height, width = pixels.shape[:2]
    buf = np.ascontiguousarray(pixels, dtype=np.uint8).tobytes()
    return QImage(buf, width, height, 4 * width, QImage.Format.Format_RGBA8888).copy()


class ImageCanvas(QGraphicsView):
    """Left pane: image + grid overlay with draggable boundaries.

    Coordinates for the grid are in *image coordinates* (the pixmap's scene
    rect). Pressing on a boundary grabs it until the button is released;
    while held, moves are reported through boundary_moved and the release
    through drag_finished.
    """

    boundary_moved = Signal(str, int, float)   # axis, index, image-space position
    drag_finished = Signal()
    cell_clicked = Signal(float, float)        # image-space point outside any boundary

    def __init__(self, hit_radius_px: float = 8.0):
        super().__init__()
        self.setScene(QGraphicsScene(self))

        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        self.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        self.setBackgroundBrush(QBrush(QColor(30, 30, 46)))
        self.setMouseTracking(True)

        self._pix_item: Optional[QGraphicsPixmapItem] = None
        self._model: Optional[GridModel] = None
        self._drag: Optional[BoundaryHit] = None
        self._hit_radius_px = hit_radius_px

        # Grid overlay manager
        self._grid = GridOverlay(self.scene())

        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)

    @Slot(object)
    def set_image(self, image: LoadedImage) -> None:
        self._grid.clear()
        self.scene().clear()
        self._grid = GridOverlay(self.scene())
        self._drag = None

        pixmap = QPixmap.fromImage(rgba_to_qimage(image.first_frame()))
        self._pix_item = self.scene().addPixmap(pixmap)
        self._pix_item.setZValue(0)

        self.setSceneRect(self._pix_item.boundingRect())
        self.resetTransform()
        self.fitInView(self.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    @Slot(object)
    def set_grid_model(self, model: GridModel) -> None:
        self._model = model
        self._grid.set_model(model)

    def _hit_radius(self) -> float:
        """Grab distance converted from display pixels to image pixels."""
        scale = self.transform().m11() or 1.0
        return self._hit_radius_px / scale

    def _hit(self, scene_pos: QPointF) -> Optional[BoundaryHit]:
        if self._model is None:
            return None
        return self._model.hit_test(scene_pos.x(), scene_pos.y(), self._hit_radius())

    def _update_cursor(self, hit: Optional[BoundaryHit]) -> None:
        if hit is None:
            self.viewport().unsetCursor()
        elif hit.axis == "col":
            self.viewport().setCursor(Qt.CursorShape.SplitHCursor)
        else:
            self.viewport().setCursor(Qt.CursorShape.SplitVCursor)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self._drag is None:
            pos = self.mapToScene(event.position().toPoint())
            hit = self._hit(pos)
            if hit is not None:
                self._drag = hit
                self._grid.set_hover(hit)
                event.accept()
                return
            self.cell_clicked.emit(pos.x(), pos.y())
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        pos = self.mapToScene(event.position().toPoint())
        if self._drag is not None:
            position = pos.y() if self._drag.axis == "row" else pos.x()
            self.boundary_moved.emit(self._drag.axis, self._drag.index, position)
            event.accept()
            return

        hit = self._hit(pos)
        self._grid.set_hover(hit)
        self._update_cursor(hit)
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if self._drag is not None and event.button() == Qt.MouseButton.LeftButton:
            self._drag = None
            self.drag_finished.emit()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def leaveEvent(self, event):
        if self._drag is None:
            self._grid.set_hover(None)
        super().leaveEvent(event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self._pix_item is not None:
            self.fitInView(self.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    def wheelEvent(self, event):
        factor = 1.15 if event.angleDelta().y() > 0 else (1 / 1.15)
        self.scale(factor, factor)
