from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, FrozenSet, List, Optional, Union

from PySide6.QtCore import QObject, Signal, Slot

from ..core.export import (
    OUTPUT_FORMATS,
    OutputFormat,
    cell_filename,
    default_format,
    export_cell,
    export_cells_to_dir,
    export_zip,
)
from ..core.frames import LoadedImage
from ..core.gif_decoder import Source, load_image
from ..models.config import ExportConfig, GridConfig
from ..models.grid_model import Axis, BoundaryHit, CellRect, GridModel
from ..models.state import AppState


logger = logging.getLogger(__name__)


class AppController(QObject):
    """Application controller (signals-only; no UI code).

    Owns the AppState. The canvas owns pointer capture and reports
    boundary moves through move_boundary / finish_drag; the side panel
    drives grid size, format, selection and export.
    """

    image_changed = Signal(object)           # LoadedImage
    grid_changed = Signal(object)            # GridModel, also mid-drag
    cells_changed = Signal(list)             # list[CellRect], after a committed change
    selection_changed = Signal(object)       # frozenset[int]
    format_changed = Signal(str)
    redistribute_changed = Signal(bool)
    status_message = Signal(str)

    def __init__(self, state: Optional[AppState] = None, export_cfg: ExportConfig = ExportConfig()):
        super().__init__()
        self.state = state or AppState()
        self.export_cfg = export_cfg

    # -----------------------------
    # Image
    # -----------------------------
    def load_image(self, source: Source) -> LoadedImage:
        """Replace the current image. On failure the previous image stays active."""
        image = load_image(source)

        self.state.image = image
        self.state.output_format = default_format(image)

        self.image_changed.emit(image)
        self.format_changed.emit(self.state.output_format)
        self._rebuild_model()
        logger.info("Image replaced; grid reset to %dx%d", self.state.grid.rows, self.state.grid.cols)
        self.status_message.emit(
            f"Loaded {image.name or 'image'}: {image.width}x{image.height}, {image.frame_count} frame(s)"
        )
        return image

    @property
    def image(self) -> Optional[LoadedImage]:
        return self.state.image

    @property
    def model(self) -> Optional[GridModel]:
        return self.state.model

    # -----------------------------
    # Grid
    # -----------------------------
    def set_grid(self, rows: int, cols: int) -> None:
        self.apply_grid(GridConfig.clamped(rows, cols))

    def apply_grid(self, config: GridConfig) -> None:
        self.state.grid = config
        self._rebuild_model()

    def _rebuild_model(self) -> None:
        image = self.state.image
        if image is None:
            return
        self.state.model = GridModel.create(image.width, image.height, self.state.grid)
        self.grid_changed.emit(self.state.model)
        self._commit()

    def _commit(self) -> None:
        self.state.selected.clear()
        self.cells_changed.emit(self.state.cells())
        self.selection_changed.emit(frozenset())

    def set_redistribute(self, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled == self.state.redistribute:
            return
        self.state.redistribute = enabled
        self.redistribute_changed.emit(enabled)

    def hit_test(self, x: float, y: float, radius: float) -> Optional[BoundaryHit]:
        if self.state.model is None:
            return None
        return self.state.model.hit_test(x, y, radius)

    def move_boundary(self, axis: Axis, index: int, position: float) -> None:
        if self.state.model is None:
            return
        self.state.model = self.state.model.move_boundary(axis, index, position, self.state.redistribute)
        self.grid_changed.emit(self.state.model)

    def finish_drag(self) -> None:
        """A drag gesture ended: publish the final cells."""
        if self.state.model is not None:
            self._commit()

    # -----------------------------
    # Selection / format
    # -----------------------------
    @Slot(str)
    def set_output_format(self, fmt: str) -> None:
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {fmt!r}")
        self.state.output_format = fmt  # type: ignore[assignment]
        self.format_changed.emit(fmt)

    def toggle_selection(self, index: int) -> None:
        if not 0 <= index < len(self.state.cells()):
            return
        self.state.selected.symmetric_difference_update({index})
        self.selection_changed.emit(self.selected_indices())

    def set_selection(self, indices) -> None:
        count = len(self.state.cells())
        self.state.selected = {i for i in indices if 0 <= i < count}
        self.selection_changed.emit(self.selected_indices())

    def select_all(self) -> None:
        self.set_selection(range(len(self.state.cells())))

    def deselect_all(self) -> None:
        self.set_selection(())

    def selected_indices(self) -> FrozenSet[int]:
        return frozenset(self.state.selected)

    def selected_cells(self) -> List[CellRect]:
        cells = self.state.cells()
        return [cells[i] for i in sorted(self.state.selected)]

    # -----------------------------
    # Export (pure readers of the state)
    # -----------------------------
    def _require_image(self) -> LoadedImage:
        if self.state.image is None:
            raise RuntimeError("No image loaded")
        return self.state.image

    def export_cell_bytes(self, index: int, fmt: Optional[OutputFormat] = None) -> bytes:
        image = self._require_image()
        cell = self.state.cells()[index]
        return export_cell(image, cell, fmt or self.state.output_format, self.export_cfg)

    def sticker_filename(self, index: int) -> str:
        return cell_filename(self.state.cells()[index], self.state.output_format)

    def save_cell(self, index: int, target: Union[str, Path]) -> Path:
        """Write one sticker in the current output format."""
        path = Path(target)
        path.write_bytes(self.export_cell_bytes(index))
        self.status_message.emit(f"Saved {path.name}")
        return path

    def save_cells(self, indices, out_dir: Union[str, Path]) -> List[Path]:
        image = self._require_image()
        cells = self.state.cells()
        targets = [cells[i] for i in sorted(set(indices))]
        paths = export_cells_to_dir(image, targets, self.state.output_format, out_dir, self.export_cfg)
        self.status_message.emit(f"Saved {len(paths)} sticker(s) to {out_dir}")
        return paths

    def save_selected(self, out_dir: Union[str, Path]) -> List[Path]:
        return self.save_cells(self.state.selected, out_dir)

    def save_zip(self, target: Union[str, Path, BinaryIO]) -> List[str]:
        """ZIP the selection, or every cell when nothing is selected."""
        image = self._require_image()
        cells = self.selected_cells() or self.state.cells()
        names = export_zip(image, cells, self.state.output_format, target, self.export_cfg)
        self.status_message.emit(f"Packed {len(names)} sticker(s)")
        return names
