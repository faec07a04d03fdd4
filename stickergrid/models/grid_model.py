from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import List, Literal, Optional, Sequence, Tuple

from .config import MIN_GAP, GridConfig


Axis = Literal["row", "col"]


@dataclass(frozen=True)
class CellRect:
    """One grid cell in source-image pixel space. row/col are 0-based."""
    x: int
    y: int
    width: int
    height: int
    row: int
    col: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower), the tuple PIL's crop() expects."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class GridBoundaries:
    row_boundaries: Tuple[int, ...]  # rows + 1 entries, 0 .. image_height
    col_boundaries: Tuple[int, ...]  # cols + 1 entries, 0 .. image_width


@dataclass(frozen=True)
class BoundaryHit:
    axis: Axis
    index: int
    is_edge: bool


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _equal_split(count: int, dimension: int) -> Tuple[int, ...]:
    return tuple(_round_half_up(i / count * dimension) for i in range(count + 1))


@dataclass(frozen=True)
class GridModel:
    """Row/column boundary positions over an image.

    The model is immutable: set_grid / move_boundary / redistribute_inner
    return a new GridModel and leave the receiver untouched, so the overlay
    can keep a reference while export code reads another.

    Adjacent boundaries stay at least MIN_GAP apart under every move. An
    equal split of an image smaller than MIN_GAP * (count + 1) can start out
    closer than that; it is left as is.
    """

    image_width: int
    image_height: int
    rows: int
    cols: int
    row_boundaries: Tuple[int, ...]
    col_boundaries: Tuple[int, ...]
    min_gap: int = MIN_GAP

    @classmethod
    def create(cls, image_width: int, image_height: int, config: GridConfig, min_gap: int = MIN_GAP) -> "GridModel":
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")
        return cls(
            image_width=int(image_width),
            image_height=int(image_height),
            rows=config.rows,
            cols=config.cols,
            row_boundaries=_equal_split(config.rows, int(image_height)),
            col_boundaries=_equal_split(config.cols, int(image_width)),
            min_gap=min_gap,
        )

    # -----------------------------
    # Read-only views
    # -----------------------------
    @property
    def config(self) -> GridConfig:
        return GridConfig(rows=self.rows, cols=self.cols)

    @property
    def boundaries(self) -> GridBoundaries:
        return GridBoundaries(row_boundaries=self.row_boundaries, col_boundaries=self.col_boundaries)

    def axis_boundaries(self, axis: Axis) -> Tuple[int, ...]:
        if axis == "row":
            return self.row_boundaries
        if axis == "col":
            return self.col_boundaries
        raise ValueError(f"Unknown axis: {axis!r}")

    def _dimension(self, axis: Axis) -> int:
        return self.image_height if axis == "row" else self.image_width

    def _with_axis(self, axis: Axis, values: Sequence[int]) -> "GridModel":
        if axis == "row":
            return replace(self, row_boundaries=tuple(values))
        return replace(self, col_boundaries=tuple(values))

    # -----------------------------
    # Edits
    # -----------------------------
    def set_grid(self, config: GridConfig) -> "GridModel":
        """Equal split for a new row/col count. Dragged positions are discarded."""
        return GridModel.create(self.image_width, self.image_height, config, self.min_gap)

    def move_boundary(self, axis: Axis, index: int, position: float, redistribute: bool = False) -> "GridModel":
        """Drag one boundary to `position`, clamped so neighbours keep MIN_GAP.

        Interior lines never move their neighbours. Edges (index 0 / last)
        stay inside [0, dimension]; with `redistribute` the interior lines are
        re-spread evenly between the edges afterwards.
        """
        values = list(self.axis_boundaries(axis))
        last = len(values) - 1
        if index < 0 or index > last:
            raise IndexError(f"{axis} boundary index {index} out of range 0..{last}")

        gap = self.min_gap
        dimension = self._dimension(axis)
        segments = last

        if 0 < index < last:
            lo = values[index - 1] + gap
            hi = values[index + 1] - gap
            values[index] = _round_half_up(max(lo, min(hi, position)))
            return self._with_axis(axis, values)

        if index == 0:
            lo, hi = 0, values[1] - gap
            if redistribute:
                # evenly spread lines must still be MIN_GAP apart
                hi = min(hi, values[last] - gap * segments)
        else:
            lo, hi = values[last - 1] + gap, dimension
            if redistribute:
                lo = max(lo, values[0] + gap * segments)

        moved = _round_half_up(max(lo, min(hi, position)))
        values[index] = min(max(moved, 0), dimension)

        model = self._with_axis(axis, values)
        if redistribute:
            model = model.redistribute_inner(axis)
        return model

    def redistribute_inner(self, axis: Axis) -> "GridModel":
        values = list(self.axis_boundaries(axis))
        count = len(values) - 1
        first, last = values[0], values[-1]
        for i in range(1, count):
            values[i] = _round_half_up(first + i / count * (last - first))
        return self._with_axis(axis, values)

    # -----------------------------
    # Queries
    # -----------------------------
    def get_cells(self) -> List[CellRect]:
        """All rows * cols cells, row-major."""
        cells: List[CellRect] = []
        rb, cb = self.row_boundaries, self.col_boundaries
        for r in range(self.rows):
            for c in range(self.cols):
                cells.append(
                    CellRect(
                        x=cb[c],
                        y=rb[r],
                        width=cb[c + 1] - cb[c],
                        height=rb[r + 1] - rb[r],
                        row=r,
                        col=c,
                    )
                )
        return cells

    def cell_at(self, x: float, y: float) -> Optional[CellRect]:
        """Cell containing an image-space point, or None outside the grid."""
        rb, cb = self.row_boundaries, self.col_boundaries
        if not (cb[0] <= x < cb[-1] and rb[0] <= y < rb[-1]):
            return None
        col = max(i for i in range(self.cols) if cb[i] <= x)
        row = max(i for i in range(self.rows) if rb[i] <= y)
        return self.get_cells()[row * self.cols + col]

    def hit_test(self, x: float, y: float, hit_radius: float) -> Optional[BoundaryHit]:
        """First boundary within hit_radius of (x, y). Columns are tested first."""
        for axis, coord, values in (("col", x, self.col_boundaries), ("row", y, self.row_boundaries)):
            last = len(values) - 1
            for i, v in enumerate(values):
                if abs(coord - v) <= hit_radius:
                    return BoundaryHit(axis=axis, index=i, is_edge=i == 0 or i == last)
        return None
