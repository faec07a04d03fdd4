from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Tuple


logger = logging.getLogger(__name__)

# Smallest allowed distance (image pixels) between two adjacent boundaries.
MIN_GAP = 4

MIN_GRID_SIZE = 1
MAX_GRID_SIZE = 20


@dataclass(frozen=True)
class GridConfig:
    """Grid definition in *image coordinates*.

    rows/cols define how many cells the image is divided into.
    """
    rows: int = 4
    cols: int = 4

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid needs at least one row and column, got {self.rows}x{self.cols}")

    @classmethod
    def clamped(cls, rows: int, cols: int) -> "GridConfig":
        """Build a config from user input, clamping both sides to the allowed range."""
        rows = min(max(int(rows), MIN_GRID_SIZE), MAX_GRID_SIZE)
        cols = min(max(int(cols), MIN_GRID_SIZE), MAX_GRID_SIZE)
        return cls(rows=rows, cols=cols)


# (label, config) pairs shown as preset buttons. "4 x 6" is 6 rows of 4 columns.
GRID_PRESETS: Tuple[Tuple[str, GridConfig], ...] = (
    ("2 x 2", GridConfig(rows=2, cols=2)),
    ("3 x 3", GridConfig(rows=3, cols=3)),
    ("4 x 4", GridConfig(rows=4, cols=4)),
    ("4 x 6", GridConfig(rows=6, cols=4)),
)


@dataclass(frozen=True)
class ExportConfig:
    jpeg_quality: int = 92
    max_colors: int = 256
    zip_name: str = "stickers.zip"


@dataclass(frozen=True)
class UiConfig:
    window_title: str = "Sticker Grid"
    window_width: int = 1100
    window_height: int = 700
    left_pane_weight: int = 5
    right_pane_weight: int = 1
    right_min_width: int = 240
    right_max_width: int = 340

    # Grab distance for grid lines, in *display* pixels.
    hit_radius_px: float = 8.0
    thumbnail_size: int = 96
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer); using %s", name, raw, default)
        return default


def grid_config_from_env(base: GridConfig = GridConfig()) -> GridConfig:
    """
    Overrides:
      - STICKERGRID_ROWS / STICKERGRID_COLS: initial grid size, clamped to [1, 20]
    """
    return GridConfig.clamped(
        _env_int("STICKERGRID_ROWS", base.rows),
        _env_int("STICKERGRID_COLS", base.cols),
    )


def export_config_from_env(base: ExportConfig = ExportConfig()) -> ExportConfig:
    """
    Overrides:
      - STICKERGRID_JPEG_QUALITY: 1..95
      - STICKERGRID_MAX_COLORS: 2..256 colours per GIF frame
    """
    quality = _env_int("STICKERGRID_JPEG_QUALITY", base.jpeg_quality)
    colors = _env_int("STICKERGRID_MAX_COLORS", base.max_colors)
    return replace(
        base,
        jpeg_quality=min(max(quality, 1), 95),
        max_colors=min(max(colors, 2), 256),
    )


def ui_config_from_env(base: UiConfig = UiConfig()) -> UiConfig:
    level = (os.getenv("STICKERGRID_LOG_LEVEL") or base.log_level).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("Unknown STICKERGRID_LOG_LEVEL=%r; using %s", level, base.log_level)
        level = base.log_level
    return replace(base, log_level=level)
