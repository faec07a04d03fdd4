from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Literal, Tuple, Union

import numpy as np
from PIL import Image

from ..models.config import ExportConfig
from ..models.grid_model import CellRect
from .errors import EncodeError
from .extraction import crop_animation, crop_static
from .frames import LoadedImage
from .gif_encoder import encode_gif, to_rgb


logger = logging.getLogger(__name__)

OutputFormat = Literal["jpg", "gif"]
OUTPUT_FORMATS: Tuple[OutputFormat, ...] = ("jpg", "gif")


def default_format(image: LoadedImage) -> OutputFormat:
    return "gif" if image.is_gif else "jpg"


def cell_filename(cell: CellRect, fmt: OutputFormat) -> str:
    return f"sticker_{cell.row + 1}_{cell.col + 1}.{fmt}"


def encode_jpeg(pixels: np.ndarray, quality: int = 92) -> bytes:
    buf = io.BytesIO()
    try:
        Image.fromarray(to_rgb(pixels)).save(buf, format="JPEG", quality=int(quality))
    except (OSError, ValueError, SystemError) as e:
        raise EncodeError(f"JPEG encoding failed: {e}") from e
    return buf.getvalue()


def export_cell(image: LoadedImage, cell: CellRect, fmt: OutputFormat, cfg: ExportConfig = ExportConfig()) -> bytes:
    """Encode one cell. GIF input -> animated GIF; static input -> one-frame GIF."""
    if fmt == "gif":
        return encode_gif(crop_animation(image, cell), max_colors=cfg.max_colors)
    if fmt == "jpg":
        return encode_jpeg(crop_static(image, cell), quality=cfg.jpeg_quality)
    raise ValueError(f"Unsupported output format: {fmt!r}")


def iter_cell_exports(
    image: LoadedImage,
    cells: Iterable[CellRect],
    fmt: OutputFormat,
    cfg: ExportConfig = ExportConfig(),
) -> Iterator[Tuple[str, bytes]]:
    """(filename, bytes) per cell, one cell finished before the next starts."""
    for cell in cells:
        data = export_cell(image, cell, fmt, cfg)
        name = cell_filename(cell, fmt)
        logger.debug("Exported %s (%d bytes)", name, len(data))
        yield name, data


def export_cells_to_dir(
    image: LoadedImage,
    cells: Iterable[CellRect],
    fmt: OutputFormat,
    out_dir: Union[str, Path],
    cfg: ExportConfig = ExportConfig(),
) -> List[Path]:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for name, data in iter_cell_exports(image, cells, fmt, cfg):
        path = out / name
        path.write_bytes(data)
        written.append(path)
    logger.info("Wrote %d file(s) to %s", len(written), out)
    return written


def export_zip(
    image: LoadedImage,
    cells: Iterable[CellRect],
    fmt: OutputFormat,
    target: Union[str, Path, BinaryIO],
    cfg: ExportConfig = ExportConfig(),
) -> List[str]:
    """Write every cell into one ZIP archive and return the entry names.

    On failure the archive is closed with the entries already written and
    the error propagates.
    """
    names: List[str] = []
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in iter_cell_exports(image, cells, fmt, cfg):
            zf.writestr(name, data)
            names.append(name)
    logger.info("Packed %d cell(s) into %s", len(names), getattr(target, "name", target))
    return names


def cell_thumbnail(image: LoadedImage, cell: CellRect, size: int = 96) -> Image.Image:
    """Preview of a cell, scaled to fit a size x size box."""
    thumb = Image.fromarray(crop_static(image, cell))
    thumb.thumbnail((size, size))
    return thumb
