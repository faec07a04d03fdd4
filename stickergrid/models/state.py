from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Set

from .config import GridConfig
from .grid_model import CellRect, GridModel

if TYPE_CHECKING:
    from ..core.export import OutputFormat
    from ..core.frames import LoadedImage


@dataclass
class AppState:
    grid: GridConfig = field(default_factory=GridConfig)
    image: Optional["LoadedImage"] = None
    model: Optional[GridModel] = None
    output_format: "OutputFormat" = "jpg"
    redistribute: bool = False
    selected: Set[int] = field(default_factory=set)

    def cells(self) -> List[CellRect]:
        return self.model.get_cells() if self.model is not None else []
