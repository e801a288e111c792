"""Free-slot search for newly added or duplicated blocks."""

import logging
from dataclasses import dataclass
from typing import Iterable

from dashgrid.constraints.geometry import rects_overlap
from dashgrid.dsl.schema import Block, GridPosition
from dashgrid.engine.units import SLOT_ROW_BUFFER, SLOT_ROW_CAP

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    """Top-left cell where a new block can be placed."""

    col: int
    row: int

    def position(self, width: int, height: int) -> GridPosition:
        return GridPosition(col_start=self.col, col_span=width, row_start=self.row, row_span=height)


def find_free_slot(
    blocks: Iterable[Block],
    grid_columns: int,
    width: int,
    height: int,
    start_row: int = 1,
    row_cap: int = SLOT_ROW_CAP,
) -> Slot:
    """Find the first free top-left cell for a ``width`` x ``height`` block.

    Candidates are scanned in row-major order from ``start_row``. Only root
    blocks are obstacles, each grown by one row above and below so a new
    block never sits flush against an existing one vertically.

    Args:
        blocks: Current blocks (nested blocks are ignored).
        grid_columns: Grid width.
        width: Block width in columns.
        height: Block height in rows.
        start_row: First row to try.
        row_cap: Rows at or beyond this value are not searched.

    Returns:
        The first free slot, or a slot below everything when the search
        space is exhausted.
    """
    blocks = list(blocks)
    obstacles = [b.position for b in blocks if b.parent_id is None]

    for row in range(start_row, row_cap):
        for col in range(1, grid_columns - width + 2):
            candidate = GridPosition(col_start=col, col_span=width, row_start=row, row_span=height)
            if not any(rects_overlap(candidate, obstacle, SLOT_ROW_BUFFER) for obstacle in obstacles):
                return Slot(col=col, row=row)

    max_bottom = max((b.position.row_end for b in blocks), default=1)
    logger.info(f"No free {width}x{height} slot before row {row_cap}; appending at row {max_bottom + 1}")
    return Slot(col=1, row=max_bottom + 1)
