"""Containment constraints that keep nested blocks inside their container."""

from dataclasses import dataclass
from typing import Iterable

from dashgrid.constraints.geometry import contains, rects_overlap
from dashgrid.dsl.schema import ContainerBlock, GridPosition, StackDirection
from dashgrid.engine.units import CONTAINER_PADDING_COLS, CONTAINER_PADDING_ROWS


@dataclass(frozen=True)
class Interior:
    """Usable area of a container once padding is subtracted.

    ``min_*``/``max_*`` are inclusive grid coordinates; ``width`` and
    ``height`` never drop below one unit, even for degenerate containers.
    """

    min_col: int
    max_col: int
    min_row: int
    max_row: int
    width: int
    height: int

    def as_position(self) -> GridPosition:
        return GridPosition(
            col_start=self.min_col,
            col_span=self.width,
            row_start=self.min_row,
            row_span=self.height,
        )

    def extent(self, direction: StackDirection) -> int:
        """Interior extent along the distribution axis of a stack direction."""
        return self.width if direction == StackDirection.HORIZONTAL else self.height

    def cross_extent(self, direction: StackDirection) -> int:
        return self.height if direction == StackDirection.HORIZONTAL else self.width


def interior_of(container_position: GridPosition) -> Interior:
    """Compute the interior of a container rectangle.

    One row is reserved at the top and bottom; columns are not padded
    (horizontal padding is applied when rendering).
    """
    pos = container_position
    return Interior(
        min_col=pos.col_start + CONTAINER_PADDING_COLS,
        max_col=pos.col_start + pos.col_span - 1 - CONTAINER_PADDING_COLS,
        min_row=pos.row_start + CONTAINER_PADDING_ROWS,
        max_row=pos.row_start + pos.row_span - 1 - CONTAINER_PADDING_ROWS,
        width=max(1, pos.col_span - 2 * CONTAINER_PADDING_COLS),
        height=max(1, pos.row_span - 2 * CONTAINER_PADDING_ROWS),
    )


def constrain_to_container(child: GridPosition, container: ContainerBlock) -> GridPosition:
    """Clamp a child rectangle into a container's interior.

    A vertical stack forces the child to the full interior width; a
    horizontal stack forces it to the full interior height. Both axes are then
    clamped so the child never crosses the interior's far edge.

    Args:
        child: Proposed child rectangle.
        container: Hosting container (its current position and stack direction).

    Returns:
        The constrained rectangle. Applying it twice gives the same result.
    """
    interior = interior_of(container.position)
    col_start, col_span = child.col_start, child.col_span
    row_start, row_span = child.row_start, child.row_span

    if container.stack_direction == StackDirection.VERTICAL:
        col_start = interior.min_col
        col_span = interior.width
    else:
        row_start = interior.min_row
        row_span = interior.height

    # Height
    row_span = min(row_span, interior.height)
    row_start = max(row_start, interior.min_row)
    if row_start + row_span - 1 > interior.max_row:
        row_start = max(interior.max_row - row_span + 1, interior.min_row)

    # Width
    col_span = min(col_span, interior.width)
    col_start = max(col_start, interior.min_col)
    if col_start + col_span - 1 > interior.max_col:
        col_start = max(interior.max_col - col_span + 1, interior.min_col)

    return GridPosition(
        col_start=col_start,
        col_span=col_span,
        row_start=row_start,
        row_span=row_span,
    )


def is_contained(child: GridPosition, container: ContainerBlock) -> bool:
    """True when the child already sits inside the container's interior."""
    return contains(interior_of(container.position).as_position(), child)


def shrink_against_siblings(
    position: GridPosition,
    siblings: Iterable[GridPosition],
    direction: StackDirection,
    floor: int,
) -> GridPosition:
    """Shrink a child along its stack's free axis so it stops short of the next sibling.

    Horizontal stacks give up width towards the nearest sibling starting at or
    right of ``position``; vertical stacks give up height towards the nearest
    sibling starting at or below it. The span never drops below ``floor``, so
    the result may still overlap; callers re-check.
    """
    siblings = list(siblings)
    if not any(rects_overlap(position, sibling) for sibling in siblings):
        return position

    if direction == StackDirection.VERTICAL:
        below = [s for s in siblings if s.row_start >= position.row_start]
        if not below:
            return position
        nearest = min(below, key=lambda s: s.row_start)
        return position.resized(position.col_span, max(floor, nearest.row_start - position.row_start))

    right = [s for s in siblings if s.col_start >= position.col_start]
    if not right:
        return position
    nearest = min(right, key=lambda s: s.col_start)
    return position.resized(max(floor, nearest.col_start - position.col_start), position.row_span)
