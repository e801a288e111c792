"""Overlap and containment tests on integer grid rectangles.

Every rectangle is half-open on both axes: a block at column 3 with span 2
covers columns 3 and 4, and touches (but does not overlap) a block at column 5.
"""

from dashgrid.dsl.schema import Block, GridPosition


def intervals_overlap(a_start: int, a_span: int, b_start: int, b_span: int) -> bool:
    """Check whether [a_start, a_start + a_span) and [b_start, b_start + b_span) intersect."""
    return a_start < b_start + b_span and b_start < a_start + a_span


def columns_overlap(a: GridPosition, b: GridPosition) -> bool:
    return intervals_overlap(a.col_start, a.col_span, b.col_start, b.col_span)


def rows_overlap(a: GridPosition, b: GridPosition, buffer: int = 0) -> bool:
    """Row-interval intersection, with ``b`` optionally grown by ``buffer`` rows above and below."""
    return intervals_overlap(a.row_start, a.row_span, b.row_start - buffer, b.row_span + 2 * buffer)


def rects_overlap(a: GridPosition, b: GridPosition, row_buffer: int = 0) -> bool:
    """Check if two grid rectangles share at least one cell.

    Args:
        a: First rectangle.
        b: Second rectangle (the one grown by ``row_buffer``).
        row_buffer: Extra rows added above and below ``b``.

    Returns:
        True if they overlap.
    """
    return columns_overlap(a, b) and rows_overlap(a, b, row_buffer)


def is_nesting_pair(a: Block, b: Block) -> bool:
    """True when one block is the direct parent of the other."""
    return a.parent_id == b.id or b.parent_id == a.id


def is_buffer_violation(a: Block, b: Block) -> bool:
    """Two blocks violate when their rectangles overlap and neither hosts the other."""
    if is_nesting_pair(a, b):
        return False
    return rects_overlap(a.position, b.position)


def contains(outer: GridPosition, inner: GridPosition) -> bool:
    """Check that ``inner`` lies fully inside ``outer`` (all four edges)."""
    return (
        inner.col_start >= outer.col_start
        and inner.col_end <= outer.col_end
        and inner.row_start >= outer.row_start
        and inner.row_end <= outer.row_end
    )


def contains_cell(position: GridPosition, col: int, row: int) -> bool:
    return position.col_start <= col < position.col_end and position.row_start <= row < position.row_end


def in_grid_bounds(position: GridPosition, grid_columns: int) -> bool:
    """Columns inside [1, grid_columns]; rows only need to start at 1 or later."""
    return position.col_start >= 1 and position.col_end - 1 <= grid_columns and position.row_start >= 1
