"""Container redistribution: even distribution and proportional rescale.

Both algorithms act only on the direct children of one container. Even
distribution is used for stack-direction toggles and explicit size edits;
proportional rescale is used for live resize ticks and is always computed
from the snapshot taken when the resize started.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from dashgrid.constraints.containment import (
    Interior,
    constrain_to_container,
    interior_of,
    shrink_against_siblings,
)
from dashgrid.constraints.geometry import rows_overlap
from dashgrid.dsl.schema import Block, ContainerBlock, GridPosition, Layout, StackDirection
from dashgrid.engine.units import (
    CONTAINER_PADDING_COLS,
    CONTAINER_PADDING_ROWS,
    EVEN_MIN_CHILD_SPAN,
    MIN_CHILD_COLS,
    MIN_CHILD_ROWS,
    MIN_CONTAINER_COLS,
    MIN_CONTAINER_ROWS,
    clamp,
    round_half_up,
)

logger = logging.getLogger(__name__)


@dataclass
class RescaleResult:
    """Outcome of one proportional-rescale tick.

    When ``accepted`` is False, ``layout`` is the unchanged snapshot and
    ``reason`` names the child that would have fallen under its floor.
    """

    layout: Layout
    accepted: bool
    reason: Optional[str] = None


def _require_container(layout: Layout, container_id: str) -> ContainerBlock:
    block = layout.get_block(container_id)
    if not isinstance(block, ContainerBlock):
        raise ValueError(f"Block '{container_id}' is not a container")
    return block


def _stack_order(position: GridPosition, direction: StackDirection) -> tuple[int, int]:
    """Order along the distribution axis; ties keep the order along the other axis."""
    if direction == StackDirection.HORIZONTAL:
        return position.col_start, position.row_start
    return position.row_start, position.col_start


def _stacked_position(
    interior: Interior,
    direction: StackDirection,
    start: int,
    span: int,
) -> GridPosition:
    """Child rectangle at ``start``/``span`` along the distribution axis, filling the cross axis."""
    if direction == StackDirection.HORIZONTAL:
        return GridPosition(col_start=start, col_span=span, row_start=interior.min_row, row_span=interior.height)
    return GridPosition(col_start=interior.min_col, col_span=interior.width, row_start=start, row_span=span)


# ============================================================================
# Even Distribution
# ============================================================================


def distribute_evenly(
    layout: Layout,
    container_id: str,
    stack_direction: Optional[StackDirection] = None,
) -> Layout:
    """Split a container's interior evenly among its children.

    The container is enlarged (never shrunk) until its interior can host every
    child at ``EVEN_MIN_CHILD_SPAN`` along the distribution axis and one child at
    that floor across it. Children keep their order along the new axis; the
    first ``extent % n`` children receive one extra unit.

    Args:
        layout: Current layout.
        container_id: Container whose children are redistributed.
        stack_direction: New stack direction, or None to keep the current one.

    Returns:
        New layout. Unchanged (with a warning) if the enlarged container would
        leave the grid.
    """
    container = _require_container(layout, container_id)
    direction = StackDirection(stack_direction) if stack_direction is not None else container.stack_direction
    container = container.with_stack_direction(direction)

    children = layout.children_of(container_id)
    if not children:
        return layout.replace_blocks({container.id: container})

    count = len(children)
    pad_cols = 2 * CONTAINER_PADDING_COLS
    pad_rows = 2 * CONTAINER_PADDING_ROWS
    if direction == StackDirection.HORIZONTAL:
        required_cols = count * EVEN_MIN_CHILD_SPAN + pad_cols
        required_rows = EVEN_MIN_CHILD_SPAN + pad_rows
    else:
        required_cols = EVEN_MIN_CHILD_SPAN + pad_cols
        required_rows = count * EVEN_MIN_CHILD_SPAN + pad_rows

    pos = container.position
    available = layout.grid_columns - pos.col_start + 1
    if required_cols > available:
        logger.warning(
            f"Container {container_id} needs {required_cols} columns for {count} children "
            f"but only {available} fit; layout left unchanged"
        )
        return layout

    # The container floor gives way at the right edge; the children's extent does not
    col_span = max(min(MIN_CONTAINER_COLS, available), required_cols, pos.col_span)
    row_span = max(MIN_CONTAINER_ROWS, required_rows, pos.row_span)

    container = container.with_position(pos.resized(col_span, row_span))
    interior = interior_of(container.position)

    ordered = sorted(children, key=lambda c: _stack_order(c.position, direction))
    base, remainder = divmod(interior.extent(direction), count)
    offset = interior.min_col if direction == StackDirection.HORIZONTAL else interior.min_row

    replacements: dict[str, Block] = {container.id: container}
    for index, child in enumerate(ordered):
        span = base + (1 if index < remainder else 0)
        replacements[child.id] = child.with_position(_stacked_position(interior, direction, offset, span))
        offset += span

    logger.debug(f"Distributed {count} children of {container_id} {direction.value}ly")
    return layout.replace_blocks(replacements)


# ============================================================================
# Proportional Rescale
# ============================================================================


def container_minimum_span(layout: Layout, container: ContainerBlock) -> tuple[int, int]:
    """Smallest (col_span, row_span) a container may be resized to interactively."""
    children = layout.children_of(container.id)
    pad_rows = 2 * CONTAINER_PADDING_ROWS
    pad_cols = 2 * CONTAINER_PADDING_COLS
    if not children:
        return MIN_CONTAINER_COLS, MIN_CONTAINER_ROWS

    count = len(children)
    if container.stack_direction == StackDirection.HORIZONTAL:
        min_cols = count * MIN_CHILD_COLS + pad_cols
        min_rows = max(MIN_CONTAINER_ROWS, max(_row_floor(c.position) for c in children) + pad_rows)
    else:
        min_cols = MIN_CHILD_COLS + pad_cols
        min_rows = max(MIN_CONTAINER_ROWS, sum(_row_floor(c.position) for c in children) + pad_rows)
    return min_cols, min_rows


def _row_floor(position: GridPosition) -> int:
    # Children already shorter than the floor (e.g. after an even split) keep their height
    return min(MIN_CHILD_ROWS, position.row_span)


def _col_floor(position: GridPosition) -> int:
    return min(MIN_CHILD_COLS, position.col_span)


def _sibling_clamp(snapshot: Layout, container: ContainerBlock, col_span: int, row_span: int) -> int:
    """Stop a root container from growing rightwards into a root sibling sharing its rows."""
    pos = container.position
    grown = pos.resized(pos.col_span, row_span)
    for sibling in snapshot.root_blocks():
        if sibling.id == container.id:
            continue
        if not rows_overlap(grown, sibling.position):
            continue
        if pos.col_end <= sibling.position.col_start:
            col_span = min(col_span, sibling.position.col_start - pos.col_start)
    return col_span


def rescale_proportionally(
    snapshot: Layout,
    container_id: str,
    new_col_span: int,
    new_row_span: int,
) -> RescaleResult:
    """Resize a container and rescale its children from the drag-start snapshot.

    Each child's offset and extent along the distribution axis are multiplied
    by ``new_interior / initial_interior`` and rounded half up. Starts never
    precede the previous child's end and extents are squeezed at the interior's
    far edge; the cross axis fills the interior. If any child would drop below
    its floor the whole tick is rejected.

    Args:
        snapshot: Layout captured when the resize started.
        container_id: Container being resized.
        new_col_span: Requested container width.
        new_row_span: Requested container height.

    Returns:
        RescaleResult with the rescaled layout, or the snapshot if rejected.
    """
    container = _require_container(snapshot, container_id)
    direction = container.stack_direction
    pos = container.position

    min_cols, min_rows = container_minimum_span(snapshot, container)
    available = snapshot.grid_columns - pos.col_start + 1
    col_span = clamp(new_col_span, min(min_cols, available), available)
    row_span = max(min_rows, new_row_span)
    col_span = _sibling_clamp(snapshot, container, col_span, row_span)

    new_pos = pos.resized(col_span, row_span)
    resized = container.with_position(new_pos)
    replacements: dict[str, Block] = {container.id: resized}

    children = snapshot.children_of(container_id)
    if not children:
        return RescaleResult(layout=snapshot.replace_blocks(replacements), accepted=True)

    initial = interior_of(pos)
    current = interior_of(new_pos)
    horizontal = direction == StackDirection.HORIZONTAL
    scale = current.extent(direction) / initial.extent(direction)

    if horizontal:
        axis_min, axis_end = current.min_col, current.max_col + 1
        initial_min = initial.min_col
    else:
        axis_min, axis_end = current.min_row, current.max_row + 1
        initial_min = initial.min_row

    previous_end = axis_min
    ordered = sorted(children, key=lambda c: _stack_order(c.position, direction))
    for child in ordered:
        child_pos = child.position
        if horizontal:
            floor, cross_floor = _col_floor(child_pos), _row_floor(child_pos)
            rel_start, extent = child_pos.col_start - initial_min, child_pos.col_span
        else:
            floor, cross_floor = _row_floor(child_pos), _col_floor(child_pos)
            rel_start, extent = child_pos.row_start - initial_min, child_pos.row_span

        span = max(floor, round_half_up(extent * scale))
        start = max(axis_min + round_half_up(rel_start * scale), previous_end)
        if start + span > axis_end:
            span = axis_end - start

        if span < floor or current.cross_extent(direction) < cross_floor:
            reason = f"child {child.id} would shrink below its floor"
            logger.debug(f"Rejected resize of {container_id} to {col_span}x{row_span}: {reason}")
            return RescaleResult(layout=snapshot, accepted=False, reason=reason)

        replacements[child.id] = child.with_position(_stacked_position(current, direction, start, span))
        previous_end = start + span

    return RescaleResult(layout=snapshot.replace_blocks(replacements), accepted=True)


# ============================================================================
# Leaf Resize
# ============================================================================


def resize_leaf(layout: Layout, block_id: str, new_col_span: int, new_row_span: int) -> Layout:
    """Change a leaf block's spans, keeping it in the grid and inside its container.

    A nested leaf is clamped into the container interior and then gives up
    span along the stack axis so it stops at the next sibling.
    """
    block = layout.get_block(block_id)
    if block.is_container:
        raise ValueError(f"Block '{block_id}' is a container; use container redistribution")

    pos = block.position
    col_span = clamp(new_col_span, MIN_CHILD_COLS, max(MIN_CHILD_COLS, layout.grid_columns - pos.col_start + 1))
    row_span = max(_row_floor(pos), new_row_span)
    resized = pos.resized(col_span, row_span)

    if block.parent_id is not None:
        parent = layout.get_block(block.parent_id)
        resized = constrain_to_container(resized, parent)
        siblings = [s.position for s in layout.children_of(parent.id) if s.id != block.id]
        floor = MIN_CHILD_COLS if parent.stack_direction == StackDirection.HORIZONTAL else _row_floor(pos)
        resized = shrink_against_siblings(resized, siblings, parent.stack_direction, floor)

    return layout.replace_positions({block.id: resized})
