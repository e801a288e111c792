"""Drag-and-drop placement preview ("ghost") and commit.

A preview is a non-committed candidate computed from the drag-start
snapshot. Single leaf blocks dropped over a container are previewed in
nested mode (clamped into the container and shrunk to fit between
siblings); everything else is previewed in root mode as a rigid translation
of the whole moving group.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

from dashgrid.constraints.containment import constrain_to_container, shrink_against_siblings
from dashgrid.constraints.geometry import contains_cell, in_grid_bounds, rects_overlap
from dashgrid.dsl.schema import (
    BlockKind,
    ContainerBlock,
    GridCell,
    GridPosition,
    GridSize,
    Layout,
    LeafBlock,
    StackDirection,
)
from dashgrid.engine.units import MIN_CHILD_COLS, MIN_CHILD_ROWS, clamp

logger = logging.getLogger(__name__)


class PlacementMode(str, Enum):
    """How a candidate was derived."""

    NESTED = "nested"
    ROOT = "root"


@dataclass(frozen=True)
class Candidate:
    """A proposed, not yet committed, placement.

    ``positions`` holds the candidate rectangle of every moving block that
    can be represented on the grid (the active block included).
    """

    position: GridPosition
    parent_id: Optional[str]
    valid: bool
    mode: PlacementMode
    positions: dict[str, GridPosition] = field(default_factory=dict)


def expand_selection(layout: Layout, block_ids: Iterable[str]) -> list[str]:
    """Add the children of every selected container to the selection."""
    selected = list(dict.fromkeys(block_ids))
    for block_id in list(selected):
        block = layout.get_block(block_id)
        if block.is_container:
            for child in layout.children_of(block_id):
                if child.id not in selected:
                    selected.append(child.id)
    return selected


def _shift(position: GridPosition, delta_col: int, delta_row: int) -> Optional[GridPosition]:
    if position.col_start + delta_col < 1 or position.row_start + delta_row < 1:
        return None
    return position.translated(delta_col, delta_row)


def _container_under(layout: Layout, cell: GridCell, exclude_id: Optional[str]) -> Optional[ContainerBlock]:
    for container in layout.containers():
        if container.id != exclude_id and contains_cell(container.position, cell.col, cell.row):
            return container
    return None


def _preview_nested(
    snapshot: Layout,
    container: ContainerBlock,
    pointer: GridCell,
    size: GridSize,
    active_id: Optional[str],
) -> Candidate:
    tentative = GridPosition(
        col_start=pointer.col,
        col_span=size.col_span,
        row_start=pointer.row,
        row_span=size.row_span,
    )
    position = constrain_to_container(tentative, container)

    siblings = [c.position for c in snapshot.children_of(container.id) if c.id != active_id]
    min_cols = min(MIN_CHILD_COLS, size.col_span)
    min_rows = min(MIN_CHILD_ROWS, size.row_span)
    direction = container.stack_direction
    floor = min_rows if direction == StackDirection.VERTICAL else min_cols
    position = shrink_against_siblings(position, siblings, direction, floor)

    too_small = position.col_span < min_cols or position.row_span < min_rows
    overlapping = any(rects_overlap(position, sibling) for sibling in siblings)

    return Candidate(
        position=position,
        parent_id=container.id,
        valid=not too_small and not overlapping,
        mode=PlacementMode.NESTED,
        positions={active_id: position} if active_id else {},
    )


def _preview_root(
    snapshot: Layout,
    pointer: GridCell,
    size: GridSize,
    group: Sequence[str],
    active_id: Optional[str],
) -> Candidate:
    grid_columns = snapshot.grid_columns
    anchor = GridPosition(
        col_start=clamp(pointer.col, 1, max(1, grid_columns - size.col_span + 1)),
        col_span=size.col_span,
        row_start=max(1, pointer.row),
        row_span=size.row_span,
    )

    if active_id is None:
        # Palette drop: a brand-new block, nothing else moves
        positions: dict[str, Optional[GridPosition]] = {}
        moving: set[str] = set()
        anchor_candidate = anchor
    else:
        initial = snapshot.get_block(active_id).position
        delta_col = anchor.col_start - initial.col_start
        delta_row = anchor.row_start - initial.row_start
        positions = {
            member: _shift(snapshot.get_block(member).position, delta_col, delta_row)
            for member in group
        }
        moving = set(group)
        anchor_candidate = positions[active_id] or anchor

    valid = True
    members = list(positions.values()) if positions else [anchor_candidate]
    static = [b.position for b in snapshot.blocks if b.id not in moving]
    for member in members:
        if member is None or not in_grid_bounds(member, grid_columns):
            valid = False
            break
        if any(rects_overlap(member, other) for other in static):
            valid = False
            break

    return Candidate(
        position=anchor_candidate,
        parent_id=None,
        valid=valid,
        mode=PlacementMode.ROOT,
        positions={k: v for k, v in positions.items() if v is not None},
    )


def preview_placement(
    pointer: GridCell,
    dragged_size: GridSize,
    dragged_kind: BlockKind,
    moving_group: Sequence[str],
    snapshot: Layout,
) -> Candidate:
    """Compute the drop candidate for the current pointer cell.

    Args:
        pointer: Grid cell the dragged block's top-left corner would occupy.
        dragged_size: Size of the dragged (active) block.
        dragged_kind: Kind of the dragged block.
        moving_group: Ids being dragged, active block first. Empty for a
            palette drop of a new block. Containers drag their children along.
        snapshot: Layout captured when the drag started.

    Returns:
        The candidate placement. Never raises for out-of-bounds or
        overlapping drops; those are reported with ``valid=False``.
    """
    group = expand_selection(snapshot, moving_group)
    active_id = group[0] if group else None
    dragged_kind = BlockKind(dragged_kind)

    single_leaf = dragged_kind != BlockKind.HERO and len(group) <= 1
    if single_leaf:
        container = _container_under(snapshot, pointer, active_id)
        if container is not None:
            return _preview_nested(snapshot, container, pointer, dragged_size, active_id)

    return _preview_root(snapshot, pointer, dragged_size, group, active_id)


def commit_placement(snapshot: Layout, candidate: Candidate) -> Layout:
    """Apply a candidate to the snapshot it was computed from.

    Invalid candidates leave the snapshot unchanged. Valid ones move every
    member to its candidate rectangle without running the collision
    resolver; in root mode a member whose container is not moving with it
    is detached to root level.
    """
    if not candidate.valid:
        logger.debug("Discarded invalid placement candidate")
        return snapshot

    moving = set(candidate.positions)
    replacements = {}
    for block_id, position in candidate.positions.items():
        block = snapshot.get_block(block_id).with_position(position)
        if isinstance(block, LeafBlock):
            if candidate.mode == PlacementMode.NESTED:
                block = block.with_parent(candidate.parent_id)
            elif block.parent_id is not None and block.parent_id not in moving:
                block = block.with_parent(None)
        replacements[block_id] = block

    return snapshot.replace_blocks(replacements)
