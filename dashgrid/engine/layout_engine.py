"""
layout_engine.py — Layout orchestrator.

The LayoutEngine turns editor intents into new layouts:
1. Receives the current Layout plus the intent parameters
2. Applies the intent (placement, redistribution, reparenting, ...)
3. Settles the result with the collision resolver
4. Returns a new Layout (the input is never mutated)

This is the main entry point for layout editing. Every method is a pure
function of its arguments; undo/redo and interactive sessions live in
``history.py`` and ``interaction.py``.

NOTE: Settings are imported lazily in ``from_settings`` because the API
package imports this module.
"""

from typing import Iterable, Optional, Sequence
import logging

from dashgrid.constraints.containment import constrain_to_container, shrink_against_siblings
from dashgrid.constraints.engine import CollisionResolver, ConstraintResult
from dashgrid.constraints.geometry import rects_overlap
from dashgrid.constraints.placement import (
    Candidate,
    PlacementMode,
    commit_placement,
    expand_selection,
    preview_placement,
)
from dashgrid.constraints.redistribution import distribute_evenly, resize_leaf
from dashgrid.constraints.slots import find_free_slot
from dashgrid.dsl.schema import (
    Block,
    BlockKind,
    ContainerBlock,
    GridCell,
    GridDelta,
    GridPosition,
    GridSize,
    Layout,
    LeafBlock,
    ProposedBlock,
    StackDirection,
    default_size,
    make_block,
    new_block_id,
)
from dashgrid.templates.ingestion import LayoutIngester
from .units import (
    GRID_COLS,
    MIN_CHILD_COLS,
    MIN_CHILD_ROWS,
    MIN_CONTAINER_COLS,
    MIN_CONTAINER_ROWS,
    RESOLVER_MAX_ITERATIONS,
    SLOT_ROW_CAP,
    clamp,
)

logger = logging.getLogger(__name__)


class LayoutEngine:
    """
    Main layout engine that applies editor intents to layouts.

    Usage:
        engine = LayoutEngine()
        layout = engine.new_layout()
        layout, block = engine.add_block(layout, BlockKind.STATS)
    """

    def __init__(
        self,
        grid_columns: int = GRID_COLS,
        resolver: Optional[CollisionResolver] = None,
        slot_row_cap: int = SLOT_ROW_CAP,
        id_factory=new_block_id,
    ):
        """
        Initialize the layout engine.

        Args:
            grid_columns: Column count for new layouts
            resolver: Collision resolver (default: 100-pass cap)
            slot_row_cap: Row cap for the free-slot search
            id_factory: Callable producing fresh block ids
        """
        self.grid_columns = grid_columns
        self.resolver = resolver or CollisionResolver(RESOLVER_MAX_ITERATIONS)
        self.slot_row_cap = slot_row_cap
        self.id_factory = id_factory
        self.ingester = LayoutIngester(resolver=self.resolver, id_factory=id_factory)

    @classmethod
    def from_settings(cls, settings=None) -> "LayoutEngine":
        """Build an engine from application settings (environment driven)."""
        from dashgrid.api.config import get_settings

        settings = settings or get_settings()
        return cls(
            grid_columns=settings.grid_columns,
            resolver=CollisionResolver(settings.resolver_max_iterations),
            slot_row_cap=settings.slot_row_cap,
        )

    def new_layout(self) -> Layout:
        return Layout(grid_columns=self.grid_columns)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(
        self,
        layout: Layout,
        moved_ids: Iterable[str] = (),
        overrides: Optional[dict[str, GridPosition]] = None,
    ) -> Layout:
        return self.resolver.resolve(layout, moved_ids, overrides)

    def validate(self, layout: Layout) -> ConstraintResult:
        return self.resolver.validate(layout)

    def _settle(self, layout: Layout) -> Layout:
        return self.resolver.resolve(layout)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def add_block(
        self,
        layout: Layout,
        kind: BlockKind,
        requested_size: Optional[GridSize] = None,
    ) -> tuple[Layout, Block]:
        """
        Add a block at the first free slot.

        Args:
            layout: Current layout
            kind: Block kind (hero_section creates a horizontal container)
            requested_size: Size in grid units (default: palette size)

        Returns:
            Tuple of (new layout, created block)
        """
        size = requested_size or default_size(kind)
        width = clamp(size.col_span, 1, layout.grid_columns)
        slot = find_free_slot(
            layout.blocks,
            layout.grid_columns,
            width,
            size.row_span,
            row_cap=self.slot_row_cap,
        )
        block = make_block(self.id_factory(), kind, slot.position(width, size.row_span))
        logger.info(f"Added {block.type} block {block.id} at col {slot.col}, row {slot.row}")
        return layout.with_blocks([*layout.blocks, block]), block

    def duplicate_blocks(self, layout: Layout, block_ids: Sequence[str]) -> tuple[Layout, list[Block]]:
        """
        Copy blocks to the first free slot at or below each original.

        Copies are detached to root level and get fresh ids; a duplicated
        container does not copy its children.
        """
        current = layout
        copies: list[Block] = []
        for block_id in block_ids:
            original = current.get_block(block_id)
            pos = original.position
            slot = find_free_slot(
                current.blocks,
                current.grid_columns,
                pos.col_span,
                pos.row_span,
                start_row=pos.row_start,
                row_cap=self.slot_row_cap,
            )
            update = {
                "id": self.id_factory(),
                "title": f"{original.title} (Copy)",
                "position": slot.position(pos.col_span, pos.row_span),
            }
            if isinstance(original, LeafBlock):
                update["parent_id"] = None
            copy = original.model_copy(update=update)
            copies.append(copy)
            current = current.with_blocks([*current.blocks, copy])

        return current, copies

    def drop_new_block(
        self,
        layout: Layout,
        kind: BlockKind,
        pointer: GridCell,
        size: Optional[GridSize] = None,
    ) -> tuple[Layout, Optional[Block]]:
        """
        Drop a new block from the palette at a pointer cell.

        Over a container the block is nested (if the ghost is valid);
        elsewhere it is placed at the clamped pointer cell and yields to
        existing blocks.

        Returns:
            Tuple of (new layout, created block or None if the drop was invalid)
        """
        size = size or default_size(kind)
        candidate = preview_placement(pointer, size, kind, [], layout)
        if candidate.mode == PlacementMode.NESTED and not candidate.valid:
            logger.debug(f"Rejected {BlockKind(kind).value} drop at ({pointer.col}, {pointer.row})")
            return layout, None

        block = make_block(
            self.id_factory(),
            kind,
            candidate.position,
            parent_id=candidate.parent_id,
        )
        placed = layout.with_blocks([*layout.blocks, block])
        placed = self.resolver.resolve(placed, [block.id])
        return placed, placed.get_block(block.id)

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def move_group(self, layout: Layout, block_ids: Iterable[str], delta: GridDelta) -> Layout:
        """
        Translate a group of blocks rigidly by one delta.

        The delta is clamped so the whole group stays on the grid. Containers
        bring their children; children moving without their container are
        detached. If the translated group overlaps a static block, the whole
        group is pushed further down by one shared row offset until it is
        clear, so members keep their relative positions.
        """
        group = expand_selection(layout, block_ids)
        if not group:
            return layout

        members = [layout.get_block(block_id) for block_id in group]
        min_col = min(b.position.col_start for b in members)
        max_col_end = max(b.position.col_end for b in members)
        min_row = min(b.position.row_start for b in members)
        delta_col = max(1 - min_col, min(layout.grid_columns + 1 - max_col_end, delta.cols))
        delta_row = max(1 - min_row, delta.rows)

        moving = set(group)
        static = [b.position for b in layout.blocks if b.id not in moving]
        requested_row = delta_row
        while True:
            targets = [b.position.translated(delta_col, delta_row) for b in members]
            push = max(
                (other.row_end - target.row_start
                 for target in targets for other in static if rects_overlap(target, other)),
                default=0,
            )
            if not push:
                break
            delta_row += push
        if delta_row != requested_row:
            logger.debug(f"Group move of {len(group)} blocks collides; pushed to row delta {delta_row}")

        replacements: dict[str, Block] = {}
        for block, target in zip(members, targets):
            moved = block.with_position(target)
            if isinstance(moved, LeafBlock) and moved.parent_id is not None and moved.parent_id not in moving:
                moved = moved.with_parent(None)
            replacements[block.id] = moved
        return layout.replace_blocks(replacements)

    def update_position(self, layout: Layout, block_id: str, position: GridPosition) -> Layout:
        """
        Set a block's position from the property panel.

        Columns are clamped into the grid. Moving a container translates its
        children by the same delta.
        """
        block = layout.get_block(block_id)
        col_start = clamp(position.col_start, 1, layout.grid_columns)
        position = GridPosition(
            col_start=col_start,
            col_span=clamp(position.col_span, 1, layout.grid_columns - col_start + 1),
            row_start=position.row_start,
            row_span=position.row_span,
        )

        overrides = {block_id: position}
        if block.is_container:
            delta_col = position.col_start - block.position.col_start
            delta_row = position.row_start - block.position.row_start
            for child in layout.children_of(block_id):
                overrides[child.id] = child.position.translated(delta_col, delta_row)

        return self.resolver.resolve(layout, overrides.keys(), overrides)

    # -------------------------------------------------------------------------
    # Resizing and redistribution
    # -------------------------------------------------------------------------

    def resize_block(self, layout: Layout, block_id: str, new_span: GridSize) -> Layout:
        """
        Resize a block to explicit spans.

        Containers are redistributed evenly (and enlarged if their children do
        not fit); leaves change span directly. The result is settled by the
        collision resolver.
        """
        block = layout.get_block(block_id)
        if not isinstance(block, ContainerBlock):
            return self._settle(resize_leaf(layout, block_id, new_span.col_span, new_span.row_span))

        available = layout.grid_columns - block.position.col_start + 1
        col_span = clamp(new_span.col_span, min(MIN_CONTAINER_COLS, available), available)
        row_span = max(MIN_CONTAINER_ROWS, new_span.row_span)
        resized = layout.replace_positions({block_id: block.position.resized(col_span, row_span)})
        return self._settle(distribute_evenly(resized, block_id))

    def set_stack_direction(self, layout: Layout, container_id: str, direction: StackDirection) -> Layout:
        """Switch a container's stack direction and redistribute its children evenly."""
        redistributed = distribute_evenly(layout, container_id, StackDirection(direction))
        return self._settle(redistributed)

    # -------------------------------------------------------------------------
    # Hierarchy
    # -------------------------------------------------------------------------

    def reparent(self, layout: Layout, block_id: str, new_parent_id: Optional[str]) -> Layout:
        """
        Move a block into a container, or detach it to root level.

        Raises:
            KeyError: If either id is unknown
            ValueError: If the block is a container or the new parent is not one
        """
        block = layout.get_block(block_id)
        if new_parent_id is not None and block.is_container:
            raise ValueError(f"Container '{block_id}' cannot be nested")
        if not isinstance(block, LeafBlock):
            return layout

        if new_parent_id is None:
            if block.parent_id is None:
                return layout
            detached = layout.replace_blocks({block_id: block.with_parent(None)})
            return self.resolver.resolve(detached, [block_id])

        parent = layout.get_block(new_parent_id)
        if not isinstance(parent, ContainerBlock):
            raise ValueError(f"Block '{new_parent_id}' is not a container")

        position = constrain_to_container(block.position, parent)
        siblings = [c.position for c in layout.children_of(parent.id) if c.id != block_id]
        floor = MIN_CHILD_ROWS if parent.stack_direction == StackDirection.VERTICAL else MIN_CHILD_COLS
        position = shrink_against_siblings(position, siblings, parent.stack_direction, floor)

        nested = layout.replace_blocks({block_id: block.with_parent(parent.id).with_position(position)})
        if any(rects_overlap(position, sibling) for sibling in siblings):
            nested = distribute_evenly(nested, parent.id)
        return self._settle(nested)

    def delete_blocks(
        self,
        layout: Layout,
        block_ids: Iterable[str],
        cascade_to_children: bool = True,
    ) -> Layout:
        """
        Delete blocks.

        Args:
            layout: Current layout
            block_ids: Blocks to delete
            cascade_to_children: Also delete the children of deleted
                containers; otherwise they are detached to root level
        """
        doomed = {layout.get_block(block_id).id for block_id in block_ids}
        orphans = {b.id for b in layout.blocks if b.parent_id in doomed}
        if cascade_to_children:
            doomed |= orphans

        remaining = []
        for block in layout.blocks:
            if block.id in doomed:
                continue
            if block.id in orphans:
                block = block.with_parent(None)
            remaining.append(block)

        logger.debug(f"Deleted {len(doomed)} blocks")
        return layout.with_blocks(remaining)

    # -------------------------------------------------------------------------
    # Drag and drop
    # -------------------------------------------------------------------------

    def preview_placement(
        self,
        pointer: GridCell,
        dragged_size: GridSize,
        dragged_kind: BlockKind,
        moving_group: Sequence[str],
        snapshot: Layout,
    ) -> Candidate:
        return preview_placement(pointer, dragged_size, dragged_kind, moving_group, snapshot)

    def commit_placement(self, snapshot: Layout, candidate: Candidate) -> Layout:
        return commit_placement(snapshot, candidate)

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def ingest(self, layout: Layout, proposals: Iterable[ProposedBlock]) -> Layout:
        """Ingest externally proposed rectangles (normalize, nest, resolve)."""
        return self.ingester.ingest(layout, proposals)
