"""Layout ingestion pipeline - import externally proposed rectangles as blocks."""

import logging
from typing import Callable, Iterable, Optional

from dashgrid.constraints.engine import CollisionResolver
from dashgrid.constraints.geometry import contains
from dashgrid.constraints.redistribution import distribute_evenly
from dashgrid.dsl.schema import (
    Block,
    GridPosition,
    Layout,
    ProposedBlock,
    StackDirection,
    make_block,
    new_block_id,
    promote_to_container,
)
from dashgrid.engine.units import DEFAULT_ROW_SPAN, DEFAULT_ROW_START, NESTING_MIN_SPAN, clamp

logger = logging.getLogger(__name__)

RECONSTRUCTED_TITLE = "Reconstructed Block"


def normalize_proposal(
    proposal: ProposedBlock,
    grid_columns: int,
    block_id: str,
) -> Block:
    """Turn one raw proposal into a block that fits the grid.

    Column fields are clamped into ``[1, grid_columns]`` (the span also to the
    columns left after the start). Missing or non-positive row fields fall
    back to row 1 and a 4-row span; no larger guesses are made.
    """
    col_start = clamp(proposal.col_start or 1, 1, grid_columns)
    col_span = clamp(proposal.col_span or 1, 1, grid_columns - col_start + 1)
    row_start = proposal.row_start if proposal.row_start and proposal.row_start > 0 else DEFAULT_ROW_START
    row_span = proposal.row_span if proposal.row_span and proposal.row_span > 0 else DEFAULT_ROW_SPAN

    return make_block(
        block_id=block_id,
        kind=proposal.type,
        position=GridPosition(
            col_start=col_start,
            col_span=col_span,
            row_start=row_start,
            row_span=row_span,
        ),
        title=proposal.title or RECONSTRUCTED_TITLE,
        color=proposal.suggested_color,
    )


def _can_host(block: Block) -> bool:
    pos = block.position
    return block.is_container or (pos.col_span >= NESTING_MIN_SPAN and pos.row_span >= NESTING_MIN_SPAN)


def infer_hierarchy(blocks: Iterable[Block]) -> list[Block]:
    """Infer parent/child relationships from containment.

    Blocks are visited largest first. A block that is a container, or that
    is at least 3x3, adopts every not-yet-assigned leaf lying fully inside
    it and is promoted to a horizontal container. Nested blocks never host
    and containers are never nested, so the result has one nesting level.

    Greedy and single pass: the result is not re-validated against the
    containment or redistribution rules.

    Args:
        blocks: Flat block list.

    Returns:
        The same blocks (same order) with ``parent_id`` and promotions filled in.
    """
    blocks = list(blocks)
    current: dict[str, Block] = {b.id: b for b in blocks}
    parent_of: dict[str, str] = {b.id: b.parent_id for b in blocks if b.parent_id is not None}
    hosts: set[str] = set(parent_of.values())

    by_area = sorted(blocks, key=lambda b: b.position.area, reverse=True)
    for host in by_area:
        if host.id in parent_of or not _can_host(current[host.id]):
            continue

        for other in by_area:
            if other.id == host.id or other.id in parent_of or other.id in hosts:
                continue
            if current[other.id].is_container:
                continue
            if not contains(host.position, other.position):
                continue

            parent_of[other.id] = host.id
            hosts.add(host.id)
            if not current[host.id].is_container:
                current[host.id] = promote_to_container(current[host.id], StackDirection.HORIZONTAL)
                logger.debug(f"Promoted {host.id} to container")

    result = []
    for block in blocks:
        resolved = current[block.id]
        if not resolved.is_container:
            resolved = resolved.with_parent(parent_of.get(block.id))
        result.append(resolved)
    return result


class LayoutIngester:
    """Ingests flat rectangle proposals into a layout.

    The ingestion process:
    1. Normalize each proposal into a grid-safe block
    2. Infer the container hierarchy by containment
    3. Evenly distribute the children of every container that gained any
    4. Settle the combined layout with the collision resolver
    """

    def __init__(
        self,
        resolver: CollisionResolver | None = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        """Initialize the ingester.

        Args:
            resolver: Collision resolver used for the final settle.
            id_factory: Generates ids for new blocks.
        """
        self.resolver = resolver or CollisionResolver()
        self.id_factory = id_factory or new_block_id

    def build_blocks(self, proposals: Iterable[ProposedBlock], grid_columns: int) -> list[Block]:
        """Normalize proposals and infer their hierarchy."""
        normalized = [
            normalize_proposal(proposal, grid_columns, self.id_factory())
            for proposal in proposals
        ]
        return infer_hierarchy(normalized)

    def ingest(self, layout: Layout, proposals: Iterable[ProposedBlock]) -> Layout:
        """Append ingested blocks to a layout and resolve collisions.

        Args:
            layout: Existing layout.
            proposals: Raw proposals from the recognition service.

        Returns:
            New layout holding the existing and the ingested blocks.
        """
        new_blocks = self.build_blocks(proposals, layout.grid_columns)
        combined = layout.with_blocks([*layout.blocks, *new_blocks])

        for block in new_blocks:
            if block.is_container and combined.children_of(block.id):
                combined = distribute_evenly(combined, block.id)

        report = self.resolver.resolve_with_report(combined)
        containers = sum(1 for b in new_blocks if b.is_container)
        logger.info(
            f"Ingested {len(new_blocks)} blocks ({containers} containers) "
            f"in {report.iterations} resolver passes"
        )
        return report.layout
