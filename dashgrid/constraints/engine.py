"""Collision resolver and layout validation."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from dashgrid.constraints.containment import constrain_to_container, interior_of, is_contained
from dashgrid.constraints.geometry import in_grid_bounds, is_buffer_violation, is_nesting_pair, rects_overlap
from dashgrid.dsl.schema import Block, ContainerBlock, GridPosition, Layout, StackDirection
from dashgrid.engine.units import EVEN_MIN_CHILD_SPAN, MIN_CHILD_COLS, RESOLVER_MAX_ITERATIONS

logger = logging.getLogger(__name__)


@dataclass
class Violation:
    """Represents a constraint violation."""

    rule: str
    message: str
    severity: str  # "error", "warning", "info"
    block_ids: list[str]
    suggested_fix: dict | None = None


@dataclass
class ConstraintResult:
    """Result of constraint validation."""

    is_valid: bool
    violations: list[Violation]
    score: float  # 0-100 quality score


@dataclass
class ResolveReport:
    """Outcome of a resolver run."""

    layout: Layout
    iterations: int
    converged: bool
    residual: list[Violation] = field(default_factory=list)


class CollisionResolver:
    """Relaxes pairwise overlaps and containment after blocks move.

    The only adjustment ever made to a sibling or root block is pushing it
    down (increasing ``row_start``); children are additionally re-clamped into
    their container on every pass.
    """

    def __init__(self, max_iterations: int = RESOLVER_MAX_ITERATIONS) -> None:
        """Initialize the resolver.

        Args:
            max_iterations: Pass cap before giving up with a best-effort layout.
        """
        self.max_iterations = max_iterations

    def resolve(
        self,
        layout: Layout,
        moved_ids: Iterable[str] = (),
        overrides: Optional[Mapping[str, GridPosition]] = None,
    ) -> Layout:
        """Resolve collisions and return the settled layout.

        Args:
            layout: Current layout (never mutated).
            moved_ids: Blocks the user just moved; these yield to static blocks.
            overrides: New positions for (some of) the moved blocks.

        Returns:
            New layout with overlaps relaxed.
        """
        return self.resolve_with_report(layout, moved_ids, overrides).layout

    def resolve_with_report(
        self,
        layout: Layout,
        moved_ids: Iterable[str] = (),
        overrides: Optional[Mapping[str, GridPosition]] = None,
    ) -> ResolveReport:
        """Resolve collisions and report iterations and residual violations."""
        moved = set(moved_ids)
        overrides = overrides or {}

        positions: dict[str, GridPosition] = {
            b.id: overrides.get(b.id, b.position) for b in layout.blocks
        }
        containers: dict[str, ContainerBlock] = {
            b.id: b for b in layout.blocks if isinstance(b, ContainerBlock)
        }

        order = sorted(
            layout.blocks,
            key=lambda b: (positions[b.id].row_start, positions[b.id].col_start),
        )

        iterations = 0
        changed = True
        while changed and iterations < self.max_iterations:
            changed = False
            iterations += 1

            # Nested constraints
            for block in order:
                parent = containers.get(block.parent_id) if block.parent_id else None
                if parent is None:
                    continue
                host = parent.with_position(positions[parent.id])
                constrained = constrain_to_container(positions[block.id], host)
                if constrained != positions[block.id]:
                    positions[block.id] = constrained
                    changed = True

            # Pairwise collisions
            for i, first in enumerate(order):
                for second in order[i + 1:]:
                    if is_nesting_pair(first, second):
                        continue
                    if not rects_overlap(positions[first.id], positions[second.id]):
                        continue

                    first_moved = first.id in moved
                    second_moved = second.id in moved
                    if first_moved and second_moved:
                        continue

                    if not first_moved and not second_moved:
                        # Gravity settle: the lower block (later on ties) goes below the upper one
                        if positions[first.id].row_start <= positions[second.id].row_start:
                            upper, lower = first, second
                        else:
                            upper, lower = second, first
                    else:
                        upper, lower = (second, first) if first_moved else (first, second)

                    tight_start = positions[upper.id].row_end
                    lower_pos = positions[lower.id]
                    if lower_pos.row_start < tight_start:
                        positions[lower.id] = lower_pos.translated(0, tight_start - lower_pos.row_start)
                        changed = True

        resolved = layout.replace_positions(
            {bid: pos for bid, pos in positions.items() if pos != layout.get_block(bid).position}
        )
        residual = self._residual_overlaps(resolved, moved)

        if changed:
            logger.warning(
                f"Collision resolver hit its {self.max_iterations}-pass cap "
                f"with {len(residual)} residual overlap(s)"
            )
        elif residual:
            logger.debug(f"Resolver left {len(residual)} overlap(s) between co-moved blocks")

        return ResolveReport(
            layout=resolved,
            iterations=iterations,
            converged=not changed,
            residual=residual,
        )

    def validate(self, layout: Layout) -> ConstraintResult:
        """Validate a layout against the engine invariants.

        Args:
            layout: The layout to validate.

        Returns:
            ConstraintResult with violations and score.
        """
        violations: list[Violation] = []

        # Check bounds
        violations.extend(self._check_bounds(layout))

        # Check overlaps
        violations.extend(self._check_overlaps(layout.blocks))

        # Check containment
        violations.extend(self._check_containment(layout))

        # Check container capacity
        violations.extend(self._check_capacity(layout))

        return ConstraintResult(
            is_valid=len([v for v in violations if v.severity == "error"]) == 0,
            violations=violations,
            score=self._calculate_score(violations),
        )

    def _check_bounds(self, layout: Layout) -> list[Violation]:
        """Check that every block stays within the grid columns."""
        violations = []

        for block in layout.blocks:
            pos = block.position
            if in_grid_bounds(pos, layout.grid_columns):
                continue
            violations.append(
                Violation(
                    rule="bounds",
                    message=f"Block {block.id} extends beyond the {layout.grid_columns}-column grid",
                    severity="error",
                    block_ids=[block.id],
                    suggested_fix={"colStart": max(1, min(pos.col_start, layout.grid_columns - pos.col_span + 1))},
                )
            )

        return violations

    def _check_overlaps(self, blocks: list[Block]) -> list[Violation]:
        """Check for overlapping blocks that do not nest into each other."""
        violations = []

        for i, first in enumerate(blocks):
            for second in blocks[i + 1:]:
                if is_buffer_violation(first, second):
                    violations.append(
                        Violation(
                            rule="overlap",
                            message=f"Blocks {first.id} and {second.id} overlap",
                            severity="error",
                            block_ids=[first.id, second.id],
                        )
                    )

        return violations

    def _check_containment(self, layout: Layout) -> list[Violation]:
        """Check that children sit inside their container's interior."""
        violations = []

        for block in layout.blocks:
            if block.parent_id is None:
                continue
            parent = layout.get_block(block.parent_id)
            if not is_contained(block.position, parent):
                fixed = constrain_to_container(block.position, parent)
                violations.append(
                    Violation(
                        rule="containment",
                        message=f"Block {block.id} leaves the interior of {parent.id}",
                        severity="error",
                        block_ids=[block.id, parent.id],
                        suggested_fix=fixed.model_dump(by_alias=True),
                    )
                )

        return violations

    def _check_capacity(self, layout: Layout) -> list[Violation]:
        """Check that containers can host their children at floor size."""
        violations = []

        for container in layout.containers():
            children = layout.children_of(container.id)
            if not children:
                continue
            direction = container.stack_direction
            floor = MIN_CHILD_COLS if direction == StackDirection.HORIZONTAL else EVEN_MIN_CHILD_SPAN
            extent = interior_of(container.position).extent(direction)
            if extent < len(children) * floor:
                violations.append(
                    Violation(
                        rule="capacity",
                        message=(
                            f"Container {container.id} interior ({extent}) cannot host "
                            f"{len(children)} children at {floor} unit(s) each"
                        ),
                        severity="warning",
                        block_ids=[container.id],
                    )
                )

        return violations

    def _residual_overlaps(self, layout: Layout, moved: set[str]) -> list[Violation]:
        residual = []
        for violation in self._check_overlaps(layout.blocks):
            first_id, second_id = violation.block_ids
            if first_id in moved and second_id in moved:
                violation.severity = "info"
            residual.append(violation)
        return residual

    def _calculate_score(self, violations: list[Violation]) -> float:
        """Calculate a quality score based on violations.

        Args:
            violations: List of violations.

        Returns:
            Score from 0-100.
        """
        score = 100.0

        for violation in violations:
            if violation.severity == "error":
                score -= 20
            elif violation.severity == "warning":
                score -= 10
            elif violation.severity == "info":
                score -= 2

        return max(0, score)


def resolve(
    layout: Layout,
    moved_ids: Iterable[str] = (),
    overrides: Optional[Mapping[str, GridPosition]] = None,
    max_iterations: int = RESOLVER_MAX_ITERATIONS,
) -> Layout:
    """Convenience function to resolve collisions.

    Args:
        layout: Current layout.
        moved_ids: Blocks that were just moved.
        overrides: New positions for moved blocks.
        max_iterations: Pass cap.

    Returns:
        Resolved layout.
    """
    return CollisionResolver(max_iterations).resolve(layout, moved_ids, overrides)
