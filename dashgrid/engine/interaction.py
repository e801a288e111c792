"""
interaction.py — Drag and resize sessions as an explicit state machine.

A session is either Idle, Dragging or Resizing. Each pointer sample
recomputes its result from the snapshot captured when the session began,
never from the previous sample, so rounding never accumulates. Cancelling
simply returns the snapshot.
"""

from dataclasses import dataclass, replace
from typing import Optional, Union
import logging

from dashgrid.constraints.placement import Candidate, commit_placement, expand_selection, preview_placement
from dashgrid.constraints.redistribution import rescale_proportionally, resize_leaf
from dashgrid.dsl.schema import ContainerBlock, GridCell, GridSize, Layout

from .layout_engine import LayoutEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    """No interaction in progress."""


@dataclass(frozen=True)
class Dragging:
    """A drag in progress: snapshot, moving group and the latest pointer cell."""

    snapshot: Layout
    moving_group: tuple[str, ...]
    pointer: GridCell
    candidate: Optional[Candidate] = None

    @property
    def active_id(self) -> str:
        return self.moving_group[0]


@dataclass(frozen=True)
class Resizing:
    """A resize in progress; ``current`` is the last accepted tick."""

    snapshot: Layout
    block_id: str
    current: Layout
    rejected_ticks: int = 0


InteractionState = Union[Idle, Dragging, Resizing]


class InteractionSession:
    """
    Drives one interactive drag or resize at a time.

    Usage:
        session = InteractionSession(engine)
        session.begin_drag(layout, ["block_a"], GridCell(col=1, row=1))
        candidate = session.drag_to(GridCell(col=4, row=2))
        layout = session.end()
    """

    def __init__(self, engine: Optional[LayoutEngine] = None):
        self.engine = engine or LayoutEngine()
        self.state: InteractionState = Idle()

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    def _require(self, kind: type) -> InteractionState:
        if not isinstance(self.state, kind):
            raise RuntimeError(f"Expected a {kind.__name__.lower()} session, current state is {type(self.state).__name__}")
        return self.state

    # -------------------------------------------------------------------------
    # Drag
    # -------------------------------------------------------------------------

    def begin_drag(self, layout: Layout, block_ids: list[str], pointer: GridCell) -> Dragging:
        """Start dragging; the first id is the active block."""
        self._require(Idle)
        group = tuple(expand_selection(layout, block_ids))
        if not group:
            raise ValueError("Nothing to drag")
        self.state = Dragging(snapshot=layout, moving_group=group, pointer=pointer)
        return self.state

    def drag_to(self, pointer: GridCell) -> Candidate:
        """Recompute the candidate for a new top-left cell of the active block."""
        state: Dragging = self._require(Dragging)
        active = state.snapshot.get_block(state.active_id)
        size = GridSize(col_span=active.position.col_span, row_span=active.position.row_span)
        candidate = preview_placement(pointer, size, active.type, state.moving_group, state.snapshot)
        self.state = replace(state, pointer=pointer, candidate=candidate)
        return candidate

    # -------------------------------------------------------------------------
    # Resize
    # -------------------------------------------------------------------------

    def begin_resize(self, layout: Layout, block_id: str) -> Resizing:
        self._require(Idle)
        layout.get_block(block_id)
        self.state = Resizing(snapshot=layout, block_id=block_id, current=layout)
        return self.state

    def resize_to(self, col_span: int, row_span: int) -> Layout:
        """
        Apply one resize tick computed from the snapshot.

        Containers rescale their children proportionally; a rejected tick keeps
        the previous tick's layout. Leaves change span directly.
        """
        state: Resizing = self._require(Resizing)
        block = state.snapshot.get_block(state.block_id)

        if isinstance(block, ContainerBlock):
            result = rescale_proportionally(state.snapshot, state.block_id, col_span, row_span)
            if not result.accepted:
                self.state = replace(state, rejected_ticks=state.rejected_ticks + 1)
                return state.current
            current = self.engine.resolver.resolve(result.layout)
        else:
            current = self.engine.resolver.resolve(resize_leaf(state.snapshot, state.block_id, col_span, row_span))

        self.state = replace(state, current=current)
        return current

    # -------------------------------------------------------------------------
    # End / cancel
    # -------------------------------------------------------------------------

    def end(self) -> Layout:
        """
        Finish the current session and return the committed layout.

        A drag commits its last candidate (invalid or missing candidates
        revert to the snapshot); a resize keeps its last accepted tick.
        """
        state = self.state
        self.state = Idle()

        if isinstance(state, Dragging):
            if state.candidate is None:
                return state.snapshot
            return commit_placement(state.snapshot, state.candidate)
        if isinstance(state, Resizing):
            if state.rejected_ticks:
                logger.debug(f"Resize of {state.block_id} absorbed {state.rejected_ticks} rejected ticks")
            return state.current
        raise RuntimeError("No interaction in progress")

    def cancel(self) -> Layout:
        """Abort the current session and return the snapshot."""
        state = self.state
        if isinstance(state, Idle):
            raise RuntimeError("No interaction in progress")
        self.state = Idle()
        return state.snapshot
