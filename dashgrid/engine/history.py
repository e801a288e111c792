"""Undo/redo checkpoint history kept by the caller, outside the engine."""

from collections import deque
from typing import Optional

from dashgrid.dsl.schema import Layout

from .units import HISTORY_DEPTH


class History:
    """Bounded snapshot log.

    Call ``checkpoint`` with the current layout before applying an edit.
    ``undo``/``redo`` take the layout currently shown and return the one to
    show instead (or None when there is nothing to go back or forward to).
    """

    def __init__(self, depth: int = HISTORY_DEPTH):
        self.depth = depth
        self._past: deque[Layout] = deque(maxlen=depth)
        self._future: deque[Layout] = deque(maxlen=depth)

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def checkpoint(self, layout: Layout) -> None:
        """Record a layout; a new edit discards the redo stack."""
        self._past.append(layout)
        self._future.clear()

    def undo(self, current: Layout) -> Optional[Layout]:
        if not self._past:
            return None
        self._future.appendleft(current)
        return self._past.pop()

    def redo(self, current: Layout) -> Optional[Layout]:
        if not self._future:
            return None
        self._past.append(current)
        return self._future.popleft()

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()
