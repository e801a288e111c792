# dashgrid Layout Engine
#
# The orchestrator and interaction sessions import the constraints package,
# which itself depends on the units below; import them from their modules
# (dashgrid.engine.layout_engine, .interaction, .history).

from .units import (
    GRID_COLS,
    COLUMN_OPTIONS,
    CONTAINER_PADDING_COLS,
    CONTAINER_PADDING_ROWS,
    EVEN_MIN_CHILD_SPAN,
    HISTORY_DEPTH,
    MIN_CHILD_COLS,
    MIN_CHILD_ROWS,
    MIN_CONTAINER_COLS,
    MIN_CONTAINER_ROWS,
    RESOLVER_MAX_ITERATIONS,
    SLOT_ROW_CAP,
    clamp,
    round_half_up,
)

__all__ = [
    'GRID_COLS',
    'COLUMN_OPTIONS',
    'CONTAINER_PADDING_COLS',
    'CONTAINER_PADDING_ROWS',
    'EVEN_MIN_CHILD_SPAN',
    'HISTORY_DEPTH',
    'MIN_CHILD_COLS',
    'MIN_CHILD_ROWS',
    'MIN_CONTAINER_COLS',
    'MIN_CONTAINER_ROWS',
    'RESOLVER_MAX_ITERATIONS',
    'SLOT_ROW_CAP',
    'clamp',
    'round_half_up',
]
