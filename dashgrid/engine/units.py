"""
units.py — Grid units, layout constants and rounding helpers.

This is the foundation module. ALL layout math uses these constants and functions.
Never hardcode floors, paddings or caps anywhere else in the codebase.

Grid unit = one integer step of a column or row coordinate (1-based).
"""

import math

# =============================================================================
# GRID DIMENSIONS
# =============================================================================

GRID_COLS = 12
COLUMN_OPTIONS = (12, 16, 24)

# =============================================================================
# CONTAINER INTERIOR (padding in grid units, per side)
# =============================================================================

CONTAINER_PADDING_ROWS = 1  # Header/footer space inside a container
CONTAINER_PADDING_COLS = 0  # Horizontal padding is a rendering concern only

# =============================================================================
# MINIMUM FLOORS
# =============================================================================

# Interactive resize and drag previews
MIN_CHILD_COLS = 1
MIN_CHILD_ROWS = 3
MIN_CONTAINER_ROWS = 5
MIN_CONTAINER_COLS = 5

# Even distribution (direction toggle / property panel edits)
EVEN_MIN_CHILD_SPAN = 2

# =============================================================================
# SAFETY VALVES
# =============================================================================

RESOLVER_MAX_ITERATIONS = 100
SLOT_ROW_CAP = 200
SLOT_ROW_BUFFER = 1  # Free-slot search keeps one empty row above/below root blocks

# Auto-nesting: both spans must reach this to host children
NESTING_MIN_SPAN = 3

# =============================================================================
# INGESTION DEFAULTS
# =============================================================================

DEFAULT_ROW_START = 1
DEFAULT_ROW_SPAN = 4

# =============================================================================
# HISTORY
# =============================================================================

HISTORY_DEPTH = 20

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def clamp(value: int, min_val: int, max_val: int) -> int:
    """Clamp a value between min and max."""
    return max(min_val, min(max_val, value))


def round_half_up(value: float) -> int:
    """Round to the nearest grid unit, halves rounding up (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))
