"""Constraint engine module - geometry, collision and placement rules for the layout grid."""

from dashgrid.constraints.containment import (
    Interior,
    constrain_to_container,
    interior_of,
    is_contained,
    shrink_against_siblings,
)
from dashgrid.constraints.engine import (
    CollisionResolver,
    ConstraintResult,
    ResolveReport,
    Violation,
    resolve,
)
from dashgrid.constraints.geometry import (
    contains,
    contains_cell,
    in_grid_bounds,
    is_buffer_violation,
    is_nesting_pair,
    rects_overlap,
)
from dashgrid.constraints.placement import (
    Candidate,
    PlacementMode,
    commit_placement,
    expand_selection,
    preview_placement,
)
from dashgrid.constraints.redistribution import (
    RescaleResult,
    distribute_evenly,
    rescale_proportionally,
    resize_leaf,
)
from dashgrid.constraints.slots import Slot, find_free_slot

__all__ = [
    # Engine
    "CollisionResolver",
    "ConstraintResult",
    "ResolveReport",
    "Violation",
    "resolve",
    # Geometry
    "contains",
    "contains_cell",
    "in_grid_bounds",
    "is_buffer_violation",
    "is_nesting_pair",
    "rects_overlap",
    # Containment
    "Interior",
    "constrain_to_container",
    "interior_of",
    "is_contained",
    "shrink_against_siblings",
    # Slots
    "Slot",
    "find_free_slot",
    # Redistribution
    "RescaleResult",
    "distribute_evenly",
    "rescale_proportionally",
    "resize_leaf",
    # Placement
    "Candidate",
    "PlacementMode",
    "commit_placement",
    "expand_selection",
    "preview_placement",
]
