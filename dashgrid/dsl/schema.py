"""Pydantic v2 models for the dashboard layout schema.

This module defines the core data structures for representing a dashboard
mockup as a flat collection of blocks on an integer column grid. All
coordinates are 1-based grid units; spans are counted in whole units.

Nesting is expressed with weak references: a child block stores the id of its
container in ``parent_id`` and is resolved by lookup through the layout. The
JSON wire format uses the editor's camelCase names (``colStart``, ``type``,
``parentBlockId``, ``heroProperties``); models accept either spelling.
"""

import uuid
from enum import Enum
from typing import Annotated, Iterable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class BlockKind(str, Enum):
    """Supported block kinds. HERO is the only container kind."""

    HERO = "hero_section"
    STATS = "stats_tile"
    LIST = "list_tile"
    METRIC = "metric_card"
    IMAGE = "image_card"
    CHART = "analytics_panel"
    EMPTY = "empty_slot"


class StackDirection(str, Enum):
    """Axis along which a container lays out its children."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


LeafKind = Literal[
    "stats_tile",
    "list_tile",
    "metric_card",
    "image_card",
    "analytics_panel",
    "empty_slot",
]


_MODEL_CONFIG = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# ============================================================================
# Geometry Models
# ============================================================================


class GridPosition(BaseModel):
    """Grid rectangle occupying columns [col_start, col_end) and rows [row_start, row_end)."""

    model_config = _MODEL_CONFIG

    col_start: int = Field(ge=1, description="First column (1-based)")
    col_span: int = Field(ge=1, description="Width in columns")
    row_start: int = Field(ge=1, description="First row (1-based)")
    row_span: int = Field(ge=1, description="Height in rows")

    @property
    def col_end(self) -> int:
        """Exclusive right edge."""
        return self.col_start + self.col_span

    @property
    def row_end(self) -> int:
        """Exclusive bottom edge."""
        return self.row_start + self.row_span

    @property
    def area(self) -> int:
        """Covered grid cells."""
        return self.col_span * self.row_span

    def translated(self, delta_col: int, delta_row: int) -> "GridPosition":
        """Return the same rectangle shifted by a column/row delta."""
        return GridPosition(
            col_start=self.col_start + delta_col,
            col_span=self.col_span,
            row_start=self.row_start + delta_row,
            row_span=self.row_span,
        )

    def resized(self, col_span: int, row_span: int) -> "GridPosition":
        """Return the same anchor with new spans."""
        return GridPosition(
            col_start=self.col_start,
            col_span=col_span,
            row_start=self.row_start,
            row_span=row_span,
        )


class GridSize(BaseModel):
    """Width/height pair in grid units."""

    model_config = _MODEL_CONFIG

    col_span: int = Field(ge=1, description="Width in columns")
    row_span: int = Field(ge=1, description="Height in rows")


class GridDelta(BaseModel):
    """Signed translation in grid units."""

    model_config = _MODEL_CONFIG

    cols: int = Field(default=0, description="Column delta")
    rows: int = Field(default=0, description="Row delta")


class GridCell(BaseModel):
    """A single grid cell (e.g. the cell under the pointer)."""

    model_config = _MODEL_CONFIG

    col: int = Field(ge=1, description="Column (1-based)")
    row: int = Field(ge=1, description="Row (1-based)")


# ============================================================================
# Block Models
# ============================================================================


class ContainerProperties(BaseModel):
    """Container-only payload."""

    model_config = _MODEL_CONFIG

    stack_direction: StackDirection = Field(
        default=StackDirection.HORIZONTAL,
        description="Axis along which children are stacked",
    )


class LeafBlock(BaseModel):
    """A block that cannot host children."""

    model_config = _MODEL_CONFIG

    id: str = Field(description="Unique block identifier")
    type: LeafKind = Field(description="Block kind")
    title: str = Field(default="", description="Human-readable title")
    position: GridPosition = Field(description="Grid rectangle")
    parent_id: Optional[str] = Field(
        default=None,
        alias="parentBlockId",
        description="Id of the hosting container, if nested",
    )
    color: Optional[str] = Field(default=None, description="Hex fill color hint")
    opacity: float = Field(default=1.0, ge=0.0, le=1.0, description="Opacity")
    content: Optional[str] = Field(default=None, description="Text content or image URL")

    @property
    def is_container(self) -> bool:
        return False

    def with_position(self, position: GridPosition) -> "LeafBlock":
        return self.model_copy(update={"position": position})

    def with_parent(self, parent_id: Optional[str]) -> "LeafBlock":
        return self.model_copy(update={"parent_id": parent_id})


class ContainerBlock(BaseModel):
    """A "Hero" section that hosts leaf children along one stack direction."""

    model_config = _MODEL_CONFIG

    id: str = Field(description="Unique block identifier")
    type: Literal["hero_section"] = Field(default="hero_section", description="Block kind")
    title: str = Field(default="", description="Human-readable title")
    position: GridPosition = Field(description="Grid rectangle")
    color: Optional[str] = Field(default=None, description="Hex fill color hint")
    opacity: float = Field(default=1.0, ge=0.0, le=1.0, description="Opacity")
    content: Optional[str] = Field(default=None, description="Text content or image URL")
    hero_properties: ContainerProperties = Field(
        default_factory=ContainerProperties,
        description="Container layout properties",
    )

    @property
    def is_container(self) -> bool:
        return True

    @property
    def parent_id(self) -> None:
        """Containers are always root blocks."""
        return None

    @property
    def stack_direction(self) -> StackDirection:
        return self.hero_properties.stack_direction

    def with_position(self, position: GridPosition) -> "ContainerBlock":
        return self.model_copy(update={"position": position})

    def with_stack_direction(self, direction: StackDirection) -> "ContainerBlock":
        return self.model_copy(update={"hero_properties": ContainerProperties(stack_direction=direction)})


Block = Annotated[
    Union[LeafBlock, ContainerBlock],
    Field(discriminator="type"),
]


def promote_to_container(
    block: Block,
    direction: StackDirection = StackDirection.HORIZONTAL,
) -> ContainerBlock:
    """Turn a leaf into a container, keeping identity, geometry and styling."""
    if isinstance(block, ContainerBlock):
        return block
    return ContainerBlock(
        id=block.id,
        title=block.title,
        position=block.position,
        color=block.color,
        opacity=block.opacity,
        content=block.content,
        hero_properties=ContainerProperties(stack_direction=direction),
    )


# ============================================================================
# Layout Model
# ============================================================================


class Layout(BaseModel):
    """A complete dashboard layout: grid width plus a flat block collection."""

    model_config = _MODEL_CONFIG

    grid_columns: int = Field(default=12, ge=1, description="Number of grid columns")
    blocks: list[Block] = Field(default_factory=list, description="All blocks, any order")

    @model_validator(mode="after")
    def _check_references(self) -> "Layout":
        seen: dict[str, Block] = {}
        for block in self.blocks:
            if block.id in seen:
                raise ValueError(f"Duplicate block id '{block.id}'")
            seen[block.id] = block

        for block in self.blocks:
            if block.parent_id is None:
                continue
            parent = seen.get(block.parent_id)
            if parent is None:
                raise ValueError(f"Block '{block.id}' references missing parent '{block.parent_id}'")
            if not parent.is_container:
                raise ValueError(f"Block '{block.id}' references non-container parent '{parent.id}'")
        return self

    def find_block(self, block_id: str) -> Optional[Block]:
        """Find a block by its id."""
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def get_block(self, block_id: str) -> Block:
        """Get a block by its id, raising KeyError if absent."""
        block = self.find_block(block_id)
        if block is None:
            raise KeyError(f"Block '{block_id}' not found")
        return block

    def children_of(self, container_id: str) -> list[Block]:
        """Direct children of a container."""
        return [b for b in self.blocks if b.parent_id == container_id]

    def root_blocks(self) -> list[Block]:
        """Blocks without a parent."""
        return [b for b in self.blocks if b.parent_id is None]

    def containers(self) -> list[ContainerBlock]:
        return [b for b in self.blocks if isinstance(b, ContainerBlock)]

    def with_blocks(self, blocks: Iterable[Block]) -> "Layout":
        """Return a validated copy holding a different block list."""
        return Layout(grid_columns=self.grid_columns, blocks=list(blocks))

    def replace_positions(self, positions: Mapping[str, GridPosition]) -> "Layout":
        """Return a copy with some blocks moved."""
        if not positions:
            return self
        return self.with_blocks(
            b.with_position(positions[b.id]) if b.id in positions else b
            for b in self.blocks
        )

    def replace_blocks(self, replacements: Mapping[str, Block]) -> "Layout":
        """Return a copy with some blocks swapped for new versions (same ids)."""
        if not replacements:
            return self
        return self.with_blocks(replacements.get(b.id, b) for b in self.blocks)

    def positions(self) -> dict[str, GridPosition]:
        return {b.id: b.position for b in self.blocks}

    @property
    def max_row_end(self) -> int:
        """Largest exclusive bottom edge over all blocks (1 when empty)."""
        return max((b.position.row_end for b in self.blocks), default=1)


# ============================================================================
# Palette
# ============================================================================


class PaletteEntry(BaseModel):
    """Default title and size of a block kind when added from the palette."""

    model_config = _MODEL_CONFIG

    kind: BlockKind
    label: str
    default_cols: int = Field(ge=1)
    default_rows: int = Field(ge=1)


COMPONENT_PALETTE: dict[BlockKind, PaletteEntry] = {
    entry.kind: entry
    for entry in (
        PaletteEntry(kind=BlockKind.HERO, label="Hero Section", default_cols=12, default_rows=10),
        PaletteEntry(kind=BlockKind.STATS, label="Stats Card", default_cols=3, default_rows=6),
        PaletteEntry(kind=BlockKind.METRIC, label="Metric Block", default_cols=4, default_rows=6),
        PaletteEntry(kind=BlockKind.LIST, label="List", default_cols=4, default_rows=8),
        PaletteEntry(kind=BlockKind.CHART, label="Analytics Panel", default_cols=6, default_rows=10),
        PaletteEntry(kind=BlockKind.IMAGE, label="Media / Image", default_cols=6, default_rows=8),
    )
}

FALLBACK_SIZE = GridSize(col_span=4, row_span=6)
FALLBACK_TITLE = "New Block"


def new_block_id() -> str:
    """Generate a fresh block id."""
    return f"block_{uuid.uuid4().hex[:8]}"


def default_size(kind: BlockKind) -> GridSize:
    """Palette size for a kind, falling back to 4x6."""
    entry = COMPONENT_PALETTE.get(BlockKind(kind))
    if entry is None:
        return FALLBACK_SIZE
    return GridSize(col_span=entry.default_cols, row_span=entry.default_rows)


def default_title(kind: BlockKind) -> str:
    entry = COMPONENT_PALETTE.get(BlockKind(kind))
    return entry.label if entry else FALLBACK_TITLE


def make_block(
    block_id: str,
    kind: BlockKind,
    position: GridPosition,
    title: Optional[str] = None,
    parent_id: Optional[str] = None,
    color: Optional[str] = None,
) -> Block:
    """Build the right block variant for a kind."""
    kind = BlockKind(kind)
    title = title if title is not None else default_title(kind)
    if kind == BlockKind.HERO:
        return ContainerBlock(id=block_id, title=title, position=position, color=color)
    return LeafBlock(
        id=block_id,
        type=kind.value,
        title=title,
        position=position,
        parent_id=parent_id,
        color=color,
    )


# ============================================================================
# Persistence / Ingestion Models
# ============================================================================


class LayoutMeta(BaseModel):
    """Document-level settings stored next to the blocks."""

    model_config = _MODEL_CONFIG

    grid_columns: int = Field(default=12, ge=1)
    canvas_background_color: str = Field(default="#F8F9FA", description="Canvas fill color")


class LayoutDocument(BaseModel):
    """Serializable export document: ``{"meta": {...}, "blocks": [...]}``."""

    model_config = _MODEL_CONFIG

    meta: LayoutMeta = Field(default_factory=LayoutMeta)
    blocks: list[Block] = Field(default_factory=list)

    @classmethod
    def from_layout(cls, layout: Layout, canvas_background_color: str = "#F8F9FA") -> "LayoutDocument":
        return cls(
            meta=LayoutMeta(
                grid_columns=layout.grid_columns,
                canvas_background_color=canvas_background_color,
            ),
            blocks=list(layout.blocks),
        )

    def to_layout(self) -> Layout:
        return Layout(grid_columns=self.meta.grid_columns, blocks=list(self.blocks))


class ProposedBlock(BaseModel):
    """One rectangle proposed by the external layout recognition service.

    Position fields are raw and may be missing or out of range; the
    ingestion pipeline normalizes them.
    """

    model_config = _MODEL_CONFIG

    type: BlockKind = Field(description="Proposed block kind")
    title: Optional[str] = Field(default=None, description="Proposed title")
    col_start: Optional[int] = Field(default=None, description="Starting column")
    col_span: Optional[int] = Field(default=None, description="Width in columns")
    row_start: Optional[int] = Field(default=None, description="Approximate starting row")
    row_span: Optional[int] = Field(default=None, description="Height in rows")
    suggested_color: Optional[str] = Field(default=None, description="Hex color hint")
