"""Layout editing routes.

Every endpoint is stateless: the request carries the current layout and the
response returns the new one.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dashgrid.api.dependencies import get_engine
from dashgrid.constraints.placement import PlacementMode
from dashgrid.dsl.schema import (
    Block,
    BlockKind,
    GridCell,
    GridDelta,
    GridPosition,
    GridSize,
    Layout,
    ProposedBlock,
    StackDirection,
    default_size,
)
from dashgrid.engine.layout_engine import LayoutEngine

router = APIRouter()


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class LayoutRequest(_CamelModel):
    """Request carrying only a layout."""
    layout: Layout


class AddBlockRequest(LayoutRequest):
    """Request to add a block at the first free slot."""
    kind: BlockKind
    size: Optional[GridSize] = None


class MoveRequest(LayoutRequest):
    """Request to translate a group of blocks."""
    block_ids: list[str] = Field(..., min_length=1)
    delta: GridDelta


class ResizeRequest(LayoutRequest):
    """Request to resize a block to explicit spans."""
    block_id: str
    size: GridSize


class StackDirectionRequest(LayoutRequest):
    """Request to change a container's stack direction."""
    container_id: str
    direction: StackDirection


class ReparentRequest(LayoutRequest):
    """Request to nest a block into a container or detach it."""
    block_id: str
    parent_id: Optional[str] = None


class DeleteRequest(LayoutRequest):
    """Request to delete blocks."""
    block_ids: list[str]
    cascade_to_children: bool = True


class DuplicateRequest(LayoutRequest):
    """Request to duplicate blocks."""
    block_ids: list[str] = Field(..., min_length=1)


class PreviewRequest(LayoutRequest):
    """Request to preview a drop candidate.

    With a moving group, kind and size default to the active (first) block;
    without one, the preview is for a new block from the palette.
    """
    pointer: GridCell
    moving_group: list[str] = Field(default_factory=list)
    kind: Optional[BlockKind] = None
    size: Optional[GridSize] = None


class IngestRequest(_CamelModel):
    """Request to ingest externally proposed rectangles."""
    layout: Optional[Layout] = None
    blocks: list[ProposedBlock]


class ResolveRequest(LayoutRequest):
    """Request to run the collision resolver."""
    moved_ids: list[str] = Field(default_factory=list)
    overrides: dict[str, GridPosition] = Field(default_factory=dict)


class LayoutResponse(_CamelModel):
    """Layout response."""
    layout: Layout


class BlocksResponse(LayoutResponse):
    """Layout response plus the blocks created by the request."""
    blocks: list[Block]


class PreviewResponse(_CamelModel):
    """Drop candidate."""
    position: GridPosition
    parent_id: Optional[str]
    valid: bool
    mode: PlacementMode


class ViolationSchema(_CamelModel):
    """A single constraint violation."""
    rule: str
    message: str
    severity: str
    block_ids: list[str]


class ValidationResponse(_CamelModel):
    """Validation result."""
    is_valid: bool
    score: float
    violations: list[ViolationSchema]


class ResolveResponse(LayoutResponse):
    """Resolver result."""
    iterations: int
    converged: bool
    residual: list[ViolationSchema]


@contextmanager
def _engine_errors() -> Iterator[None]:
    """Translate engine programming errors into HTTP errors."""
    try:
        yield
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e.args[0]) if e.args else "Block not found",
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )


def _violations(violations) -> list[ViolationSchema]:
    return [
        ViolationSchema(rule=v.rule, message=v.message, severity=v.severity, block_ids=v.block_ids)
        for v in violations
    ]


@router.post("/blocks", response_model=BlocksResponse)
async def add_block(request: AddBlockRequest, engine: LayoutEngine = Depends(get_engine)):
    """Add a block at the first free slot."""
    with _engine_errors():
        layout, block = engine.add_block(request.layout, request.kind, request.size)
    return BlocksResponse(layout=layout, blocks=[block])


@router.post("/move", response_model=LayoutResponse)
async def move_blocks(request: MoveRequest, engine: LayoutEngine = Depends(get_engine)):
    """Translate blocks rigidly."""
    with _engine_errors():
        layout = engine.move_group(request.layout, request.block_ids, request.delta)
    return LayoutResponse(layout=layout)


@router.post("/resize", response_model=LayoutResponse)
async def resize_block(request: ResizeRequest, engine: LayoutEngine = Depends(get_engine)):
    """Resize a block; containers redistribute their children."""
    with _engine_errors():
        layout = engine.resize_block(request.layout, request.block_id, request.size)
    return LayoutResponse(layout=layout)


@router.post("/stack-direction", response_model=LayoutResponse)
async def set_stack_direction(request: StackDirectionRequest, engine: LayoutEngine = Depends(get_engine)):
    """Change a container's stack direction."""
    with _engine_errors():
        layout = engine.set_stack_direction(request.layout, request.container_id, request.direction)
    return LayoutResponse(layout=layout)


@router.post("/reparent", response_model=LayoutResponse)
async def reparent_block(request: ReparentRequest, engine: LayoutEngine = Depends(get_engine)):
    """Nest a block into a container, or detach it with a null parent."""
    with _engine_errors():
        layout = engine.reparent(request.layout, request.block_id, request.parent_id)
    return LayoutResponse(layout=layout)


@router.post("/delete", response_model=LayoutResponse)
async def delete_blocks(request: DeleteRequest, engine: LayoutEngine = Depends(get_engine)):
    """Delete blocks, optionally with the children of deleted containers."""
    with _engine_errors():
        layout = engine.delete_blocks(request.layout, request.block_ids, request.cascade_to_children)
    return LayoutResponse(layout=layout)


@router.post("/duplicate", response_model=BlocksResponse)
async def duplicate_blocks(request: DuplicateRequest, engine: LayoutEngine = Depends(get_engine)):
    """Duplicate blocks next to their originals."""
    with _engine_errors():
        layout, copies = engine.duplicate_blocks(request.layout, request.block_ids)
    return BlocksResponse(layout=layout, blocks=copies)


@router.post("/preview", response_model=PreviewResponse)
async def preview_placement(request: PreviewRequest, engine: LayoutEngine = Depends(get_engine)):
    """Compute a drop candidate without changing the layout."""
    with _engine_errors():
        kind, size = request.kind, request.size
        if request.moving_group:
            active = request.layout.get_block(request.moving_group[0])
            kind = kind or BlockKind(active.type)
            size = size or GridSize(col_span=active.position.col_span, row_span=active.position.row_span)
        if kind is None:
            raise ValueError("A kind is required when previewing a new block")
        size = size or default_size(kind)

        candidate = engine.preview_placement(request.pointer, size, kind, request.moving_group, request.layout)

    return PreviewResponse(
        position=candidate.position,
        parent_id=candidate.parent_id,
        valid=candidate.valid,
        mode=candidate.mode,
    )


@router.post("/ingest", response_model=LayoutResponse)
async def ingest_blocks(request: IngestRequest, engine: LayoutEngine = Depends(get_engine)):
    """Ingest a flat list of proposed rectangles."""
    layout = request.layout or engine.new_layout()
    with _engine_errors():
        layout = engine.ingest(layout, request.blocks)
    return LayoutResponse(layout=layout)


@router.post("/validate", response_model=ValidationResponse)
async def validate_layout(request: LayoutRequest, engine: LayoutEngine = Depends(get_engine)):
    """Check a layout against the grid invariants."""
    result = engine.validate(request.layout)
    return ValidationResponse(
        is_valid=result.is_valid,
        score=result.score,
        violations=_violations(result.violations),
    )


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_layout(request: ResolveRequest, engine: LayoutEngine = Depends(get_engine)):
    """Run the collision resolver."""
    with _engine_errors():
        report = engine.resolver.resolve_with_report(request.layout, request.moved_ids, request.overrides)
    return ResolveResponse(
        layout=report.layout,
        iterations=report.iterations,
        converged=report.converged,
        residual=_violations(report.residual),
    )
