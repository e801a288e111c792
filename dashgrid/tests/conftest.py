"""Pytest configuration and fixtures."""

import itertools

import pytest
from fastapi.testclient import TestClient

from dashgrid.api.main import app
from dashgrid.dsl.schema import (
    ContainerBlock,
    ContainerProperties,
    GridPosition,
    Layout,
    LeafBlock,
    StackDirection,
)
from dashgrid.engine.layout_engine import LayoutEngine


def pos(col_start: int, col_span: int, row_start: int, row_span: int) -> GridPosition:
    """Shorthand for a grid rectangle."""
    return GridPosition(col_start=col_start, col_span=col_span, row_start=row_start, row_span=row_span)


def leaf(block_id: str, position: GridPosition, parent_id: str | None = None, kind: str = "stats_tile") -> LeafBlock:
    return LeafBlock(id=block_id, type=kind, title=block_id, position=position, parent_id=parent_id)


def container(
    block_id: str,
    position: GridPosition,
    direction: StackDirection = StackDirection.HORIZONTAL,
) -> ContainerBlock:
    return ContainerBlock(
        id=block_id,
        title=block_id,
        position=position,
        hero_properties=ContainerProperties(stack_direction=direction),
    )


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def engine() -> LayoutEngine:
    """Layout engine with predictable block ids."""
    counter = itertools.count(1)
    return LayoutEngine(id_factory=lambda: f"block_{next(counter)}")


@pytest.fixture
def empty_layout() -> Layout:
    return Layout(grid_columns=12)


@pytest.fixture
def hero_with_three_children() -> Layout:
    """Horizontal 12x10 container with three 4-column children."""
    return Layout(
        grid_columns=12,
        blocks=[
            container("hero", pos(1, 12, 1, 10)),
            leaf("c1", pos(1, 4, 2, 8), parent_id="hero"),
            leaf("c2", pos(5, 4, 2, 8), parent_id="hero"),
            leaf("c3", pos(9, 4, 2, 8), parent_id="hero"),
        ],
    )
