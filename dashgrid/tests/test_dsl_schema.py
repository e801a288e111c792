"""Tests for the layout schema models."""

import pytest
from pydantic import ValidationError

from conftest import container, leaf, pos
from dashgrid.dsl.schema import (
    BlockKind,
    ContainerBlock,
    GridPosition,
    GridSize,
    Layout,
    LayoutDocument,
    LeafBlock,
    ProposedBlock,
    StackDirection,
    default_size,
    default_title,
    make_block,
    promote_to_container,
)


# ============================================================================
# GridPosition Tests
# ============================================================================

class TestGridPosition:
    """Tests for grid rectangles."""

    def test_exclusive_edges(self) -> None:
        """Ends are start + span."""
        position = pos(3, 2, 5, 4)
        assert position.col_end == 5
        assert position.row_end == 9
        assert position.area == 8

    def test_translated_and_resized(self) -> None:
        """Derived rectangles keep the other half untouched."""
        position = pos(3, 2, 5, 4)
        assert position.translated(1, -2) == pos(4, 2, 3, 4)
        assert position.resized(6, 1) == pos(3, 6, 5, 1)

    def test_rejects_zero_span(self) -> None:
        """Spans must be at least one unit."""
        with pytest.raises(ValidationError):
            GridPosition(col_start=1, col_span=0, row_start=1, row_span=1)

    def test_rejects_zero_start(self) -> None:
        """Coordinates are 1-based."""
        with pytest.raises(ValidationError):
            GridPosition(col_start=0, col_span=1, row_start=1, row_span=1)

    def test_frozen(self) -> None:
        """Positions are immutable values."""
        position = pos(1, 1, 1, 1)
        with pytest.raises(ValidationError):
            position.col_start = 2


# ============================================================================
# Block Tests
# ============================================================================

class TestBlocks:
    """Tests for leaf and container blocks."""

    def test_parse_camel_case_wire_format(self) -> None:
        """The editor's JSON parses into the right variants."""
        layout = Layout.model_validate({
            "gridColumns": 12,
            "blocks": [
                {
                    "id": "hero",
                    "type": "hero_section",
                    "title": "Hero",
                    "position": {"colStart": 1, "colSpan": 12, "rowStart": 1, "rowSpan": 10},
                    "heroProperties": {"stackDirection": "vertical"},
                },
                {
                    "id": "kpi",
                    "type": "stats_tile",
                    "position": {"colStart": 1, "colSpan": 12, "rowStart": 2, "rowSpan": 3},
                    "parentBlockId": "hero",
                },
            ],
        })

        hero, kpi = layout.blocks
        assert isinstance(hero, ContainerBlock)
        assert hero.stack_direction == StackDirection.VERTICAL
        assert isinstance(kpi, LeafBlock)
        assert kpi.parent_id == "hero"

    def test_dump_uses_wire_names(self) -> None:
        """Serialization by alias restores the camelCase names."""
        block = leaf("kpi", pos(1, 3, 1, 6), parent_id=None)
        data = block.model_dump(by_alias=True)
        assert data["position"] == {"colStart": 1, "colSpan": 3, "rowStart": 1, "rowSpan": 6}
        assert "parentBlockId" in data

    def test_unknown_type_rejected(self) -> None:
        """Only known kinds are accepted."""
        with pytest.raises(ValidationError):
            Layout.model_validate({
                "blocks": [{"id": "x", "type": "carousel", "position": {"colStart": 1, "colSpan": 1, "rowStart": 1, "rowSpan": 1}}],
            })

    def test_container_is_always_root(self) -> None:
        """Containers expose a fixed null parent."""
        hero = container("hero", pos(1, 12, 1, 10))
        assert hero.parent_id is None
        assert hero.is_container

    def test_promote_to_container(self) -> None:
        """Promotion keeps identity, geometry and styling."""
        block = LeafBlock(id="a", type="stats_tile", title="A", position=pos(2, 6, 3, 6), color="#112233")
        promoted = promote_to_container(block, StackDirection.VERTICAL)

        assert isinstance(promoted, ContainerBlock)
        assert promoted.id == "a"
        assert promoted.position == block.position
        assert promoted.color == "#112233"
        assert promoted.stack_direction == StackDirection.VERTICAL


# ============================================================================
# Layout Tests
# ============================================================================

class TestLayout:
    """Tests for layout-level validation and helpers."""

    def test_duplicate_ids_rejected(self) -> None:
        """Block ids are unique."""
        with pytest.raises(ValidationError, match="Duplicate block id"):
            Layout(blocks=[leaf("a", pos(1, 1, 1, 1)), leaf("a", pos(3, 1, 1, 1))])

    def test_missing_parent_rejected(self) -> None:
        """Parent references must resolve."""
        with pytest.raises(ValidationError, match="missing parent"):
            Layout(blocks=[leaf("a", pos(1, 1, 1, 1), parent_id="ghost")])

    def test_leaf_parent_rejected(self) -> None:
        """Only containers can host children."""
        with pytest.raises(ValidationError, match="non-container parent"):
            Layout(blocks=[leaf("a", pos(1, 4, 1, 4)), leaf("b", pos(1, 1, 2, 1), parent_id="a")])

    def test_lookups(self, hero_with_three_children: Layout) -> None:
        """Children, roots and containers are found by reference."""
        layout = hero_with_three_children
        assert [b.id for b in layout.children_of("hero")] == ["c1", "c2", "c3"]
        assert [b.id for b in layout.root_blocks()] == ["hero"]
        assert [b.id for b in layout.containers()] == ["hero"]
        assert layout.find_block("nope") is None
        with pytest.raises(KeyError):
            layout.get_block("nope")
        assert layout.max_row_end == 11

    def test_replace_positions_returns_new_layout(self, hero_with_three_children: Layout) -> None:
        """Replacements never mutate the original."""
        original = hero_with_three_children
        moved = original.replace_positions({"c1": pos(1, 2, 2, 8)})

        assert moved.get_block("c1").position == pos(1, 2, 2, 8)
        assert original.get_block("c1").position == pos(1, 4, 2, 8)

    def test_document_round_trip(self, hero_with_three_children: Layout) -> None:
        """Export documents carry meta and blocks."""
        document = LayoutDocument.from_layout(hero_with_three_children, canvas_background_color="#FFFFFF")
        data = document.model_dump(by_alias=True)

        assert data["meta"] == {"gridColumns": 12, "canvasBackgroundColor": "#FFFFFF"}
        restored = LayoutDocument.model_validate(data).to_layout()
        assert restored == hero_with_three_children


# ============================================================================
# Palette Tests
# ============================================================================

class TestPalette:
    """Tests for palette defaults and block construction."""

    def test_default_sizes(self) -> None:
        """Known kinds use palette sizes; others fall back to 4x6."""
        assert default_size(BlockKind.HERO) == GridSize(col_span=12, row_span=10)
        assert default_size(BlockKind.STATS) == GridSize(col_span=3, row_span=6)
        assert default_size(BlockKind.EMPTY) == GridSize(col_span=4, row_span=6)

    def test_default_titles(self) -> None:
        assert default_title(BlockKind.CHART) == "Analytics Panel"
        assert default_title(BlockKind.EMPTY) == "New Block"

    def test_make_block_variants(self) -> None:
        """Hero kinds build containers; everything else builds leaves."""
        hero = make_block("h", BlockKind.HERO, pos(1, 12, 1, 10))
        tile = make_block("t", "list_tile", pos(1, 4, 1, 8), parent_id=None)

        assert isinstance(hero, ContainerBlock)
        assert hero.stack_direction == StackDirection.HORIZONTAL
        assert isinstance(tile, LeafBlock)
        assert tile.title == "List"

    def test_proposed_block_accepts_partial_fields(self) -> None:
        """Proposals may omit geometry."""
        proposal = ProposedBlock.model_validate({"type": "metric_card", "colStart": 3})
        assert proposal.col_start == 3
        assert proposal.row_start is None
