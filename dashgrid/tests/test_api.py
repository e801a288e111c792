"""Tests for API endpoints."""

import logging

import pytest
from fastapi.testclient import TestClient

from dashgrid.api.middleware.logging import status_log_level


def block_json(block_id: str, col_start: int, col_span: int, row_start: int, row_span: int, **extra) -> dict:
    data = {
        "id": block_id,
        "type": "stats_tile",
        "title": block_id,
        "position": {"colStart": col_start, "colSpan": col_span, "rowStart": row_start, "rowSpan": row_span},
    }
    data.update(extra)
    return data


@pytest.fixture
def hero_layout() -> dict:
    """Wire-format layout: a 12x10 container with three children."""
    return {
        "gridColumns": 12,
        "blocks": [
            {
                "id": "hero",
                "type": "hero_section",
                "title": "Hero",
                "position": {"colStart": 1, "colSpan": 12, "rowStart": 1, "rowSpan": 10},
                "heroProperties": {"stackDirection": "horizontal"},
            },
            block_json("c1", 1, 4, 2, 8, parentBlockId="hero"),
            block_json("c2", 5, 4, 2, 8, parentBlockId="hero"),
            block_json("c3", 9, 4, 2, 8, parentBlockId="hero"),
        ],
    }


@pytest.fixture
def stacked_layout() -> dict:
    return {
        "gridColumns": 12,
        "blocks": [
            block_json("a", 1, 4, 1, 4),
            block_json("b", 1, 4, 3, 4),
            block_json("c", 1, 4, 5, 4),
        ],
    }


def find(layout: dict, block_id: str) -> dict:
    return next(b for b in layout["blocks"] if b["id"] == block_id)


# ============================================================================
# Health Tests
# ============================================================================

class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient) -> None:
        """Test basic health check."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app"] == "dashgrid"

    def test_api_health(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["grid_columns"] == 12
        assert "timestamp" in data


# ============================================================================
# Request Logging Tests
# ============================================================================

class TestRequestLogging:
    """Tests for request id tagging and per-request log lines."""

    def test_caller_request_id_is_echoed(self, client: TestClient, stacked_layout: dict) -> None:
        response = client.post(
            "/api/layout/validate",
            json={"layout": stacked_layout},
            headers={"X-Request-ID": "editor-42"},
        )
        assert response.headers["X-Request-ID"] == "editor-42"

    def test_request_id_generated(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("INFO", logger="dashgrid.api")
        response = client.get("/api/health")

        request_id = response.headers["X-Request-ID"]
        assert len(request_id) == 8
        assert f"[{request_id}] GET /api/health -> 200" in caplog.text

    def test_excluded_path_is_not_tagged(self, client: TestClient) -> None:
        assert "X-Request-ID" not in client.get("/health").headers

    def test_status_log_level(self) -> None:
        assert status_log_level(200) == logging.INFO
        assert status_log_level(422) == logging.WARNING
        assert status_log_level(500) == logging.ERROR


# ============================================================================
# Layout Editing Tests
# ============================================================================

class TestLayoutEndpoints:
    """Tests for the layout editing endpoints."""

    def test_add_block(self, client: TestClient) -> None:
        response = client.post(
            "/api/layout/blocks",
            json={"layout": {"gridColumns": 12, "blocks": []}, "kind": "stats_tile"},
        )
        assert response.status_code == 200
        data = response.json()
        block = data["blocks"][0]
        assert block["position"] == {"colStart": 1, "colSpan": 3, "rowStart": 1, "rowSpan": 6}
        assert block["id"].startswith("block_")
        assert len(data["layout"]["blocks"]) == 1

    def test_add_block_unknown_kind(self, client: TestClient) -> None:
        response = client.post(
            "/api/layout/blocks",
            json={"layout": {"blocks": []}, "kind": "carousel"},
        )
        assert response.status_code == 422

    def test_invalid_layout_rejected(self, client: TestClient) -> None:
        layout = {"blocks": [block_json("a", 1, 4, 1, 4), block_json("a", 5, 4, 1, 4)]}
        response = client.post("/api/layout/validate", json={"layout": layout})
        assert response.status_code == 422

    def test_move(self, client: TestClient, hero_layout: dict) -> None:
        response = client.post(
            "/api/layout/move",
            json={"layout": hero_layout, "blockIds": ["hero"], "delta": {"cols": 0, "rows": 2}},
        )
        assert response.status_code == 200
        layout = response.json()["layout"]
        assert find(layout, "hero")["position"]["rowStart"] == 3
        assert find(layout, "c1")["position"]["rowStart"] == 4

    def test_move_unknown_block(self, client: TestClient, hero_layout: dict) -> None:
        response = client.post(
            "/api/layout/move",
            json={"layout": hero_layout, "blockIds": ["ghost"], "delta": {"cols": 1, "rows": 0}},
        )
        assert response.status_code == 404

    def test_resize_container(self, client: TestClient, hero_layout: dict) -> None:
        response = client.post(
            "/api/layout/resize",
            json={"layout": hero_layout, "blockId": "hero", "size": {"colSpan": 6, "rowSpan": 10}},
        )
        assert response.status_code == 200
        layout = response.json()["layout"]
        assert [find(layout, c)["position"]["colSpan"] for c in ("c1", "c2", "c3")] == [2, 2, 2]

    def test_stack_direction(self, client: TestClient, hero_layout: dict) -> None:
        response = client.post(
            "/api/layout/stack-direction",
            json={"layout": hero_layout, "containerId": "hero", "direction": "vertical"},
        )
        assert response.status_code == 200
        layout = response.json()["layout"]
        assert find(layout, "hero")["heroProperties"]["stackDirection"] == "vertical"
        assert [find(layout, c)["position"]["rowSpan"] for c in ("c1", "c2", "c3")] == [3, 3, 2]

    def test_reparent_container_rejected(self, client: TestClient, hero_layout: dict) -> None:
        hero_layout["blocks"].append({
            "id": "other",
            "type": "hero_section",
            "position": {"colStart": 1, "colSpan": 12, "rowStart": 12, "rowSpan": 10},
        })
        response = client.post(
            "/api/layout/reparent",
            json={"layout": hero_layout, "blockId": "other", "parentId": "hero"},
        )
        assert response.status_code == 422

    def test_detach(self, client: TestClient, hero_layout: dict) -> None:
        response = client.post(
            "/api/layout/reparent",
            json={"layout": hero_layout, "blockId": "c1", "parentId": None},
        )
        assert response.status_code == 200
        c1 = find(response.json()["layout"], "c1")
        assert c1["parentBlockId"] is None
        assert c1["position"]["rowStart"] == 11

    def test_delete(self, client: TestClient, hero_layout: dict) -> None:
        response = client.post(
            "/api/layout/delete",
            json={"layout": hero_layout, "blockIds": ["hero"], "cascadeToChildren": False},
        )
        assert response.status_code == 200
        blocks = response.json()["layout"]["blocks"]
        assert [b["id"] for b in blocks] == ["c1", "c2", "c3"]

    def test_duplicate(self, client: TestClient, stacked_layout: dict) -> None:
        response = client.post(
            "/api/layout/duplicate",
            json={"layout": stacked_layout, "blockIds": ["a"]},
        )
        assert response.status_code == 200
        copy = response.json()["blocks"][0]
        assert copy["title"] == "a (Copy)"

    def test_preview_palette_drop(self, client: TestClient, hero_layout: dict) -> None:
        hero_layout["blocks"] = hero_layout["blocks"][:1]
        response = client.post(
            "/api/layout/preview",
            json={"layout": hero_layout, "pointer": {"col": 2, "row": 3}, "kind": "stats_tile"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "nested"
        assert data["valid"] is True
        assert data["parentId"] == "hero"
        assert data["position"] == {"colStart": 2, "colSpan": 3, "rowStart": 2, "rowSpan": 8}

    def test_preview_moving_block(self, client: TestClient, stacked_layout: dict) -> None:
        response = client.post(
            "/api/layout/preview",
            json={"layout": stacked_layout, "pointer": {"col": 9, "row": 1}, "movingGroup": ["a"]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "root"
        assert data["position"]["colStart"] == 9

    def test_preview_requires_kind(self, client: TestClient, stacked_layout: dict) -> None:
        response = client.post(
            "/api/layout/preview",
            json={"layout": stacked_layout, "pointer": {"col": 1, "row": 1}},
        )
        assert response.status_code == 422


# ============================================================================
# Ingestion, Validation and Resolution Tests
# ============================================================================

class TestAnalysisEndpoints:
    """Tests for ingest, validate and resolve."""

    def test_ingest(self, client: TestClient) -> None:
        response = client.post(
            "/api/layout/ingest",
            json={
                "blocks": [
                    {"type": "hero_section", "colStart": 1, "colSpan": 12, "rowStart": 1, "rowSpan": 10},
                    {"type": "stats_tile", "colStart": 2, "colSpan": 4, "rowStart": 3, "rowSpan": 4},
                    {"type": "metric_card", "colStart": 30, "colSpan": 4, "rowStart": 20},
                ]
            },
        )
        assert response.status_code == 200
        blocks = response.json()["layout"]["blocks"]
        assert len(blocks) == 3
        hero_id = blocks[0]["id"]
        assert blocks[1]["parentBlockId"] == hero_id
        assert blocks[2]["position"]["colStart"] == 12

    def test_validate(self, client: TestClient, stacked_layout: dict) -> None:
        response = client.post("/api/layout/validate", json={"layout": stacked_layout})
        assert response.status_code == 200
        data = response.json()
        assert data["isValid"] is False
        assert {v["rule"] for v in data["violations"]} == {"overlap"}

    def test_resolve(self, client: TestClient, stacked_layout: dict) -> None:
        response = client.post("/api/layout/resolve", json={"layout": stacked_layout})
        assert response.status_code == 200
        data = response.json()
        assert data["converged"] is True
        assert data["residual"] == []
        assert [b["position"]["rowStart"] for b in data["layout"]["blocks"]] == [1, 5, 9]

        check = client.post("/api/layout/validate", json={"layout": data["layout"]})
        assert check.json()["isValid"] is True
