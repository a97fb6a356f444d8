"""Tests for the layout service endpoints."""

import pytest
from fastapi.testclient import TestClient

from py_chartgeom.api.main import app
from py_chartgeom.config import settings


@pytest.fixture
def client():
    return TestClient(app)


class TestServiceEndpoints:
    """Test root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestStackEndpoint:
    """Test POST /layouts/stack."""

    def test_zero_offset_with_nulls(self, client):
        response = client.post("/layouts/stack", json={
            "series": [
                {"key": "a", "values": [1, None, 3]},
                {"key": "b", "values": [2, 2, 2]},
            ],
        })
        assert response.status_code == 200
        data = response.json()

        assert data["offset"] == "zero"
        a, b = data["series"]
        assert a["points"][1]["defined"] is False
        assert a["points"][1]["top_y"] is None
        assert b["points"][1]["baseline_y"] == 0
        assert b["points"][1]["top_y"] == 2

        baseline = data["baseline"]
        assert baseline["source_key"] == "a"
        assert baseline["key"] not in {"a", "b"}
        assert [p["value"] for p in baseline["points"]] == [0, 0, 0]

    def test_silhouette_with_categories(self, client):
        response = client.post("/layouts/stack", json={
            "series": [
                {"key": "a", "values": [1, 4], "categories": ["jan", "feb"]},
                {"key": "b", "values": [1, 6], "categories": ["jan", "feb"]},
            ],
            "offset": "silhouette",
            "include_baseline": False,
        })
        assert response.status_code == 200
        data = response.json()

        assert data["baseline"] is None
        a, b = data["series"]
        assert [p["category"] for p in a["points"]] == ["jan", "feb"]
        assert a["points"][1]["baseline_y"] == -5
        assert b["points"][1]["top_y"] == 5

    def test_mismatched_lengths(self, client):
        response = client.post("/layouts/stack", json={
            "series": [
                {"key": "a", "values": [1, 2]},
                {"key": "b", "values": [1]},
            ],
        })
        assert response.status_code == 400
        assert "categories" in response.json()["detail"]

    def test_unknown_offset(self, client):
        response = client.post("/layouts/stack", json={
            "series": [{"key": "a", "values": [1]}],
            "offset": "wiggle",
        })
        assert response.status_code == 422

    def test_series_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_series", 1)
        response = client.post("/layouts/stack", json={
            "series": [{"key": "a", "values": [1]}, {"key": "b", "values": [1]}],
        })
        assert response.status_code == 413


class TestVoronoiEndpoint:
    """Test POST /layouts/voronoi."""

    def test_single_site(self, client):
        response = client.post("/layouts/voronoi", json={
            "sites": [{"x": 10, "y": 20, "key": "only"}],
            "extent": {"min_x": 0, "min_y": 0, "max_x": 100, "max_y": 100},
        })
        assert response.status_code == 200
        cells = response.json()["cells"]

        assert len(cells) == 1
        assert cells[0]["key"] == "only"
        corners = {tuple(v) for v in cells[0]["vertices"]}
        assert corners == {(0, 0), (100, 0), (100, 100), (0, 100)}

    def test_coincident_sites(self, client):
        response = client.post("/layouts/voronoi", json={
            "sites": [
                {"x": 10, "y": 10, "key": "a"},
                {"x": 10, "y": 10, "key": "b"},
                {"x": 70, "y": 70, "key": "c"},
            ],
            "extent": {"min_x": 0, "min_y": 0, "max_x": 100, "max_y": 100},
        })
        assert response.status_code == 200
        cells = {c["key"]: c for c in response.json()["cells"]}

        assert len(cells["a"]["vertices"]) >= 3
        assert cells["b"]["vertices"] == []
        assert len(cells["c"]["vertices"]) >= 3

    def test_bad_extent(self, client):
        response = client.post("/layouts/voronoi", json={
            "sites": [{"x": 10, "y": 20, "key": "a"}],
            "extent": {"min_x": 0, "min_y": 0, "max_x": 0, "max_y": 100},
        })
        assert response.status_code == 400

    def test_site_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_sites", 1)
        response = client.post("/layouts/voronoi", json={
            "sites": [{"x": 1, "y": 1, "key": "a"}, {"x": 2, "y": 2, "key": "b"}],
            "extent": {"min_x": 0, "min_y": 0, "max_x": 10, "max_y": 10},
        })
        assert response.status_code == 413
