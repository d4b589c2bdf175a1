"""Integration tests for the slopelife REST API."""

import pytest
from fastapi.testclient import TestClient

from slopelife.api.app import create_app

SMALL = {
    "random_seed": 42,
    "population_size": 4,
    "elite_count": 1,
    "generations_to_run": 3,
    "evaluation_seconds": 1.0,
    "terrain_width": 10,
    "terrain_height": 10,
    "terrain_generator": "flat",
    "resource_count": 8,
}


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def _create(client, **extra):
    resp = client.post("/api/simulation/sessions", json={"config": dict(SMALL), **extra})
    assert resp.status_code == 200
    return resp.json()


class TestHealthCheck:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestSessionLifecycle:
    def test_create_session_defaults(self, client):
        resp = client.post("/api/simulation/sessions", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "created"
        assert data["current_generation"] == 0
        assert data["population_size"] == 30
        assert data["phase"] == "evaluating"

    def test_create_session_reads_environment(self, client, monkeypatch):
        monkeypatch.setenv("SLOPELIFE_POPULATION_SIZE", "7")
        monkeypatch.setenv("SLOPELIFE_TERRAIN_WIDTH", "10")
        monkeypatch.setenv("SLOPELIFE_TERRAIN_HEIGHT", "10")
        data = client.post("/api/simulation/sessions", json={}).json()
        assert data["population_size"] == 7

    def test_create_session_with_config(self, client):
        data = _create(client, name="tiny")
        assert data["name"] == "tiny"
        assert data["population_size"] == 4
        assert data["max_generations"] == 3

    def test_create_session_from_preset(self, client):
        resp = client.post("/api/simulation/sessions", json={"preset": "flat_world"})
        assert resp.status_code == 200
        assert resp.json()["config"]["experiment_name"] == "flat_world"

    def test_unknown_preset(self, client):
        resp = client.post("/api/simulation/sessions", json={"preset": "volcano"})
        assert resp.status_code == 400

    def test_bad_config(self, client):
        resp = client.post("/api/simulation/sessions", json={"config": {"no_such_field": 1}})
        assert resp.status_code == 400

    def test_list_and_get(self, client):
        a = _create(client)
        _create(client)
        listed = client.get("/api/simulation/sessions").json()
        assert len(listed) == 2
        resp = client.get(f"/api/simulation/sessions/{a['id']}")
        assert resp.status_code == 200
        assert resp.json()["id"] == a["id"]

    def test_get_missing_session(self, client):
        assert client.get("/api/simulation/sessions/nope").status_code == 404

    def test_delete(self, client):
        sid = _create(client)["id"]
        assert client.delete(f"/api/simulation/sessions/{sid}").json() == {"deleted": True}
        assert client.get(f"/api/simulation/sessions/{sid}").status_code == 404
        assert client.delete(f"/api/simulation/sessions/{sid}").status_code == 404

    def test_presets_endpoint(self, client):
        presets = client.get("/api/simulation/presets").json()
        assert {p["name"] for p in presets} >= {"baseline", "scarcity", "flat_world"}


class TestStepping:
    def test_step_one_generation(self, client):
        sid = _create(client)["id"]
        data = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 1}).json()
        assert data["current_generation"] == 1
        assert data["status"] == "running"
        assert data["phase"] == "evaluating"

    def test_run_to_completion(self, client):
        sid = _create(client)["id"]
        data = client.post(f"/api/simulation/sessions/{sid}/run", json={}).json()
        assert data["status"] == "completed"
        assert data["current_generation"] == 3

    def test_run_partial_then_resume(self, client):
        sid = _create(client)["id"]
        data = client.post(f"/api/simulation/sessions/{sid}/run", json={"generations": 1}).json()
        assert data["current_generation"] == 1
        assert data["status"] == "running"
        assert data["max_generations"] == 3
        data = client.post(f"/api/simulation/sessions/{sid}/run", json={"generations": 1}).json()
        assert data["current_generation"] == 2

    def test_bounded_run_keeps_budget_for_steps(self, client):
        sid = _create(client)["id"]
        client.post(f"/api/simulation/sessions/{sid}/run", json={"generations": 1})
        data = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 5}).json()
        assert data["current_generation"] == 3
        assert data["status"] == "completed"

    def test_bounded_run_never_exceeds_budget(self, client):
        sid = _create(client)["id"]
        data = client.post(f"/api/simulation/sessions/{sid}/run", json={"generations": 10}).json()
        assert data["current_generation"] == 3
        assert data["status"] == "completed"

    def test_step_after_completion_is_noop(self, client):
        sid = _create(client)["id"]
        client.post(f"/api/simulation/sessions/{sid}/run", json={})
        data = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 2}).json()
        assert data["current_generation"] == 3

    def test_tick(self, client):
        sid = _create(client)["id"]
        data = client.post(f"/api/simulation/sessions/{sid}/tick", json={"n": 3}).json()
        assert data["ticks"] == 3
        assert data["generations_completed"] == 0
        assert data["world"]["tick"] == 3

    def test_tick_across_generation_boundary(self, client):
        sid = _create(client)["id"]
        data = client.post(f"/api/simulation/sessions/{sid}/tick", json={"n": 12}).json()
        assert data["generations_completed"] >= 1
        assert data["current_generation"] >= 1

    def test_invalid_step_count(self, client):
        sid = _create(client)["id"]
        resp = client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 0})
        assert resp.status_code == 422

    def test_reset(self, client):
        sid = _create(client)["id"]
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 2})
        data = client.post(f"/api/simulation/sessions/{sid}/reset").json()
        assert data["current_generation"] == 0
        assert data["status"] == "created"
        metrics = client.get(f"/api/metrics/{sid}/generations").json()
        assert metrics == []


class TestOrganisms:
    def test_list(self, client):
        sid = _create(client)["id"]
        data = client.get(f"/api/organisms/{sid}").json()
        assert data["total"] == 4
        assert len(data["organisms"]) == 4
        assert data["organisms"][0]["state"] == "searching"

    def test_pagination(self, client):
        sid = _create(client)["id"]
        data = client.get(f"/api/organisms/{sid}", params={"page": 2, "page_size": 3}).json()
        assert data["total"] == 4
        assert len(data["organisms"]) == 1

    def test_unknown_emergence_filter(self, client):
        sid = _create(client)["id"]
        resp = client.get(f"/api/organisms/{sid}", params={"emergence": "can_swim"})
        assert resp.status_code == 400

    def test_emergence_filter(self, client):
        sid = _create(client)["id"]
        data = client.get(f"/api/organisms/{sid}", params={"emergence": "can_fly"}).json()
        assert all(o["emergences"]["can_fly"] for o in data["organisms"])

    def test_detail(self, client):
        sid = _create(client)["id"]
        oid = client.get(f"/api/organisms/{sid}").json()["organisms"][0]["id"]
        data = client.get(f"/api/organisms/{sid}/{oid}").json()
        assert data["id"] == oid
        assert set(data["genes"]) >= {"mass", "camouflage", "upper_slope_heuristic"}
        assert "speed" in data["phenotype"]

    def test_missing_organism(self, client):
        sid = _create(client)["id"]
        assert client.get(f"/api/organisms/{sid}/o99999").status_code == 404
        assert client.get("/api/organisms/nope").status_code == 404

    def test_path_with_trace(self, client):
        sid = _create(client, record_traces=True)["id"]
        client.post(f"/api/simulation/sessions/{sid}/tick", json={"n": 6})
        organisms = client.get(f"/api/organisms/{sid}").json()["organisms"]
        paths = [
            client.get(
                f"/api/organisms/{sid}/{o['id']}/path", params={"include_trace": True},
            ).json()
            for o in organisms
        ]
        assert all("remaining" in p for p in paths)
        planned = [p for p in paths if p["found"]]
        for p in planned:
            assert p["trace"] is not None
            assert p["trace"]["expansions"] >= 0


class TestMetricsAndWorld:
    def test_generations_and_time_series(self, client):
        sid = _create(client)["id"]
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 2})
        gens = client.get(f"/api/metrics/{sid}/generations").json()
        assert [g["generation"] for g in gens] == [0, 1]
        assert "mass" in gens[0]["gene_means"]
        series = client.get(f"/api/metrics/{sid}/time-series/best_fitness").json()
        assert series["generations"] == [0, 1]
        assert len(series["values"]) == 2

    def test_unknown_time_series(self, client):
        sid = _create(client)["id"]
        assert client.get(f"/api/metrics/{sid}/time-series/bogus").status_code == 400
        assert client.get(f"/api/metrics/{sid}/time-series/__class__").status_code == 400

    def test_traits(self, client):
        sid = _create(client)["id"]
        client.post(f"/api/simulation/sessions/{sid}/step", json={"n": 1})
        rows = client.get(f"/api/metrics/{sid}/traits").json()
        assert len(rows) == 9
        assert client.get(f"/api/metrics/{sid}/traits", params={"generation": 5}).status_code == 404

    def test_summary_before_and_after(self, client):
        sid = _create(client)["id"]
        empty = client.get(f"/api/metrics/{sid}/summary").json()
        assert empty["total_generations"] == 0
        client.post(f"/api/simulation/sessions/{sid}/run", json={})
        summary = client.get(f"/api/metrics/{sid}/summary").json()
        assert summary["total_generations"] == 3
        assert len(summary["best_chromosome"]) == 9

    def test_samples(self, client):
        sid = _create(client)["id"]
        client.post(f"/api/simulation/sessions/{sid}/tick", json={"n": 2})
        samples = client.get(f"/api/metrics/{sid}/samples").json()
        assert len(samples) >= 1
        assert samples[0]["alive"] == 4

    def test_world_views(self, client):
        sid = _create(client)["id"]
        summary = client.get(f"/api/world/{sid}").json()
        assert summary["alive"] == 4
        terrain = client.get(f"/api/world/{sid}/terrain").json()
        assert terrain["width"] == 10
        assert len(terrain["slope"]) == 10
        resources = client.get(f"/api/world/{sid}/resources").json()
        assert len(resources) == 8
        carcasses = client.get(f"/api/world/{sid}/resources", params={"carcasses_only": True}).json()
        assert carcasses == []
        assert client.get("/api/world/nope").status_code == 404
