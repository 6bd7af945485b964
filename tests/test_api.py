# -*- coding: utf-8 -*-
from fastapi.testclient import TestClient
from src.api import app, get_orchestrator
from src.triage import TriageOrchestrator, TriageSettings
import pytest

@pytest.fixture()
def client(fake_classifier):
    app.dependency_overrides[get_orchestrator] = lambda: TriageOrchestrator(fake_classifier, TriageSettings())
    yield TestClient(app)
    app.dependency_overrides.clear()

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

def test_predict(client):
    r = client.post("/predict", json={"id": "e2e", "title": "x"})
    assert r.status_code == 200
    j = r.json()
    assert [p["label"] for p in j["predictions"]] == ["feature", "doc", "bug"]
    assert j["predictions"][0]["original_index"] == 1

def test_triage(client):
    r = client.post("/triage", json={"issues": [
        {"id": "hi", "title": "a"}, {"id": "lo", "title": "b"}, {"id": "e2e", "title": ""}]})
    assert r.status_code == 200
    j = r.json()
    assert j["threshold"] == 0.3
    assert [(e["record_id"], e["recommended"]) for e in j["entries"]] == [("hi", True), ("lo", False)]

def test_triage_classifier_down(client):
    r = client.post("/triage", json={"issues": [{"id": "down", "title": "a"}]})
    assert r.status_code == 503
    r = client.post("/triage", json={"issues": [{"id": "down", "title": "a"}], "skip_errors": True})
    assert r.status_code == 200
    assert r.json()["entries"][0]["error"]

def test_rate_limit_forgets_idle_ips(monkeypatch):
    import src.api as api
    monkeypatch.setattr(api, "_hits", api.defaultdict(api.deque))
    now = [1000.0]
    monkeypatch.setattr(api.time, "time", lambda: now[0])
    api._rate_limit("10.0.0.1")
    now[0] += 61
    api._rate_limit("10.0.0.2")
    assert list(api._hits) == ["10.0.0.2"]
