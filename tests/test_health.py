"""Tests de la surface opérationnelle (santé, audit des couches, métriques)."""

from __future__ import annotations

from fastapi.testclient import TestClient

from directive_engine.app.main import create_app
from directive_engine.core.container import Container
from directive_engine.core.settings import Settings
from tests.fakes import make_record

HTTP_OK = 200


def _client() -> tuple[TestClient, Container]:
    container = Container(settings=Settings(APP_NAME="test_app", REDIS_URL=None))
    container.tenant_repo.save(make_record("acme"))
    return TestClient(create_app(container)), container


def test_health() -> None:
    """Teste que l'endpoint de santé retourne un statut OK."""
    client, _ = _client()
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["status"] == "ok"
    assert body["storage"] == "memory"
    assert body["l2_backend"] == "memory"
    assert body["l2_reachable"] is True


def test_directive_layers_audit() -> None:
    """Teste l'audit des couches d'un tenant connu."""
    client, container = _client()
    r = client.get("/health/directives/acme")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["tenant_id"] == "acme"
    assert body["healthy"] is True
    assert [layer["layer"] for layer in body["layers"]] == [
        "L1_RAM",
        "L2_REDIS",
        "L3_SQL",
        "L0_GENESIS",
    ]
    assert body["layers"][2]["data_fingerprint"] is not None
    assert len(container.local_cache) == 0


def test_metrics_exposes_directive_counters() -> None:
    """Teste l'exposition des métriques au format Prometheus."""
    client, _ = _client()
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    assert "http_requests_total" in r.text
    assert "directive_resolutions_total" in r.text
