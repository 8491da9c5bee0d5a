from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_request_id_on_preflight_and_rejected_methods(client: TestClient):
    assert client.options("/", headers={"X-Request-ID": "pre-1"}).headers["X-Request-ID"] == "pre-1"
    assert client.delete("/", headers={"X-Request-ID": "del-1"}).headers["X-Request-ID"] == "del-1"
