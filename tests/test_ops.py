# tests/test_ops.py
# PURPOSE: probes, request ids, security headers and the API index.


def test_live_and_ready(client):
    assert client.get("/live").json() == {"status": "live"}
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}


def test_request_id_is_echoed_or_generated(client):
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"
    generated = client.get("/health").headers["X-Request-ID"]
    assert len(generated) == 32


def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert "Content-Security-Policy" in r.headers


def test_api_index(client):
    r = client.get("/api/v1/")
    assert r.status_code == 200
    assert r.json()["tasks"] == "/api/v1/tasks"


def test_metrics_exposed(client):
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "http_request" in r.text


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found", "status": 404, "path": "/api/v1/nope"}
