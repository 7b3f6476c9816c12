"""
test_middleware.py — Tests for request/response middleware

Verifies request ID generation, security headers, and the structured
error responses produced by the exception handlers in main.py.

Called by: pytest
Depends on: swagsuite/main.py (middleware), tests/conftest.py (client fixture)
"""


def test_request_id_header_present(client):
    """Every response should include X-Request-ID."""
    resp = client.get("/health")
    assert "X-Request-ID" in resp.headers
    req_id = resp.headers["X-Request-ID"]
    assert len(req_id) == 8  # uuid4().hex[:8]


def test_request_id_unique_per_request(client):
    """Each request gets a distinct ID."""
    ids = {client.get("/health").headers["X-Request-ID"] for _ in range(5)}
    assert len(ids) == 5


def test_health_returns_ok(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"]


def test_404_still_gets_request_id(client):
    """Even error responses should carry the request ID."""
    resp = client.get("/nonexistent-route-xyz")
    assert resp.status_code == 404
    assert "X-Request-ID" in resp.headers


def test_security_headers(client):
    resp = client.get("/health")
    assert resp.headers.get("X-Content-Type-Options") == "nosniff"
    assert resp.headers.get("X-Frame-Options") == "DENY"
    assert resp.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"


def test_http_error_format(client):
    """HTTP errors return structured JSON with error, status_code, and request_id."""
    resp = client.get("/api/orders/999999")
    assert resp.status_code == 404
    data = resp.json()
    assert data["error"] == "Order not found"
    assert data["status_code"] == 404
    assert data["request_id"] == resp.headers["X-Request-ID"]


def test_validation_error_format(client):
    resp = client.post("/api/companies", json={})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"] == "Validation error"
    assert data["status_code"] == 422
    assert any("name" in err["loc"] for err in data["detail"])


def test_catch_all_handler_registered():
    """A catch-all Exception handler is wired up (500 with request_id)."""
    from swagsuite.main import app

    assert Exception in app.exception_handlers


def test_unauthenticated_request_is_401(db_session):
    """Without the auth override, API routes require a session or API key."""
    from fastapi.testclient import TestClient

    from swagsuite.database import get_db
    from swagsuite.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    try:
        with TestClient(app) as c:
            resp = c.get("/api/orders")
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 401
    assert resp.json()["error"] == "Not authenticated"
