from app.config import APP_VERSION, settings

API = settings.API_PREFIX.rstrip("/")


def test_health(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "healthy"
    assert body["data"]["database"] == "connected"


def test_ping(client):
    response = client.get(f"{API}/ping")
    assert response.json()["message"] == "pong"


def test_version(client):
    response = client.get(f"{API}/version")
    assert response.json()["data"]["version"] == APP_VERSION


def test_unknown_route_uses_error_envelope(client):
    response = client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["message"] == f"Route GET {API}/does-not-exist not found"


def test_request_carries_response_time_header(client):
    response = client.get(f"{API}/ping")
    assert "x-response-time" in response.headers
