import logging

from fastapi.testclient import TestClient

from local_services_api.app.core.errors import Conflict, InternalError
from local_services_api.app.main import create_app


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Server is running"
    assert body["environment"] == "test"
    assert body["timestamp"]


def test_get_profile(client, market, provider):
    resp = client.get("/profile", headers=market.headers(provider))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == provider["user"]["id"]
    assert data["role"] == "provider"
    assert "password" not in data


def test_update_profile(client, market, customer):
    headers = market.headers(customer)
    resp = client.patch("/profile", json={"phone": "555-0199", "location": "Capital City"}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["phone"] == "555-0199"
    assert data["location"] == "Capital City"
    assert data["name"] == customer["user"]["name"]
    assert client.get("/profile", headers=headers).json()["data"]["location"] == "Capital City"


def test_update_profile_rejects_empty_name(client, market, customer):
    headers = market.headers(customer)
    assert client.patch("/profile", json={"name": "A"}, headers=headers).status_code == 400
    assert client.patch("/profile", json={"name": None}, headers=headers).status_code == 400


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route /nowhere not found", "error": "Route /nowhere not found"}


def test_unexpected_error_is_a_generic_500(settings, caplog):
    app = create_app(settings)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    client = TestClient(app, raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR):
        resp = client.get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error", "error": "Internal server error"}
    assert "hunter2" not in resp.text
    assert "Unhandled error on GET /boom" in caplog.text


def test_app_errors_raised_anywhere_use_the_envelope(settings):
    app = create_app(settings)

    @app.get("/clash")
    async def clash():
        raise Conflict("Already there", "Duplicate")

    resp = TestClient(app).get("/clash")
    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "Already there", "error": "Duplicate"}


def test_cors_allows_configured_origin(client, settings):
    resp = client.options(
        "/services",
        headers={"Origin": settings.cors_origin, "Access-Control-Request-Method": "GET"},
    )
    assert resp.headers["access-control-allow-origin"] == settings.cors_origin


def test_internal_error_maps_to_500(settings):
    app = create_app(settings)

    @app.get("/broken")
    async def broken():
        raise InternalError("Could not complete the operation")

    resp = TestClient(app).get("/broken")
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Could not complete the operation",
        "error": "Internal server error",
    }


def test_update_profile_strips_name(client, market, customer):
    headers = market.headers(customer)
    assert client.patch("/profile", json={"name": "   "}, headers=headers).status_code == 400
    resp = client.patch("/profile", json={"name": "  Jane Q. Public  "}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Jane Q. Public"
