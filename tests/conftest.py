import itertools
import sqlite3
from typing import Any, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from local_services_api.app.core.config import Settings
from local_services_api.app.core.db import get_connection
from local_services_api.app.main import create_app


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret="access-secret-for-tests",
        jwt_refresh_secret="refresh-secret-for-tests",
        database_url=str(tmp_path / "marketplace.db"),
        log_level="WARNING",
        environment="test",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def db(settings, app) -> Iterator[sqlite3.Connection]:
    """Direct connection to the test database for setup and inspection."""
    conn = get_connection(settings.database_url)
    yield conn
    conn.close()


class Marketplace:
    """Thin helper around the HTTP API used by the tests."""

    _ids = itertools.count(1)

    def __init__(self, client: TestClient) -> None:
        self.client = client

    @staticmethod
    def headers(user: Dict[str, Any]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {user['access_token']}"}

    def register(self, role: str, name: str | None = None, password: str = "secret123") -> Dict[str, Any]:
        n = next(self._ids)
        resp = self.client.post(
            "/auth/register",
            json={
                "name": name or f"{role.title()} {n}",
                "email": f"{role}{n}@example.com",
                "password": password,
                "role": role,
            },
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        data["password"] = password
        return data

    def category_id(self) -> int:
        return self.client.get("/categories").json()["data"][0]["id"]

    def create_service(self, provider: Dict[str, Any], **overrides: Any) -> Dict[str, Any]:
        body = {
            "title": "Apartment cleaning",
            "description": "Full apartment cleaning including kitchen",
            "category": self.category_id(),
            "location": "Springfield",
            "price": 25.0,
            "price_type": "hourly",
        }
        body.update(overrides)
        resp = self.client.post("/services", json=body, headers=self.headers(provider))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    def request_service(self, customer: Dict[str, Any], service_id: int, **body: Any):
        return self.client.post(
            "/requests",
            json={"service_id": service_id, **body},
            headers=self.headers(customer),
        )

    def set_status(self, user: Dict[str, Any], request_id: int, status: str):
        return self.client.patch(
            f"/requests/{request_id}",
            json={"status": status},
            headers=self.headers(user),
        )

    def completed_request(self, customer, provider, service) -> Dict[str, Any]:
        resp = self.request_service(customer, service["id"])
        assert resp.status_code == 201, resp.text
        request_id = resp.json()["data"]["id"]
        assert self.set_status(provider, request_id, "accepted").status_code == 200
        resp = self.set_status(provider, request_id, "completed")
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    def submit_feedback(self, customer, request_id: int, rating: int, comment: str | None = None):
        body: Dict[str, Any] = {"service_request_id": request_id, "rating": rating}
        if comment is not None:
            body["comment"] = comment
        return self.client.post("/feedback", json=body, headers=self.headers(customer))


@pytest.fixture
def market(client) -> Marketplace:
    return Marketplace(client)


@pytest.fixture
def customer(market) -> Dict[str, Any]:
    return market.register("customer")


@pytest.fixture
def provider(market) -> Dict[str, Any]:
    return market.register("provider")


@pytest.fixture
def service(market, provider) -> Dict[str, Any]:
    return market.create_service(provider)
