import sqlite3

import pytest


@pytest.fixture
def pending(market, customer, service):
    resp = market.request_service(customer, service["id"], message="Tomorrow morning please")
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_create_request_is_pending_and_copies_provider(pending, customer, provider, service):
    assert pending["status"] == "pending"
    assert pending["customer_id"] == customer["user"]["id"]
    assert pending["provider_id"] == provider["user"]["id"]
    assert pending["service"]["id"] == service["id"]
    assert pending["service"]["provider"]["name"] == provider["user"]["name"]
    assert pending["message"] == "Tomorrow morning please"


def test_create_request_with_schedule(market, customer, service):
    resp = market.request_service(
        customer, service["id"], requested_date="2030-05-01T09:30:00", estimated_duration=2.5
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["requested_date"].startswith("2030-05-01T09:30:00")
    assert data["estimated_duration"] == 2.5


def test_unknown_service_is_not_found(market, customer):
    resp = market.request_service(customer, 9999)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Service not found"


def test_inactive_service_is_not_found(client, market, customer, provider, service):
    client.delete(f"/services/{service['id']}", headers=market.headers(provider))
    assert market.request_service(customer, service["id"]).status_code == 404


def test_provider_cannot_create_request(market, provider, service):
    assert market.request_service(provider, service["id"]).status_code == 403


def test_duplicate_open_request_is_conflict(market, customer, provider, service, pending):
    resp = market.request_service(customer, service["id"])
    assert resp.status_code == 409
    assert resp.json()["message"] == "You already have a pending or accepted request for this service"
    assert market.set_status(provider, pending["id"], "accepted").status_code == 200
    assert market.request_service(customer, service["id"]).status_code == 409


@pytest.mark.parametrize("actor, closing_status", [("customer", "cancelled"), ("provider", "declined")])
def test_new_request_allowed_once_previous_is_closed(
    market, customer, provider, service, pending, actor, closing_status
):
    user = customer if actor == "customer" else provider
    assert market.set_status(user, pending["id"], closing_status).status_code == 200
    assert market.request_service(customer, service["id"]).status_code == 201


def test_other_customers_are_not_blocked(market, service, pending):
    other = market.register("customer")
    assert market.request_service(other, service["id"]).status_code == 201


def test_open_request_index_rejects_raw_duplicates(db, pending):
    with pytest.raises(sqlite3.IntegrityError):
        db.execute(
            "INSERT INTO service_requests (service_id, customer_id, provider_id, status) "
            "VALUES (?, ?, ?, 'accepted')",
            (pending["service_id"], pending["customer_id"], pending["provider_id"]),
        )
    # Closed requests are outside the index.
    db.execute(
        "INSERT INTO service_requests (service_id, customer_id, provider_id, status) "
        "VALUES (?, ?, ?, 'completed')",
        (pending["service_id"], pending["customer_id"], pending["provider_id"]),
    )


def test_provider_lifecycle(market, provider, pending):
    resp = market.set_status(provider, pending["id"], "accepted")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "accepted"
    resp = market.set_status(provider, pending["id"], "completed")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "completed"


def test_customer_can_cancel_pending(market, customer, pending):
    resp = market.set_status(customer, pending["id"], "cancelled")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelled"


def test_customer_cannot_cancel_accepted(market, customer, provider, pending):
    market.set_status(provider, pending["id"], "accepted")
    resp = market.set_status(customer, pending["id"], "cancelled")
    assert resp.status_code == 403
    assert resp.json()["message"] == "You do not have permission to update this request"


@pytest.mark.parametrize("status", ["accepted", "declined", "completed"])
def test_customer_cannot_set_provider_statuses(market, customer, pending, status):
    assert market.set_status(customer, pending["id"], status).status_code == 403


def test_provider_cannot_cancel(market, provider, pending):
    assert market.set_status(provider, pending["id"], "cancelled").status_code == 403


def test_other_provider_cannot_touch_request(market, pending):
    other = market.register("provider")
    assert market.set_status(other, pending["id"], "accepted").status_code == 403


def test_other_customer_cannot_cancel(market, pending):
    other = market.register("customer")
    assert market.set_status(other, pending["id"], "cancelled").status_code == 403


def test_terminal_statuses_are_not_guarded(market, provider, pending):
    market.set_status(provider, pending["id"], "declined")
    resp = market.set_status(provider, pending["id"], "completed")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "completed"


def test_unknown_request_is_not_found(market, provider):
    resp = market.set_status(provider, 9999, "accepted")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Request not found"


def test_invalid_status_is_validation_error(market, provider, pending):
    assert market.set_status(provider, pending["id"], "done").status_code == 400


def test_denied_transition_leaves_status_unchanged(client, market, customer, provider, pending):
    market.set_status(customer, pending["id"], "completed")
    listed = client.get("/requests", headers=market.headers(provider)).json()["data"]["data"]
    assert listed[0]["status"] == "pending"


def test_lists_are_scoped_to_the_caller(client, market, customer, provider, service, pending):
    other_customer = market.register("customer")
    market.request_service(other_customer, service["id"])
    other_provider = market.register("provider")

    mine = client.get("/requests", headers=market.headers(customer)).json()["data"]
    assert [r["id"] for r in mine["data"]] == [pending["id"]]

    incoming = client.get("/requests", headers=market.headers(provider)).json()["data"]
    assert incoming["pagination"]["total"] == 2
    assert all(r["provider_id"] == provider["user"]["id"] for r in incoming["data"])

    empty = client.get("/requests", headers=market.headers(other_provider)).json()["data"]
    assert empty["data"] == []
    assert empty["pagination"]["pages"] == 0


def test_list_filters_by_status(client, market, customer, provider, service, pending):
    market.set_status(customer, pending["id"], "cancelled")
    market.request_service(customer, service["id"])
    headers = market.headers(customer)
    cancelled = client.get("/requests", params={"status": "cancelled"}, headers=headers).json()["data"]
    assert [r["id"] for r in cancelled["data"]] == [pending["id"]]
    assert client.get("/requests", params={"status": "pending"}, headers=headers).json()["data"]["pagination"][
        "total"
    ] == 1


def test_list_rejects_unknown_status(client, market, customer):
    resp = client.get("/requests", params={"status": "bogus"}, headers=market.headers(customer))
    assert resp.status_code == 400


def test_list_requires_authentication(client):
    assert client.get("/requests").status_code == 401


def test_reopening_while_another_request_is_open_is_conflict(client, market, customer, provider, service, pending):
    market.set_status(provider, pending["id"], "declined")
    assert market.request_service(customer, service["id"]).status_code == 201
    resp = market.set_status(provider, pending["id"], "accepted")
    assert resp.status_code == 409
    assert resp.json()["message"] == "You already have a pending or accepted request for this service"
    statuses = {
        r["id"]: r["status"]
        for r in client.get("/requests", headers=market.headers(customer)).json()["data"]["data"]
    }
    assert statuses[pending["id"]] == "declined"


@pytest.mark.parametrize("request_id", [2**63, 0, -(2**64)])
def test_out_of_range_request_id_is_rejected(market, provider, request_id):
    assert market.set_status(provider, request_id, "accepted").status_code == 400


def test_out_of_range_service_id_is_rejected(market, customer):
    resp = market.request_service(customer, 2**63)
    assert resp.status_code == 400
    assert "service_id" in resp.json()["error"]


def test_out_of_range_page_is_rejected(client, market, customer):
    resp = client.get("/requests", params={"page": 2**62}, headers=market.headers(customer))
    assert resp.status_code == 400
