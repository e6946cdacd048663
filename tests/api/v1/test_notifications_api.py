from starlette.testclient import TestClient

from activity_booking.constants.booking import PersonRole


def send(client: TestClient, **overrides) -> dict:
    data = {
        "title": "Volunteers needed",
        "message": "We need two more helpers for Saturday.",
        "type": "signup_request",
        "target_audience": "volunteers",
    }
    data.update(overrides)
    response = client.post("/api/v1/notifications", json=data)
    assert response.status_code == 201, response.text
    return response.json()


def test_only_staff_can_send(client: TestClient, auth):
    auth.login("alice")

    response = client.post(
        "/api/v1/notifications",
        json={"title": "Hi", "message": "Hello", "type": "announcement"},
    )

    assert response.status_code == 403


def test_past_expiry_is_rejected(client: TestClient):
    response = client.post(
        "/api/v1/notifications",
        json={
            "title": "Too late",
            "message": "Already over",
            "type": "reminder",
            "expires_at": "2000-01-01T00:00:00Z",
        },
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_EXPIRY"


def test_recipient_feed_and_read_state(client: TestClient, auth):
    for_volunteers = send(client)
    for_everyone = send(client, title="Hall closed", type="announcement", target_audience="all")

    auth.login("alice", role=PersonRole.PARTICIPANT)
    feed = client.get("/api/v1/notifications/me").json()
    assert [n["id"] for n in feed["notifications"]] == [for_everyone["id"]]
    assert feed["unread_count"] == 1

    response = client.post(f"/api/v1/notifications/{for_volunteers['id']}/read")
    assert response.status_code == 404

    auth.login("victor", role=PersonRole.VOLUNTEER)
    feed = client.get("/api/v1/notifications/me").json()
    assert {n["id"] for n in feed["notifications"]} == {for_volunteers["id"], for_everyone["id"]}
    assert feed["unread_count"] == 2

    response = client.post(f"/api/v1/notifications/{for_volunteers['id']}/read")
    assert response.status_code == 200
    assert response.json()["is_read"] is True
    client.post(f"/api/v1/notifications/{for_volunteers['id']}/read")

    feed = client.get("/api/v1/notifications/me").json()
    assert feed["unread_count"] == 1
    read_flags = {n["id"]: n["is_read"] for n in feed["notifications"]}
    assert read_flags == {for_volunteers["id"]: True, for_everyone["id"]: False}

    auth.as_staff()
    listed = client.get("/api/v1/notifications").json()
    by_id = {n["id"]: n for n in listed}
    assert by_id[for_volunteers["id"]]["read_by"] == ["usr_victor"]


def test_delete_notification(client: TestClient):
    note = send(client)

    assert client.delete(f"/api/v1/notifications/{note['id']}").status_code == 204
    assert client.delete(f"/api/v1/notifications/{note['id']}").status_code == 404
    assert client.get("/api/v1/notifications").json() == []
