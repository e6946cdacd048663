from starlette.testclient import TestClient

from activity_booking.constants.booking import MobilityStatus, PersonRole

SESSION_DATA = {
    "title": "Watercolour Club",
    "date": "2030-05-01",
    "start_time": "14:00:00",
    "end_time": "15:30:00",
    "location": "Library",
    "category": "Creative",
    "capacities": {"participant": 1, "volunteer": 1},
}


def create_session(client: TestClient, auth, **overrides) -> dict:
    auth.as_staff()
    response = client.post("/api/v1/sessions", json={**SESSION_DATA, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def test_register_and_cancel(client: TestClient, auth):
    session = create_session(client, auth)
    auth.login("alice")

    response = client.post(
        f"/api/v1/sessions/{session['id']}/bookings",
        json={"membership": "Once a week", "notes": "First time"},
    )
    assert response.status_code == 201
    booking = response.json()
    assert booking["email"] == "alice@example.org"
    assert booking["name"] == "Alice"
    assert booking["role"] == "participant"
    assert booking["membership"] == "Once a week"

    mine = client.get("/api/v1/bookings/me").json()
    assert [b["id"] for b in mine] == [booking["id"]]

    response = client.delete(f"/api/v1/sessions/{session['id']}/bookings")
    assert response.status_code == 204

    response = client.delete(f"/api/v1/sessions/{session['id']}/bookings")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_BOOKED"


def test_business_rejections_carry_their_code(client: TestClient, auth):
    session = create_session(client, auth)
    url = f"/api/v1/sessions/{session['id']}/bookings"

    auth.login("alice")
    assert client.post(url, json={}).status_code == 201
    response = client.post(url, json={})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_BOOKED"

    auth.login("bob")
    response = client.post(url, json={})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "SESSION_FULL"

    auth.login("carol", mobility_status=MobilityStatus.WHEELCHAIR)
    response = client.post(url, json={"role": "volunteer"})
    assert response.status_code == 201

    response = client.post("/api/v1/sessions/ses_missing/bookings", json={})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_accessibility_and_clash_rejections(client: TestClient, auth):
    session = create_session(client, auth, capacities={"participant": 5})
    overlapping = create_session(
        client, auth, start_time="15:00:00", end_time="16:00:00", wheelchair_accessible=True
    )

    auth.login("dan", mobility_status=MobilityStatus.LIMITED)
    response = client.post(f"/api/v1/sessions/{session['id']}/bookings", json={})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ACCESSIBILITY_MISMATCH"

    auth.login("erin")
    assert client.post(f"/api/v1/sessions/{session['id']}/bookings", json={}).status_code == 201
    response = client.post(f"/api/v1/sessions/{overlapping['id']}/bookings", json={})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "TIMING_CLASH"


def test_role_not_offered_is_a_validation_error(client: TestClient, auth):
    session = create_session(client, auth, capacities={"participant": 5})
    auth.login("alice")

    response = client.post(
        f"/api/v1/sessions/{session['id']}/bookings", json={"role": "volunteer"}
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "ROLE_NOT_OFFERED"


def test_staff_booking_views_and_attendance(client: TestClient, auth):
    session = create_session(client, auth)
    auth.login("victor", role=PersonRole.VOLUNTEER)
    booking = client.post(
        f"/api/v1/sessions/{session['id']}/bookings", json={"role": "volunteer"}
    ).json()

    response = client.patch(f"/api/v1/bookings/{booking['id']}/attendance", json={"attended": True})
    assert response.status_code == 403

    auth.as_staff()
    roster = client.get(f"/api/v1/sessions/{session['id']}/bookings").json()
    assert [b["id"] for b in roster] == [booking["id"]]

    filtered = client.get("/api/v1/bookings", params={"email": "VICTOR@example.org"}).json()
    assert [b["id"] for b in filtered] == [booking["id"]]

    response = client.patch(f"/api/v1/bookings/{booking['id']}/attendance", json={"attended": True})
    assert response.status_code == 200
    assert response.json()["attended"] is True

    response = client.patch(f"/api/v1/bookings/{booking['id']}/attendance", json={"attended": "yes"})
    assert response.status_code == 422
