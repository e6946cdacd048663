from starlette.testclient import TestClient

from activity_booking.constants.booking import PersonRole
from activity_booking.core.config import settings

INTERNAL_HEADERS = {"X-Internal-Api-Key": settings.INTERNAL_API_KEY}


def sync_person(client: TestClient, person_id: str, name: str, role: str) -> dict:
    response = client.put(
        f"/api/v1/internal/people/{person_id}",
        json={"name": name, "email": f"{name.lower()}@example.org", "role": role},
        headers=INTERNAL_HEADERS,
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_audience_preview(client: TestClient):
    sync_person(client, "usr_alice", "Alice", "participant")
    sync_person(client, "usr_victor", "Victor", "volunteer")

    response = client.get("/api/v1/audiences/volunteers")

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["people"][0]["id"] == "usr_victor"

    assert client.get("/api/v1/audiences/everyone").status_code == 422


def test_experienced_volunteers_listing(client: TestClient, auth):
    sync_person(client, "usr_victor", "Victor", "volunteer")
    for day in range(1, 6):
        auth.as_staff()
        session = client.post(
            "/api/v1/sessions",
            json={
                "title": f"Garden day {day}",
                "date": f"2030-03-0{day}",
                "start_time": "09:00:00",
                "end_time": "12:00:00",
                "location": "Allotment",
                "category": "Movement",
                "capacities": {"volunteer": 3},
            },
        ).json()
        auth.login("victor", role=PersonRole.VOLUNTEER)
        booking = client.post(
            f"/api/v1/sessions/{session['id']}/bookings", json={"role": "volunteer"}
        ).json()
        auth.as_staff()
        client.patch(f"/api/v1/bookings/{booking['id']}/attendance", json={"attended": True})

    response = client.get("/api/v1/volunteers/experienced")

    assert response.status_code == 200
    assert response.json() == [
        {"id": "usr_victor", "name": "Victor", "email": "victor@example.org", "attended_count": 5}
    ]


def test_people_listing_by_role(client: TestClient, auth):
    sync_person(client, "usr_sam", "Sam", "staff")
    sync_person(client, "usr_alice", "Alice", "participant")

    staff = client.get("/api/v1/people", params={"role": "staff"}).json()
    assert [p["id"] for p in staff] == ["usr_sam"]

    auth.login("alice")
    assert client.get("/api/v1/people").status_code == 403
