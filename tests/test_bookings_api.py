"""
API tests for /api/v1/bookings.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


def booking(tour_id, **extra):
    payload = {
        "tourId": tour_id,
        "adults": 2,
        "children": 1,
        "startDate": "2026-07-01T09:00:00Z",
        "endDate": "2026-07-06T18:00:00Z",
    }
    payload.update(extra)
    return payload


class TestCreateBooking:
    """POST /api/v1/bookings"""

    async def test_create(self, client: AsyncClient, make_user, make_tour):
        tour = await make_tour()
        user, headers = await make_user()
        response = await client.post("/api/v1/bookings", json=booking(tour.id), headers=headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["tourId"] == tour.id
        assert data["userId"] == user.id
        assert data["adults"] == 2
        assert data["startDate"].startswith("2026-07-01T09:00:00")

    async def test_requires_login(self, client: AsyncClient, make_tour):
        tour = await make_tour()
        response = await client.post("/api/v1/bookings", json=booking(tour.id))
        assert response.status_code == 401

    async def test_unknown_tour(self, client: AsyncClient, make_user):
        _, headers = await make_user()
        response = await client.post("/api/v1/bookings", json=booking("missing"), headers=headers)
        assert response.status_code == 404

    async def test_zero_adults_counts_as_missing(self, client: AsyncClient, make_user, make_tour):
        tour = await make_tour()
        _, headers = await make_user()
        response = await client.post("/api/v1/bookings", json=booking(tour.id, adults=0), headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "adults is missing in the request body"

    async def test_end_before_start(self, client: AsyncClient, make_user, make_tour):
        tour = await make_tour()
        _, headers = await make_user()
        response = await client.post(
            "/api/v1/bookings",
            json=booking(tour.id, startDate="2026-07-06", endDate="2026-07-01"),
            headers=headers,
        )
        assert response.status_code == 406
        assert response.json()["message"] == "end date must not be before the start date"

    async def test_invalid_date(self, client: AsyncClient, make_user, make_tour):
        tour = await make_tour()
        _, headers = await make_user()
        response = await client.post(
            "/api/v1/bookings", json=booking(tour.id, startDate="next tuesday"), headers=headers
        )
        assert response.status_code == 406
        assert response.json()["message"] == "next tuesday is not a valid date"


class TestListBookings:

    async def test_my_bookings(self, client: AsyncClient, make_user, make_tour):
        tour = await make_tour()
        _, mine = await make_user()
        _, theirs = await make_user()
        await client.post("/api/v1/bookings", json=booking(tour.id), headers=mine)
        await client.post("/api/v1/bookings", json=booking(tour.id), headers=theirs)

        response = await client.get("/api/v1/bookings/my-bookings", headers=mine)
        assert response.status_code == 200
        assert response.json()["count"] == 1

    async def test_all_bookings_admin_only(self, client: AsyncClient, make_user, make_tour):
        tour = await make_tour()
        _, user = await make_user()
        _, admin = await make_user(role="admin")
        await client.post("/api/v1/bookings", json=booking(tour.id), headers=user)

        response = await client.get("/api/v1/bookings", headers=user)
        assert response.status_code == 403

        response = await client.get("/api/v1/bookings", headers=admin)
        assert response.status_code == 200
        assert response.json()["count"] == 1
