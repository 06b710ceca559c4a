"""Contract tests for the /api/invoices endpoints."""

from datetime import date
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.services import get_async_session


@pytest.fixture
async def client(session):
    """HTTP client talking to the app with the test session injected."""

    async def override_session():
        yield session

    app.dependency_overrides[get_async_session] = override_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def world(factory):
    village = await factory.village()
    owner = await factory.user(name="Olga Owner")
    renter = await factory.user(name="Rita Renter", role="renter")
    admin = await factory.user(name="Root", role="super_admin")
    apartment = await factory.apartment(village, owner, name="Palm 1")
    second = await factory.apartment(village, owner, name="Palm 2", phase=2)
    booking = await factory.booking(apartment, renter)
    cleaning = await factory.service_type()

    await factory.payment(apartment, owner, 500)
    await factory.payment(second, owner, 12.5, currency="GBP")
    await factory.service_request(apartment, owner, cleaning, 200)
    await factory.utility_reading(apartment, owner, water=(0, 20), electricity=(0, 40))
    await factory.payment(apartment, renter, 90, booking=booking, user_type="renter", on=date(2024, 6, 2))
    await factory.payment(apartment, owner, 33, on=date(2021, 4, 4))
    return {
        "owner": owner,
        "renter": renter,
        "admin": admin,
        "apartment": apartment,
        "second": second,
        "booking": booking,
    }


def auth(user) -> dict[str, str]:
    return {"X-User-Id": str(user.id)}


class TestSummaryEndpoint:
    """Tests for GET /api/invoices/summary."""

    async def test_response_shape(self, client, world):
        response = await client.get("/api/invoices/summary?year=2024", headers=auth(world["admin"]))

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"summary", "totals", "pagination"}
        assert body["pagination"] == {"page": 1, "limit": 50, "total": 2, "total_pages": 1}

        first = body["summary"][0]
        assert first["apartment_name"] == "Palm 1"
        assert first["village_name"] == "Sunrise"
        assert first["owner_name"] == "Olga Owner"
        assert first["total_money_spent"] == {"EGP": 500.0, "GBP": 0.0}
        assert first["total_money_requested"] == {"EGP": 300.0, "GBP": 0.0}
        assert first["net_money"] == {"EGP": -200.0, "GBP": 0.0}
        assert body["totals"]["total_money_spent"] == {"EGP": 500.0, "GBP": 12.5}

    async def test_include_renter(self, client, world):
        response = await client.get(
            "/api/invoices/summary",
            params={"year": 2024, "include_renter": "true"},
            headers=auth(world["admin"]),
        )

        assert response.json()["totals"]["total_money_spent"]["EGP"] == 590.0

    async def test_limit_clamped(self, client, world):
        response = await client.get(
            "/api/invoices/summary", params={"limit": 1000, "page": 0}, headers=auth(world["admin"])
        )

        pagination = response.json()["pagination"]
        assert pagination["limit"] == 200
        assert pagination["page"] == 1

    async def test_paging_keeps_totals(self, client, world):
        first = await client.get("/api/invoices/summary?limit=1&page=1", headers=auth(world["admin"]))
        second = await client.get("/api/invoices/summary?limit=1&page=2", headers=auth(world["admin"]))

        assert first.json()["totals"] == second.json()["totals"]
        assert first.json()["pagination"]["total_pages"] == 2
        assert [row["apartment_name"] for row in second.json()["summary"]] == ["Palm 2"]

    async def test_inverted_range_is_invalid_argument(self, client, world):
        response = await client.get(
            "/api/invoices/summary",
            params={"date_from": "2024-05-01", "date_to": "2024-01-01"},
            headers=auth(world["admin"]),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_argument"

    async def test_malformed_date_is_invalid_argument(self, client, world):
        response = await client.get(
            "/api/invoices/summary?date_from=yesterday", headers=auth(world["admin"])
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_argument"

    async def test_bad_user_type(self, client, world):
        response = await client.get(
            "/api/invoices/summary?user_type=landlord", headers=auth(world["admin"])
        )

        assert response.status_code == 400

    async def test_missing_identity(self, client, world):
        response = await client.get("/api/invoices/summary")

        assert response.status_code == 401
        assert response.json() == {
            "error": {"code": "unauthenticated", "message": "Authentication required"}
        }

    async def test_unknown_identity(self, client, world):
        response = await client.get("/api/invoices/summary", headers={"X-User-Id": "9999"})

        assert response.status_code == 401


class TestDetailEndpoints:
    async def test_apartment_detail(self, client, world):
        apartment = world["apartment"]
        response = await client.get(
            f"/api/invoices/apartment/{apartment.id}", headers=auth(world["owner"])
        )

        assert response.status_code == 200
        body = response.json()
        assert body["apartment"]["name"] == "Palm 1"
        assert [line["type"] for line in body["invoices"]] == [
            "Utility Reading",
            "Service Request",
            "Payment",
            "Payment",
        ]
        line = body["invoices"][0]
        assert set(line) == {
            "id",
            "type",
            "description",
            "amount",
            "currency",
            "date",
            "payer_role",
            "apartment_id",
            "apartment_name",
            "booking_id",
            "person_name",
        }
        assert line["amount"] == 100.0
        assert line["currency"] == "EGP"
        assert body["totals"]["total_money_spent"]["EGP"] == 533.0

    async def test_apartment_not_found(self, client, world):
        response = await client.get("/api/invoices/apartment/424242", headers=auth(world["owner"]))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    async def test_apartment_access_denied_for_renter(self, client, world):
        response = await client.get(
            f"/api/invoices/apartment/{world['second'].id}", headers=auth(world["renter"])
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "access_denied"

    async def test_non_numeric_id(self, client, world):
        response = await client.get("/api/invoices/apartment/abc", headers=auth(world["owner"]))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_argument"

    @pytest.mark.parametrize(
        "path",
        [
            "/api/invoices/apartment/0",
            "/api/invoices/apartment/-3",
            "/api/invoices/user/0",
            "/api/invoices/booking/-1",
            "/api/invoices/renter-summary/0",
        ],
    )
    async def test_non_positive_id_is_invalid_argument(self, client, world, path):
        response = await client.get(path, headers=auth(world["admin"]))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_argument"

    async def test_user_detail_includes_renter_by_default(self, client, world):
        response = await client.get(
            f"/api/invoices/user/{world['owner'].id}", headers=auth(world["owner"])
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["name"] == "Olga Owner"
        assert body["totals"]["total_money_spent"] == {"EGP": 623.0, "GBP": 12.5}

    async def test_user_detail_of_other_user_denied(self, client, world):
        response = await client.get(
            f"/api/invoices/user/{world['owner'].id}", headers=auth(world["renter"])
        )

        assert response.status_code == 403

    async def test_booking_detail(self, client, world):
        booking = world["booking"]
        response = await client.get(f"/api/invoices/booking/{booking.id}", headers=auth(world["renter"]))

        assert response.status_code == 200
        body = response.json()
        assert body["booking"]["id"] == booking.id
        assert body["booking"]["user_type"] == "renter"
        assert [line["amount"] for line in body["invoices"]] == [90.0]


class TestPreviousYearsEndpoint:
    async def test_totals_before_year(self, client, world):
        response = await client.get(
            "/api/invoices/previous-years?before_year=2024", headers=auth(world["owner"])
        )

        assert response.status_code == 200
        body = response.json()
        assert body["before_year"] == 2024
        assert body["totals"]["total_money_spent"] == {"EGP": 33.0, "GBP": 0.0}

    async def test_before_year_required(self, client, world):
        response = await client.get("/api/invoices/previous-years", headers=auth(world["owner"]))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_argument"


class TestRenterSummaryEndpoint:
    async def test_booking_based_summary(self, client, world):
        apartment = world["apartment"]
        response = await client.get(
            f"/api/invoices/renter-summary/{apartment.id}", headers=auth(world["owner"])
        )

        assert response.status_code == 200
        body = response.json()
        assert body["apartment_name"] == "Palm 1"
        summary = body["renter_summary"]
        assert summary["user_name"] == "Rita Renter"
        assert summary["booking_id"] == world["booking"].id
        assert summary["total_money_spent"] == {"EGP": 90.0, "GBP": 0.0}

    async def test_no_renter(self, client, world):
        response = await client.get(
            f"/api/invoices/renter-summary/{world['second'].id}", headers=auth(world["owner"])
        )

        assert response.json()["renter_summary"] is None


class TestServerErrors:
    async def test_unexpected_error_is_internal(self, client, world):
        with patch(
            "src.api.invoices.PaginatedSummaryService.get_summary",
            side_effect=RuntimeError("database went away"),
        ):
            response = await client.get("/api/invoices/summary", headers=auth(world["admin"]))

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_error"


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
