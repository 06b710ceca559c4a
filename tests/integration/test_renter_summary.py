"""Integration tests for the renter summary of an apartment."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.models.booking import BookingStatus
from src.services.auth_service import Requester
from src.services.errors import AccessDeniedError
from src.services.renter_summary_service import RenterSummaryResolver


@pytest.fixture
async def apartment_setup(factory):
    village = await factory.village()
    owner = await factory.user(name="Olga Owner")
    apartment = await factory.apartment(village, owner, name="Palm 1")
    cleaning = await factory.service_type()
    return owner, apartment, cleaning


class TestFromBooking:
    """The latest renter booking drives the summary."""

    async def test_latest_non_cancelled_booking_wins(self, session, factory, apartment_setup, super_admin):
        owner, apartment, cleaning = apartment_setup
        early = await factory.user(name="Early Renter", role="renter")
        late = await factory.user(name="Late Renter", role="renter")
        cancelled = await factory.user(name="Gone Renter", role="renter")

        old_booking = await factory.booking(
            apartment,
            early,
            arrival=datetime(2024, 1, 1, tzinfo=timezone.utc),
            leaving=datetime(2024, 1, 7, tzinfo=timezone.utc),
        )
        booking = await factory.booking(
            apartment,
            late,
            arrival=datetime(2024, 5, 1, tzinfo=timezone.utc),
            leaving=datetime(2024, 5, 9, tzinfo=timezone.utc),
        )
        await factory.booking(
            apartment,
            cancelled,
            arrival=datetime(2024, 9, 1, tzinfo=timezone.utc),
            leaving=datetime(2024, 9, 3, tzinfo=timezone.utc),
            status=BookingStatus.CANCELLED.value,
        )
        # Owner stays never count as renter bookings
        await factory.booking(
            apartment,
            owner,
            user_type="owner",
            arrival=datetime(2024, 12, 1, tzinfo=timezone.utc),
            leaving=datetime(2024, 12, 5, tzinfo=timezone.utc),
        )

        await factory.payment(apartment, late, 120, booking=booking, user_type="renter")
        await factory.payment(apartment, late, 8, currency="GBP", booking=booking)
        await factory.service_request(apartment, late, cleaning, 60, who_pays="renter", booking=booking)
        await factory.utility_reading(apartment, owner, water=(10, 15), who_pays="renter", booking=booking)
        await factory.payment(apartment, early, 999, booking=old_booking, user_type="renter")

        result, renter = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert result.id == apartment.id
        assert renter.booking_id == booking.id
        assert renter.user_id == late.id
        assert renter.user_name == "Late Renter"
        assert renter.summary.total_money_spent.snapshot() == {
            "EGP": Decimal("120"),
            "GBP": Decimal("8"),
        }
        # Service 60 + water 5 units at 2
        assert renter.summary.total_money_requested["EGP"] == Decimal("70")
        assert renter.summary.net_money["EGP"] == Decimal("-50")

    async def test_guest_name_preferred(self, session, factory, apartment_setup, super_admin):
        _, apartment, _ = apartment_setup
        renter = await factory.user(name="Booker", role="renter")
        await factory.booking(apartment, renter, person_name="Actual Guest")

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary.user_name == "Actual Guest"
        assert summary.summary.total_money_spent.is_zero()


class TestFromRenterTotals:
    """Without a renter booking, the leading renter is picked from the transactions."""

    async def test_no_candidates(self, session, apartment_setup, super_admin):
        _, apartment, _ = apartment_setup

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary is None

    async def test_largest_payment_total_wins(self, session, factory, apartment_setup, super_admin):
        owner, apartment, cleaning = apartment_setup
        small = await factory.user(name="Small Payer", role="renter")
        big = await factory.user(name="Big Payer", role="renter")

        await factory.payment(apartment, small, 100, user_type="renter", on=date(2024, 2, 1))
        await factory.payment(apartment, big, 400, user_type="renter", on=date(2024, 2, 2))
        await factory.payment(apartment, big, 3, currency="GBP", user_type="renter")
        await factory.service_request(apartment, big, cleaning, 25)
        # Owner-paid payment by the owner is not a renter transaction
        await factory.payment(apartment, owner, 5000)

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary.user_id == big.id
        assert summary.user_name == "Big Payer"
        assert summary.booking_id is None
        assert summary.summary.total_money_spent.snapshot() == {
            "EGP": Decimal("400"),
            "GBP": Decimal("3"),
        }
        assert summary.summary.total_money_requested["EGP"] == Decimal("25")

    async def test_tie_broken_by_service_requests_then_lowest_id(
        self, session, factory, apartment_setup, super_admin
    ):
        _, apartment, cleaning = apartment_setup
        first = await factory.user(name="First", role="renter")
        second = await factory.user(name="Second", role="renter")
        third = await factory.user(name="Third", role="renter")

        for renter in (first, second, third):
            await factory.payment(apartment, renter, 200, user_type="renter")
        await factory.service_request(apartment, second, cleaning, 40)
        await factory.service_request(apartment, third, cleaning, 40)

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary.user_id == second.id

    async def test_renter_booking_via_owner_type_counts_booking_user(
        self, session, factory, apartment_setup, super_admin
    ):
        owner, apartment, _ = apartment_setup
        renter = await factory.user(name="Booked Renter", role="renter")
        # Booking typed as owner stay, so no renter booking exists for the first path
        owner_typed = await factory.booking(apartment, renter, user_type="owner")
        await factory.payment(apartment, owner, 75, booking=owner_typed)

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary.user_id == renter.id
        assert summary.summary.total_money_spent["EGP"] == Decimal("75")

    async def test_renter_paid_reading_without_booking(self, session, factory, apartment_setup, super_admin):
        _, apartment, _ = apartment_setup
        renter = await factory.user(name="Meter Renter", role="renter")
        await factory.utility_reading(apartment, renter, water=(0, 10), who_pays="renter")

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary is not None
        assert summary.user_id == renter.id
        # 10 water units at 2
        assert summary.summary.total_money_requested["EGP"] == Decimal("20")
        assert summary.summary.total_money_spent.is_zero()

    async def test_unlinked_reading_adds_to_renter_requests(
        self, session, factory, apartment_setup, super_admin
    ):
        _, apartment, cleaning = apartment_setup
        renter = await factory.user(name="Mixed Renter", role="renter")
        await factory.payment(apartment, renter, 300, user_type="renter")
        await factory.service_request(apartment, renter, cleaning, 50)
        await factory.utility_reading(apartment, renter, electricity=(100, 120), who_pays="renter")

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        # Service 50 + electricity 20 units at 1.5
        assert summary.summary.total_money_requested["EGP"] == Decimal("80")
        assert summary.summary.net_money["EGP"] == Decimal("-220")

    async def test_staff_recorded_payment_does_not_make_a_renter(
        self, session, factory, apartment_setup, super_admin
    ):
        _, apartment, _ = apartment_setup
        clerk = await factory.user(name="Clerk", role="admin")
        renter = await factory.user(name="Real Renter", role="renter")
        await factory.payment(apartment, clerk, 900, user_type="renter")
        await factory.payment(apartment, renter, 100, user_type="renter")

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary.user_id == renter.id
        assert summary.user_name == "Real Renter"
        assert summary.summary.total_money_spent["EGP"] == Decimal("100")

    async def test_only_staff_recorded_payments_means_no_renter(
        self, session, factory, apartment_setup, super_admin
    ):
        _, apartment, _ = apartment_setup
        clerk = await factory.user(name="Clerk", role="admin")
        await factory.payment(apartment, clerk, 900, user_type="renter")
        await factory.utility_reading(apartment, clerk, water=(0, 5), who_pays="renter")

        _, summary = await RenterSummaryResolver(session).resolve(super_admin, apartment.id)

        assert summary is None


class TestAccess:
    async def test_owner_of_other_apartment_denied(self, session, factory, apartment_setup):
        _, apartment, _ = apartment_setup
        stranger = await factory.user(name="Stranger")

        with pytest.raises(AccessDeniedError):
            await RenterSummaryResolver(session).resolve(Requester.from_user(stranger), apartment.id)
