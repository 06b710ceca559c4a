"""Pytest configuration: in-memory database per test plus record factories."""

import os

# Set test database URL BEFORE any imports from src
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.models import (  # noqa: E402
    Apartment,
    Base,
    Booking,
    BookingStatus,
    Payment,
    PaymentMethod,
    ServiceRequest,
    ServiceType,
    User,
    UtilityReading,
    Village,
)
from src.services.auth_service import Requester  # noqa: E402


@pytest.fixture
async def engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Async session bound to the per-test database."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


class Factory:
    """Creates committed records with sensible defaults."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def village(self, name="Sunrise", water_price="2", electricity_price="1.5", phases=2):
        return await self._save(
            Village(
                name=name,
                water_price=Decimal(water_price),
                electricity_price=Decimal(electricity_price),
                phases=phases,
            )
        )

    async def user(self, name="Owner", role="owner", responsible_village=None, email=None):
        return await self._save(
            User(name=name, role=role, responsible_village=responsible_village, email=email)
        )

    async def apartment(self, village, owner, name="A1", phase=1):
        return await self._save(
            Apartment(name=name, village_id=village.id, owner_id=owner.id, phase=phase)
        )

    async def booking(
        self,
        apartment,
        user,
        user_type="renter",
        arrival=datetime(2024, 6, 1, tzinfo=timezone.utc),
        leaving=datetime(2024, 6, 10, tzinfo=timezone.utc),
        status=BookingStatus.BOOKED.value,
        person_name=None,
    ):
        return await self._save(
            Booking(
                apartment_id=apartment.id,
                user_id=user.id,
                user_type=user_type,
                arrival_date=arrival,
                leaving_date=leaving,
                status=status,
                person_name=person_name,
            )
        )

    async def payment_method(self, name="Cash"):
        return await self._save(PaymentMethod(name=name))

    async def payment(
        self,
        apartment,
        created_by,
        amount,
        currency="EGP",
        on=date(2024, 3, 1),
        user_type=None,
        booking=None,
        method=None,
        description=None,
    ):
        return await self._save(
            Payment(
                apartment_id=apartment.id,
                created_by=created_by.id,
                amount=Decimal(str(amount)),
                currency=currency,
                date=on,
                user_type=user_type,
                booking_id=booking.id if booking else None,
                method_id=method.id if method else None,
                description=description,
            )
        )

    async def service_type(self, name="Cleaning"):
        return await self._save(ServiceType(name=name))

    async def service_request(
        self,
        apartment,
        requester,
        service_type,
        cost,
        currency="EGP",
        created=datetime(2024, 3, 5, 10, 0),
        action=None,
        who_pays=None,
        booking=None,
        notes=None,
    ):
        return await self._save(
            ServiceRequest(
                apartment_id=apartment.id,
                requester_id=requester.id,
                type_id=service_type.id,
                cost=Decimal(str(cost)),
                currency=currency,
                date_created=created,
                date_action=action,
                who_pays=who_pays,
                booking_id=booking.id if booking else None,
                notes=notes,
            )
        )

    async def utility_reading(
        self,
        apartment,
        created_by,
        water=(None, None),
        electricity=(None, None),
        who_pays=None,
        booking=None,
        created_at=datetime(2024, 3, 10, 12, 0),
    ):
        return await self._save(
            UtilityReading(
                apartment_id=apartment.id,
                created_by=created_by.id,
                water_start_reading=water[0],
                water_end_reading=water[1],
                electricity_start_reading=electricity[0],
                electricity_end_reading=electricity[1],
                who_pays=who_pays,
                booking_id=booking.id if booking else None,
                start_date=created_at.date(),
                end_date=created_at.date(),
                created_at=created_at,
            )
        )


@pytest.fixture
def factory(session):
    """Record factory bound to the test session."""
    return Factory(session)


@pytest.fixture
async def super_admin(factory):
    user = await factory.user(name="Root", role="super_admin")
    return Requester.from_user(user)
