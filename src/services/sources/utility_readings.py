"""Utility readings as a transaction source: metered consumption priced in EGP."""

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.config.settings import settings
from src.models.apartment import Apartment
from src.models.booking import Booking
from src.models.types import Currency, PayerRole
from src.models.user import User, UserRole
from src.models.utility_reading import UtilityReading
from src.models.village import Village
from src.services.currency_ledger import CurrencyLedger
from src.services.filters import DateFilter, PayerFilter, TransactionScope
from src.services.meter_service import UtilityCost, calculate_utility_cost
from src.services.sources.base import (
    GroupBy,
    InvoiceLine,
    TransactionSource,
    TransactionType,
    normalize_timestamp,
)


class UtilityReadingsSource(TransactionSource):
    """Water and electricity readings priced with the owning village's unit rates.

    Costs are computed per reading in Python (meter rollover included) and
    always land in the EGP ledger. Payer role is who_pays (NULL = owner).
    When grouped by renter, only renter-paid readings count. They belong to
    the booking's user, else to whoever recorded them when that user is a
    renter.
    """

    line_type = TransactionType.UTILITY_READING

    def __init__(self, max_meter_value: int | None = None):
        super().__init__(
            UtilityReading.apartment_id,
            UtilityReading.booking_id,
            UtilityReading.created_by,
        )
        self.max_meter_value = max_meter_value or settings.max_meter_value

    def price(self, reading: UtilityReading, water_price, electricity_price) -> UtilityCost:
        return calculate_utility_cost(
            reading.water_start_reading,
            reading.water_end_reading,
            reading.electricity_start_reading,
            reading.electricity_end_reading,
            water_price,
            electricity_price,
            self.max_meter_value,
        )

    def _priced_readings(self):
        return (
            select(UtilityReading, Village.water_price, Village.electricity_price)
            .select_from(UtilityReading)
            .join(Apartment, UtilityReading.apartment_id == Apartment.id)
            .outerjoin(Village, Apartment.village_id == Village.id)
        )

    async def _aggregate(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
        group_by: GroupBy,
    ) -> dict[int, CurrencyLedger]:
        stmt = self._priced_readings()
        if group_by is GroupBy.RENTER:
            recorder = aliased(User)
            key = func.coalesce(
                Booking.user_id,
                case((recorder.role == UserRole.RENTER.value, UtilityReading.created_by)),
            )
            stmt = (
                stmt.add_columns(key)
                .outerjoin(Booking, UtilityReading.booking_id == Booking.id)
                .outerjoin(recorder, UtilityReading.created_by == recorder.id)
            )
            stmt = stmt.where(func.lower(UtilityReading.who_pays) == PayerRole.RENTER.value)

        stmt = self.scope(stmt, scope)
        stmt = date_filter.apply(stmt, UtilityReading.created_at)
        stmt = payer_filter.apply(stmt, UtilityReading.who_pays)

        result = await session.execute(stmt)

        ledgers: dict[int, CurrencyLedger] = {}
        for row in result.all():
            reading, water_price, electricity_price = row[0], row[1], row[2]
            key = row[3] if group_by is GroupBy.RENTER else reading.apartment_id
            cost = self.price(reading, water_price, electricity_price)
            ledgers.setdefault(key, CurrencyLedger()).add(Currency.EGP, cost.total)
        return ledgers

    async def _detail(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
    ) -> list[InvoiceLine]:
        booking_user = aliased(User)
        stmt = (
            self._priced_readings()
            .add_columns(Apartment.name, Booking.person_name, booking_user.name)
            .outerjoin(Booking, UtilityReading.booking_id == Booking.id)
            .outerjoin(booking_user, Booking.user_id == booking_user.id)
        )
        stmt = self.scope(stmt, scope)
        stmt = date_filter.apply(stmt, UtilityReading.created_at)
        stmt = payer_filter.apply(stmt, UtilityReading.who_pays)

        result = await session.execute(stmt)

        lines = []
        for reading, water_price, electricity_price, apartment_name, guest_name, user_name in result.all():
            cost = self.price(reading, water_price, electricity_price)
            payer = PayerRole.parse(reading.who_pays)
            lines.append(
                InvoiceLine(
                    id=f"utility_{reading.id}",
                    type=self.line_type,
                    description=self.describe(cost, payer),
                    amount=cost.total,
                    currency=Currency.EGP,
                    date=normalize_timestamp(reading.created_at),
                    payer_role=payer,
                    apartment_id=reading.apartment_id,
                    apartment_name=apartment_name,
                    booking_id=reading.booking_id,
                    person_name=guest_name or user_name,
                )
            )
        return lines

    @staticmethod
    def describe(cost: UtilityCost, payer: PayerRole) -> str:
        parts = []
        if cost.water_usage > 0:
            parts.append(f"Water {cost.water_usage:.2f} units")
        if cost.electricity_usage > 0:
            parts.append(f"Electricity {cost.electricity_usage:.2f} units")
        parts.append(payer.value)
        return f"Utility: {', '.join(parts)}"


__all__ = ["UtilityReadingsSource"]
