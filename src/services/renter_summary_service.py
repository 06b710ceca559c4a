"""Renter side of an apartment's invoices: who the renter is and what they owe."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.apartment import Apartment
from src.models.booking import Booking, BookingStatus
from src.models.types import Currency, PayerRole
from src.models.user import User
from src.services.auth_service import Requester
from src.services.currency_ledger import CurrencyLedger, FinancialSummary
from src.services.filters import ALL_PAYERS, DateFilter, TransactionScope
from src.services.invoice_service import InvoiceAggregator
from src.services.sources import GroupBy
from src.services.visibility_service import VisibilityFilter

logger = logging.getLogger(__name__)


@dataclass
class RenterSummary:
    """Renter figures for one apartment.

    booking_id and the dates are set only when the figures come from a
    single renter booking.
    """

    user_id: int
    user_name: str | None
    summary: FinancialSummary
    booking_id: int | None = None
    arrival_date: datetime | None = None
    leaving_date: datetime | None = None


def _ledger_rank(ledger: CurrencyLedger | None) -> tuple:
    if ledger is None:
        return tuple(0 for _ in Currency)
    return tuple(ledger[currency] for currency in Currency)


class RenterSummaryResolver:
    """Resolves the renter summary of an apartment.

    The latest non-cancelled renter booking wins. Without one, transactions
    are grouped per renter across the apartment and the renter with the
    largest payment total is chosen (EGP compared before GBP); ties go to
    the largest service-request total, then to the lowest user id.
    """

    def __init__(self, session: AsyncSession, aggregator: InvoiceAggregator | None = None):
        self.session = session
        self.aggregator = aggregator or InvoiceAggregator(session)

    async def latest_renter_booking(self, apartment_id: int) -> Booking | None:
        stmt = (
            select(Booking)
            .where(
                Booking.apartment_id == apartment_id,
                Booking.user_type == PayerRole.RENTER,
                Booking.status != BookingStatus.CANCELLED.value,
            )
            .order_by(Booking.arrival_date.desc(), Booking.id.desc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def from_booking(self, booking: Booking) -> RenterSummary:
        summaries = await self.aggregator.summarize(
            TransactionScope(booking_id=booking.id), DateFilter(), ALL_PAYERS
        )
        user = await self.session.get(User, booking.user_id)
        return RenterSummary(
            user_id=booking.user_id,
            user_name=booking.person_name or (user.name if user else None),
            summary=FinancialSummary.total(summaries.values()),
            booking_id=booking.id,
            arrival_date=booking.arrival_date,
            leaving_date=booking.leaving_date,
        )

    async def from_renter_totals(self, apartment_id: int) -> RenterSummary | None:
        scope = TransactionScope.for_apartment(apartment_id)
        aggregator = self.aggregator
        payments = await aggregator.payments.aggregate(
            self.session, scope, DateFilter(), ALL_PAYERS, GroupBy.RENTER
        )
        requests = await aggregator.service_requests.aggregate(
            self.session, scope, DateFilter(), ALL_PAYERS, GroupBy.RENTER
        )
        utilities = await aggregator.utilities.aggregate(
            self.session, scope, DateFilter(), ALL_PAYERS, GroupBy.RENTER
        )

        candidates = [key for key in payments.keys() | requests.keys() | utilities.keys() if key]
        if not candidates:
            return None

        renter_id = min(
            candidates,
            key=lambda key: (
                tuple(-amount for amount in _ledger_rank(payments.get(key))),
                tuple(-amount for amount in _ledger_rank(requests.get(key))),
                key,
            ),
        )
        user = await self.session.get(User, renter_id)
        return RenterSummary(
            user_id=renter_id,
            user_name=user.name if user else None,
            summary=FinancialSummary.combine(
                payments=payments.get(renter_id),
                service_requests=requests.get(renter_id),
                utilities=utilities.get(renter_id),
            ),
        )

    async def resolve(
        self, requester: Requester, apartment_id: int
    ) -> tuple[Apartment, RenterSummary | None]:
        """Apartment and its renter summary (None when no renter activity exists).

        Raises:
            NotFoundError: Apartment does not exist
            AccessDeniedError: Apartment not visible to the requester
        """
        apartment = await VisibilityFilter(requester).get_apartment(self.session, apartment_id)

        booking = await self.latest_renter_booking(apartment.id)
        if booking is not None:
            logger.debug("Renter summary of apartment %d from booking %d", apartment.id, booking.id)
            return apartment, await self.from_booking(booking)

        summary = await self.from_renter_totals(apartment.id)
        logger.debug(
            "Renter summary of apartment %d from renter totals: renter=%s",
            apartment.id,
            summary.user_id if summary else None,
        )
        return apartment, summary


__all__ = ["RenterSummaryResolver", "RenterSummary"]
