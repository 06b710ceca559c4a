"""Line-item invoices for one apartment, one user or one booking."""

import logging
from typing import Any, NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.apartment import Apartment
from src.models.user import UserRole
from src.services.auth_service import Requester
from src.services.currency_ledger import FinancialSummary
from src.services.filters import ALL_PAYERS, DateFilter, PayerFilter, TransactionScope
from src.services.sources import (
    InvoiceLine,
    PaymentsSource,
    ServiceRequestsSource,
    TransactionSource,
    UtilityReadingsSource,
)
from src.services.visibility_service import VisibilityFilter

logger = logging.getLogger(__name__)


class InvoiceDetail(NamedTuple):
    """Subject entity, its invoice lines (newest first) and their totals."""

    subject: Any
    lines: list[InvoiceLine]
    totals: FinancialSummary


def summarize_lines(lines: list[InvoiceLine]) -> FinancialSummary:
    """Payments go to money spent, every other line to money requested."""
    summary = FinancialSummary()
    for line in lines:
        side = summary.total_money_spent if line.is_spending else summary.total_money_requested
        side.add(line.currency, line.amount)
    return summary


class DetailAssembler:
    """Merges the detail lines of every transaction source for one subject."""

    def __init__(self, session: AsyncSession, sources: list[TransactionSource] | None = None):
        self.session = session
        self.sources = sources or [
            PaymentsSource(),
            ServiceRequestsSource(),
            UtilityReadingsSource(),
        ]

    async def collect(
        self,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
    ) -> list[InvoiceLine]:
        """Lines of all sources, sorted by date descending (id breaks ties)."""
        lines: list[InvoiceLine] = []
        for source in self.sources:
            lines.extend(await source.detail(self.session, scope, date_filter, payer_filter))
        lines.sort(key=lambda line: (line.date, line.id), reverse=True)
        return lines

    async def _assemble(self, subject, scope, date_filter, payer_filter) -> InvoiceDetail:
        lines = await self.collect(scope, date_filter, payer_filter)
        return InvoiceDetail(subject=subject, lines=lines, totals=summarize_lines(lines))

    async def apartment_invoices(
        self,
        requester: Requester,
        apartment_id: int,
        date_filter: DateFilter = DateFilter(),
        payer_filter: PayerFilter = PayerFilter(),
    ) -> InvoiceDetail:
        """All invoice lines of one apartment.

        Raises:
            NotFoundError: Apartment does not exist
            AccessDeniedError: Apartment not visible to the requester
        """
        apartment = await VisibilityFilter(requester).get_apartment(self.session, apartment_id)
        detail = await self._assemble(
            apartment, TransactionScope.for_apartment(apartment.id), date_filter, payer_filter
        )
        logger.debug("Apartment %d invoices: %d lines", apartment_id, len(detail.lines))
        return detail

    async def user_invoices(
        self,
        requester: Requester,
        user_id: int,
        date_filter: DateFilter = DateFilter(),
        payer_filter: PayerFilter = ALL_PAYERS,
    ) -> InvoiceDetail:
        """Invoice lines of one user.

        Owners get every line of the apartments they own. Renters get only
        the lines they created (payments, utility readings) or requested
        (service requests). Admins bound to a village only see lines of
        apartments in that village.
        """
        user = await VisibilityFilter(requester).get_user(self.session, user_id)

        if user.role == UserRole.RENTER.value:
            apartments = None
            if requester.village_filter is not None:
                apartments = select(Apartment.id).where(
                    Apartment.village_id == requester.village_filter
                )
            scope = TransactionScope(apartment_ids=apartments, creator_id=user.id)
        else:
            apartments = select(Apartment.id).where(Apartment.owner_id == user.id)
            if requester.village_filter is not None:
                apartments = apartments.where(Apartment.village_id == requester.village_filter)
            scope = TransactionScope(apartment_ids=apartments)

        detail = await self._assemble(user, scope, date_filter, payer_filter)
        logger.debug("User %d invoices: %d lines", user_id, len(detail.lines))
        return detail

    async def booking_invoices(self, requester: Requester, booking_id: int) -> InvoiceDetail:
        """Every line linked to one booking, whoever pays."""
        booking = await VisibilityFilter(requester).get_booking(self.session, booking_id)
        return await self._assemble(
            booking, TransactionScope(booking_id=booking.id), DateFilter(), ALL_PAYERS
        )


__all__ = ["DetailAssembler", "InvoiceDetail", "summarize_lines"]
