"""Service requests as a transaction source: money requested, in the request's currency."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.models.apartment import Apartment
from src.models.booking import Booking
from src.models.service_request import ServiceRequest
from src.models.service_type import ServiceType
from src.models.types import Currency, PayerRole
from src.models.user import User, UserRole
from src.services.currency_ledger import CurrencyLedger
from src.services.filters import DateFilter, PayerFilter, TransactionScope
from src.services.sources.base import (
    GroupBy,
    InvoiceLine,
    TransactionSource,
    TransactionType,
    format_amount,
    normalize_timestamp,
)

# Action date when the service was carried out, creation date otherwise
EFFECTIVE_DATE = func.coalesce(ServiceRequest.date_action, ServiceRequest.date_created)


class ServiceRequestsSource(TransactionSource):
    """Billable service requests.

    Payer role is who_pays (case-insensitive, NULL = owner). When grouped by
    renter, only requests raised by renter-role users count, keyed by the
    requester.
    """

    line_type = TransactionType.SERVICE_REQUEST

    def __init__(self):
        super().__init__(
            ServiceRequest.apartment_id,
            ServiceRequest.booking_id,
            ServiceRequest.requester_id,
        )

    async def _aggregate(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
        group_by: GroupBy,
    ) -> dict[int, CurrencyLedger]:
        if group_by is GroupBy.RENTER:
            requester = aliased(User)
            stmt = (
                select(
                    ServiceRequest.requester_id,
                    ServiceRequest.currency,
                    func.sum(ServiceRequest.cost),
                )
                .select_from(ServiceRequest)
                .join(requester, ServiceRequest.requester_id == requester.id)
                .where(requester.role == UserRole.RENTER.value)
                .group_by(ServiceRequest.requester_id, ServiceRequest.currency)
            )
        else:
            stmt = select(
                ServiceRequest.apartment_id,
                ServiceRequest.currency,
                func.sum(ServiceRequest.cost),
            ).group_by(ServiceRequest.apartment_id, ServiceRequest.currency)

        stmt = self.scope(stmt, scope)
        stmt = date_filter.apply(stmt, EFFECTIVE_DATE)
        stmt = payer_filter.apply(stmt, ServiceRequest.who_pays)

        result = await session.execute(stmt)

        ledgers: dict[int, CurrencyLedger] = {}
        for key_value, currency, total in result.all():
            ledgers.setdefault(key_value, CurrencyLedger()).add(currency, total)
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
            select(
                ServiceRequest,
                Apartment.name,
                ServiceType.name,
                Booking.person_name,
                booking_user.name,
            )
            .select_from(ServiceRequest)
            .join(Apartment, ServiceRequest.apartment_id == Apartment.id)
            .outerjoin(ServiceType, ServiceRequest.type_id == ServiceType.id)
            .outerjoin(Booking, ServiceRequest.booking_id == Booking.id)
            .outerjoin(booking_user, Booking.user_id == booking_user.id)
        )
        stmt = self.scope(stmt, scope)
        stmt = date_filter.apply(stmt, EFFECTIVE_DATE)
        stmt = payer_filter.apply(stmt, ServiceRequest.who_pays)

        result = await session.execute(stmt)

        lines = []
        for request, apartment_name, service_name, guest_name, user_name in result.all():
            lines.append(
                InvoiceLine(
                    id=f"service_{request.id}",
                    type=self.line_type,
                    description=self.describe(request, service_name),
                    amount=request.cost,
                    currency=Currency.parse(request.currency),
                    date=normalize_timestamp(request.date_action or request.date_created),
                    payer_role=PayerRole.parse(request.who_pays),
                    apartment_id=request.apartment_id,
                    apartment_name=apartment_name,
                    booking_id=request.booking_id,
                    person_name=guest_name or user_name,
                )
            )
        return lines

    @staticmethod
    def describe(request: ServiceRequest, service_name: str | None) -> str:
        if service_name and request.notes:
            return f"{service_name} - {request.notes}"
        if service_name:
            return service_name
        if request.notes:
            return request.notes
        return f"Service Request of {format_amount(request.cost)} {Currency.parse(request.currency).value}"


__all__ = ["ServiceRequestsSource", "EFFECTIVE_DATE"]
