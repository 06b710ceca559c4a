"""Payments as a transaction source: money spent, in the payment's own currency."""

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.models.apartment import Apartment
from src.models.booking import Booking
from src.models.payment import Payment
from src.models.payment_method import PaymentMethod
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


class PaymentsSource(TransactionSource):
    """Payments recorded against apartments.

    Payer role is Payment.user_type (NULL = owner). When grouped by renter,
    a payment counts if it was made by a renter or booked by a renter-role
    user; it belongs to the booking's user, else to whoever recorded it when
    that user is a renter. Payments with neither have no renter (NULL key).
    """

    line_type = TransactionType.PAYMENT

    def __init__(self):
        super().__init__(Payment.apartment_id, Payment.booking_id, Payment.created_by)

    async def _aggregate(
        self,
        session: AsyncSession,
        scope: TransactionScope,
        date_filter: DateFilter,
        payer_filter: PayerFilter,
        group_by: GroupBy,
    ) -> dict[int, CurrencyLedger]:
        if group_by is GroupBy.RENTER:
            booking_user = aliased(User)
            recorder = aliased(User)
            key = func.coalesce(
                Booking.user_id,
                case((recorder.role == UserRole.RENTER.value, Payment.created_by)),
            )
            stmt = (
                select(key, Payment.currency, func.sum(Payment.amount))
                .select_from(Payment)
                .outerjoin(Booking, Payment.booking_id == Booking.id)
                .outerjoin(booking_user, Booking.user_id == booking_user.id)
                .outerjoin(recorder, Payment.created_by == recorder.id)
                .where(
                    or_(
                        func.lower(Payment.user_type) == PayerRole.RENTER.value,
                        booking_user.role == UserRole.RENTER.value,
                    )
                )
                .group_by(key, Payment.currency)
            )
        else:
            stmt = select(Payment.apartment_id, Payment.currency, func.sum(Payment.amount)).group_by(
                Payment.apartment_id, Payment.currency
            )

        stmt = self.scope(stmt, scope)
        stmt = date_filter.apply(stmt, Payment.date)
        stmt = payer_filter.apply(stmt, Payment.user_type)

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
                Payment,
                Apartment.name,
                PaymentMethod.name,
                Booking.person_name,
                booking_user.name,
            )
            .select_from(Payment)
            .join(Apartment, Payment.apartment_id == Apartment.id)
            .outerjoin(PaymentMethod, Payment.method_id == PaymentMethod.id)
            .outerjoin(Booking, Payment.booking_id == Booking.id)
            .outerjoin(booking_user, Booking.user_id == booking_user.id)
        )
        stmt = self.scope(stmt, scope)
        stmt = date_filter.apply(stmt, Payment.date)
        stmt = payer_filter.apply(stmt, Payment.user_type)

        result = await session.execute(stmt)

        lines = []
        for payment, apartment_name, method_name, guest_name, user_name in result.all():
            lines.append(
                InvoiceLine(
                    id=f"payment_{payment.id}",
                    type=self.line_type,
                    description=self.describe(payment, method_name),
                    amount=payment.amount,
                    currency=Currency.parse(payment.currency),
                    date=normalize_timestamp(payment.date),
                    payer_role=PayerRole.parse(payment.user_type),
                    apartment_id=payment.apartment_id,
                    apartment_name=apartment_name,
                    booking_id=payment.booking_id,
                    person_name=guest_name or user_name,
                )
            )
        return lines

    @staticmethod
    def describe(payment: Payment, method_name: str | None) -> str:
        if payment.description:
            return payment.description
        if method_name:
            return f"Payment via {method_name}"
        return f"Payment of {format_amount(payment.amount)} {Currency.parse(payment.currency).value}"


__all__ = ["PaymentsSource"]
