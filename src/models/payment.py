"""Payment ORM model for money received against an apartment."""

import datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import Currency, CurrencyType, PayerRole, PayerRoleType


class Payment(Base, BaseModel):
    """Cash received for an apartment, optionally tied to a booking.

    user_type records who paid (owner or renter); NULL reads back as owner.
    """

    __tablename__ = "payments"

    apartment_id: Mapped[int] = mapped_column(
        ForeignKey("apartments.id"),
        nullable=False,
        index=True,
    )
    booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("bookings.id"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    method_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_methods.id"),
        nullable=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[Currency] = mapped_column(CurrencyType(), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    user_type: Mapped[PayerRole | None] = mapped_column(
        PayerRoleType(),
        nullable=True,
        comment="Who paid: owner or renter (NULL = owner)",
    )
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    apartment: Mapped["Apartment"] = relationship("Apartment")  # noqa: F821
    booking: Mapped["Booking | None"] = relationship("Booking")  # noqa: F821
    method: Mapped["PaymentMethod | None"] = relationship("PaymentMethod")  # noqa: F821

    __table_args__ = (
        Index("idx_payment_apartment_date", "apartment_id", "date"),
        Index("idx_payment_created_by", "created_by"),
    )

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, apartment_id={self.apartment_id}, "
            f"amount={self.amount}, currency={self.currency}, date={self.date})>"
        )


__all__ = ["Payment"]
