"""Service request ORM model for billable services on an apartment."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import Currency, CurrencyType, PayerRole, PayerRoleType


class ServiceRequest(Base, BaseModel):
    """
    Billable service performed on an apartment.

    The effective date of a request is date_action when the service was
    actually carried out, otherwise date_created.
    """

    __tablename__ = "service_requests"

    type_id: Mapped[int | None] = mapped_column(
        ForeignKey("service_types.id"),
        nullable=True,
    )
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
    requester_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[Currency] = mapped_column(CurrencyType(), nullable=False, default=Currency.EGP)
    who_pays: Mapped[PayerRole | None] = mapped_column(
        PayerRoleType(),
        nullable=True,
        comment="owner, renter or company (NULL = owner)",
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Created")
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_action: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    apartment: Mapped["Apartment"] = relationship("Apartment")  # noqa: F821
    booking: Mapped["Booking | None"] = relationship("Booking")  # noqa: F821
    service_type: Mapped["ServiceType | None"] = relationship("ServiceType")  # noqa: F821

    __table_args__ = (
        Index("idx_service_request_apartment", "apartment_id"),
        Index("idx_service_request_requester", "requester_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ServiceRequest(id={self.id}, apartment_id={self.apartment_id}, "
            f"cost={self.cost}, currency={self.currency}, who_pays={self.who_pays})>"
        )


__all__ = ["ServiceRequest"]
