"""Booking ORM model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import PayerRole, PayerRoleType


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    BOOKED = "Booked"
    CHECKED_IN = "Checked In"
    CHECKED_OUT = "Checked Out"
    CANCELLED = "Cancelled"


class Booking(Base, BaseModel):
    """A stay in an apartment by its owner or by a renter."""

    __tablename__ = "bookings"

    apartment_id: Mapped[int] = mapped_column(
        ForeignKey("apartments.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    user_type: Mapped[PayerRole] = mapped_column(
        PayerRoleType(),
        nullable=False,
        default=PayerRole.OWNER,
        comment="owner or renter",
    )
    arrival_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    leaving_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.BOOKED,
    )
    person_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Name of the guest when different from the booking user",
    )

    apartment: Mapped["Apartment"] = relationship("Apartment")  # noqa: F821
    user: Mapped["User"] = relationship("User")  # noqa: F821

    __table_args__ = (
        Index("idx_booking_apartment_user", "apartment_id", "user_id"),
        Index("idx_booking_apartment_type", "apartment_id", "user_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, apartment_id={self.apartment_id}, user_id={self.user_id}, "
            f"user_type={self.user_type}, status={self.status})>"
        )


__all__ = ["Booking", "BookingStatus"]
