"""Utility reading model - water and electricity meter readings per apartment."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel
from src.models.types import PayerRole, PayerRoleType


class UtilityReading(Base, BaseModel):
    """Meter readings for an apartment over a stay or billing window.

    Attributes:
        apartment_id: Apartment the meters belong to
        booking_id: Optional booking the consumption is charged against
        water_start_reading / water_end_reading: Water meter values (nullable)
        electricity_start_reading / electricity_end_reading: Electricity meter values (nullable)
        who_pays: Responsible party (NULL = owner)
        created_by: User who recorded the reading

    The cost is never stored; it is derived from the village unit prices at
    read time and is always in EGP.
    """

    __tablename__ = "utility_readings"

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
    water_start_reading: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    water_end_reading: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    electricity_start_reading: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    electricity_end_reading: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    who_pays: Mapped[PayerRole | None] = mapped_column(PayerRoleType(), nullable=True)
    created_by: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    apartment: Mapped["Apartment"] = relationship("Apartment")  # noqa: F821
    booking: Mapped["Booking | None"] = relationship("Booking")  # noqa: F821

    __table_args__ = (Index("idx_utility_reading_apartment_created", "apartment_id", "created_at"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<UtilityReading(id={self.id}, apartment_id={self.apartment_id}, "
            f"who_pays={self.who_pays})>"
        )


__all__ = ["UtilityReading"]
