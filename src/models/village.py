"""Village ORM model holding utility unit prices."""

from decimal import Decimal

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Village(Base, BaseModel):
    """A village grouping apartments.

    electricity_price and water_price are currency-less unit rates; utility
    costs derived from them are always expressed in EGP.
    """

    __tablename__ = "villages"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    electricity_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
        default=Decimal("0"),
        comment="Price per electricity meter unit",
    )
    water_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
        default=Decimal("0"),
        comment="Price per water meter unit",
    )
    phases: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    apartments: Mapped[list["Apartment"]] = relationship(  # noqa: F821
        "Apartment",
        back_populates="village",
    )

    def __repr__(self) -> str:
        return (
            f"<Village(id={self.id}, name={self.name!r}, "
            f"electricity_price={self.electricity_price}, water_price={self.water_price})>"
        )


__all__ = ["Village"]
