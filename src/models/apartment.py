"""Apartment ORM model."""

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class Apartment(Base, BaseModel):
    """Apartment owned by exactly one user and located in exactly one village."""

    __tablename__ = "apartments"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    village_id: Mapped[int] = mapped_column(
        ForeignKey("villages.id"),
        nullable=False,
        index=True,
    )
    phase: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    village: Mapped["Village"] = relationship(  # noqa: F821
        "Village",
        back_populates="apartments",
    )
    owner: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="apartments",
        foreign_keys=[owner_id],
    )

    __table_args__ = (
        Index("idx_apartment_village_phase", "village_id", "phase"),
        Index("idx_apartment_name", "name"),
    )

    def __repr__(self) -> str:
        return (
            f"<Apartment(id={self.id}, name={self.name!r}, village_id={self.village_id}, "
            f"phase={self.phase}, owner_id={self.owner_id})>"
        )


__all__ = ["Apartment"]
