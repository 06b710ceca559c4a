"""Service type ORM model (cleaning, maintenance, transfer, ...)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class ServiceType(Base, BaseModel):
    """Catalogue entry a service request refers to."""

    __tablename__ = "service_types"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    def __repr__(self) -> str:
        return f"<ServiceType(id={self.id}, name={self.name!r})>"


__all__ = ["ServiceType"]
