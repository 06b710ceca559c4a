"""Payment method ORM model (cash, bank transfer, ...)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class PaymentMethod(Base, BaseModel):
    """Named way of paying, used to describe payment line items."""

    __tablename__ = "payment_methods"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<PaymentMethod(id={self.id}, name={self.name!r})>"


__all__ = ["PaymentMethod"]
