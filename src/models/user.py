"""User ORM model with role-based access."""

from enum import Enum

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class UserRole(str, Enum):
    """Roles known to the invoice engine."""

    OWNER = "owner"
    RENTER = "renter"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class User(Base, BaseModel):
    """
    Person in the system: apartment owner, renter, or staff.

    Admins may be bound to a single village through responsible_village,
    which narrows every financial view they get to that village.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    role: Mapped[UserRole] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.OWNER,
        comment="owner, renter, admin or super_admin",
    )
    responsible_village: Mapped[int | None] = mapped_column(
        ForeignKey("villages.id"),
        nullable=True,
        comment="Village an admin is restricted to (NULL = unrestricted)",
    )

    __table_args__ = (
        Index("idx_users_name", "name"),
        Index("idx_users_role", "role"),
    )

    apartments: Mapped[list["Apartment"]] = relationship(  # noqa: F821
        "Apartment",
        back_populates="owner",
        foreign_keys="Apartment.owner_id",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name!r}, role={self.role})>"


__all__ = ["User", "UserRole"]
