"""Requester identity for the invoice endpoints.

Authentication itself happens upstream: the gateway verifies the session
token and forwards the verified user id in the X-User-Id header. This module
only turns that id into an explicit Requester value that every service call
receives as a parameter.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.user import User, UserRole
from src.services import get_async_session
from src.services.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Requester:
    """Authenticated caller of an invoice operation."""

    user_id: int
    """Internal id of the caller."""

    role: UserRole
    """Caller's role; drives the visibility scope."""

    responsible_village: int | None = None
    """Village an admin is restricted to, if any."""

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @property
    def village_filter(self) -> int | None:
        """Village restriction; only admins are ever bound to a village."""
        if self.role == UserRole.ADMIN and self.responsible_village:
            return self.responsible_village
        return None

    @classmethod
    def from_user(cls, user: User) -> "Requester":
        return cls(
            user_id=user.id,
            role=UserRole(user.role),
            responsible_village=user.responsible_village,
        )


async def get_requester(
    x_user_id: int | None = Header(default=None),
    session: AsyncSession = Depends(get_async_session),
) -> Requester:
    """Resolve the verified user id forwarded by the gateway.

    Raises:
        UnauthenticatedError: Header missing or user unknown
    """
    if x_user_id is None:
        logger.warning("Request without X-User-Id header")
        raise UnauthenticatedError()

    user = await session.get(User, x_user_id)
    if user is None:
        logger.warning("X-User-Id %d does not match any user", x_user_id)
        raise UnauthenticatedError()

    return Requester.from_user(user)


__all__ = ["Requester", "get_requester"]
