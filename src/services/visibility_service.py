"""Role- and village-based visibility of apartments, users and bookings."""

import logging

from sqlalchemy import Select, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.models.apartment import Apartment
from src.models.booking import Booking
from src.models.user import User, UserRole
from src.models.village import Village
from src.services.auth_service import Requester
from src.services.errors import AccessDeniedError, NotFoundError
from src.services.filters import SummaryFilters

logger = logging.getLogger(__name__)

Owner = aliased(User, name="owner")


class VisibilityFilter:
    """Decides which apartments, users and bookings a requester may see.

    - owner: apartments they own
    - renter: apartments they hold at least one booking for
    - admin with a responsible village: additionally restricted to that village
    - admin without village, super_admin: everything

    Lookups of a single entity check existence first, then permission, and
    raise AccessDeniedError instead of returning an empty result.
    """

    def __init__(self, requester: Requester):
        self.requester = requester

    def restrict(self, stmt: Select) -> Select:
        """Add role and village scoping to a statement selecting from Apartment."""
        requester = self.requester
        if requester.role == UserRole.OWNER:
            stmt = stmt.where(Apartment.owner_id == requester.user_id)
        elif requester.role == UserRole.RENTER:
            stmt = stmt.where(
                exists().where(
                    Booking.apartment_id == Apartment.id,
                    Booking.user_id == requester.user_id,
                )
            )
        if requester.village_filter is not None:
            stmt = stmt.where(Apartment.village_id == requester.village_filter)
        return stmt

    def filtered(self, stmt: Select, filters: SummaryFilters) -> Select:
        """Scope plus the summary's village/phase/user_type/search filters.

        The statement must already join Village and the Owner alias.
        """
        stmt = self.restrict(stmt)
        if filters.village_id is not None:
            stmt = stmt.where(Apartment.village_id == filters.village_id)
        if filters.phase is not None:
            stmt = stmt.where(Apartment.phase == filters.phase)
        if filters.user_type is not None:
            # Existence filter on bookings, not a payer filter on transactions
            stmt = stmt.where(
                exists().where(
                    Booking.apartment_id == Apartment.id,
                    Booking.user_type == filters.user_type,
                )
            )
        if filters.search:
            stmt = stmt.where(
                or_(
                    Apartment.name.icontains(filters.search, autoescape=True),
                    Owner.name.icontains(filters.search, autoescape=True),
                    Village.name.icontains(filters.search, autoescape=True),
                )
            )
        return stmt

    @staticmethod
    def joined(stmt: Select) -> Select:
        """Join the village and owner of each apartment for display and search."""
        return stmt.select_from(Apartment).outerjoin(
            Village, Apartment.village_id == Village.id
        ).outerjoin(Owner, Apartment.owner_id == Owner.id)

    def apartment_rows(self, filters: SummaryFilters) -> Select:
        """Visible apartments with the columns of a summary row, in page order."""
        stmt = self.joined(
            select(
                Apartment.id,
                Apartment.name,
                Village.name,
                Owner.name,
                Owner.id,
                Apartment.phase,
            )
        )
        return self.filtered(stmt, filters).order_by(Apartment.name, Apartment.id)

    def apartment_ids(self, filters: SummaryFilters | None = None) -> Select:
        """Subquery-ready selection of visible apartment ids."""
        stmt = self.joined(select(Apartment.id)).correlate(None)
        if filters is None:
            return self.restrict(stmt)
        return self.filtered(stmt, filters)

    async def can_see_apartment(self, session: AsyncSession, apartment: Apartment) -> bool:
        requester = self.requester
        if requester.village_filter is not None and apartment.village_id != requester.village_filter:
            return False
        if requester.role == UserRole.OWNER:
            return apartment.owner_id == requester.user_id
        if requester.role == UserRole.RENTER:
            booking_id = await session.scalar(
                select(Booking.id)
                .where(
                    Booking.apartment_id == apartment.id,
                    Booking.user_id == requester.user_id,
                )
                .limit(1)
            )
            return booking_id is not None
        return True

    async def get_apartment(self, session: AsyncSession, apartment_id: int) -> Apartment:
        """Load an apartment the requester may see.

        Raises:
            NotFoundError: No such apartment
            AccessDeniedError: Apartment outside the requester's scope
        """
        apartment = await session.get(Apartment, apartment_id)
        if apartment is None:
            raise NotFoundError("Apartment not found")

        if not await self.can_see_apartment(session, apartment):
            logger.info(
                "Apartment %d denied to user_id=%d role=%s",
                apartment_id,
                self.requester.user_id,
                self.requester.role,
            )
            raise AccessDeniedError("You do not have access to this apartment")
        return apartment

    async def get_user(self, session: AsyncSession, user_id: int) -> User:
        """Load a user whose invoices the requester may see.

        Non-admins may only look at themselves.
        """
        user = await session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not self.requester.is_admin and self.requester.user_id != user_id:
            logger.info("User %d denied to user_id=%d", user_id, self.requester.user_id)
            raise AccessDeniedError("You can only access your own invoices")
        return user

    async def get_booking(self, session: AsyncSession, booking_id: int) -> Booking:
        """Load a booking the requester may see.

        Admins (within their village), the booking's user, and the apartment's
        owner may see a booking.
        """
        booking = await session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")

        apartment = await session.get(Apartment, booking.apartment_id)
        requester = self.requester

        allowed = False
        if requester.is_admin:
            allowed = (
                requester.village_filter is None
                or apartment.village_id == requester.village_filter
            )
        elif booking.user_id == requester.user_id:
            allowed = True
        elif requester.role == UserRole.OWNER:
            allowed = apartment.owner_id == requester.user_id

        if not allowed:
            logger.info("Booking %d denied to user_id=%d", booking_id, requester.user_id)
            raise AccessDeniedError("You can only access invoices for your own bookings")
        return booking


__all__ = ["VisibilityFilter", "Owner"]
