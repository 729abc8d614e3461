"""
User repository.

Data access layer for the referral and rebate columns of User.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.constants import USER_STATUS_ACTIVE
from rebate_core.models.user import User
from rebate_core.repositories.base import BaseRepository
from rebate_core.utils.datetime_utils import utc_now


class UserRepository(BaseRepository[User]):
    """User repository with referral-specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_invite_code(self, code: str) -> User | None:
        """
        Find user by invite code (case-insensitive).

        Args:
            code: Normalized (lower-case) invite code

        Returns:
            User or None
        """
        if not code:
            return None
        stmt = (
            select(User)
            .where(func.lower(User.invite_code) == code.lower())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def invite_code_exists(self, code: str) -> bool:
        """Check whether any user already holds this code, in any case."""
        stmt = (
            select(User.id)
            .where(func.lower(User.invite_code) == code.lower())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_invite_code(self, user_id: int) -> tuple[bool, str | None]:
        """
        Read the stored invite code straight from the database.

        Returns:
            Tuple of (user_exists, invite_code)
        """
        stmt = select(User.invite_code).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return False, None
        return True, row.invite_code

    async def set_invite_code(
        self, user_id: int, code: str, reset_usage: bool = False
    ) -> bool:
        """
        Store a new invite code.

        Args:
            user_id: User ID
            code: Canonical invite code
            reset_usage: Also reset invite_used to zero

        Returns:
            True if the user row was updated
        """
        values: dict = {"invite_code": code, "updated_at": utc_now()}
        if reset_usage:
            values["invite_used"] = 0
        stmt = update(User).where(User.id == user_id).values(**values)
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def claim_invite_code(self, user_id: int, code: str) -> bool:
        """
        Store a code only while the user has none.

        Returns:
            True if this call set the code, False if a code was already stored
        """
        stmt = (
            update(User)
            .where(
                and_(
                    User.id == user_id,
                    or_(User.invite_code.is_(None), User.invite_code == ""),
                )
            )
            .values(invite_code=code, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_inviter_id(self, user_id: int) -> int | None:
        """Get invited_by of a user, read fresh from the database."""
        stmt = select(User.invited_by).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_eligible_inviter(
        self, user_id: int, now: datetime | None = None
    ) -> bool:
        """
        Check inviter eligibility at this moment.

        Eligible means active status, a paid class and a class that is
        either open-ended or not yet expired.

        Args:
            user_id: Inviter user ID
            now: Reference time (defaults to current UTC time)

        Returns:
            True if the inviter may receive rebates
        """
        now = now or utc_now()
        stmt = (
            select(User.id)
            .where(
                User.id == user_id,
                User.status == USER_STATUS_ACTIVE,
                User.user_class > 0,
                or_(
                    User.class_expire_time.is_(None),
                    User.class_expire_time > now,
                ),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def credit_rebate(self, user_id: int, amount: Decimal) -> bool:
        """
        Add a rebate to both accumulators with a relative update.

        Args:
            user_id: Inviter user ID
            amount: Rounded rebate amount

        Returns:
            True if the user row was updated
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                rebate_available=User.rebate_available + amount,
                rebate_total=User.rebate_total + amount,
                updated_at=utc_now(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def increment_invite_usage(self, user_id: int) -> bool:
        """
        Count one more invite, clamped at a positive limit.

        Single conditional UPDATE so concurrent registrations cannot push
        invite_used past invite_limit.

        Returns:
            True if the user row was updated
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                invite_used=case(
                    (
                        and_(
                            User.invite_limit > 0,
                            User.invite_used >= User.invite_limit,
                        ),
                        User.invite_limit,
                    ),
                    else_=User.invite_used + 1,
                ),
                updated_at=utc_now(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def apply_invite_limit(self, user_id: int, limit: int) -> bool:
        """
        Set invite_limit and clamp invite_used to it in one statement.

        Returns:
            True if the user row was updated
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                invite_limit=limit,
                invite_used=case(
                    (User.invite_used > limit, limit),
                    else_=User.invite_used,
                ),
                updated_at=utc_now(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_invite_counters(self, user_id: int) -> tuple[int, int] | None:
        """
        Get (invite_limit, invite_used) for a user.

        Returns:
            Tuple of counters or None if the user does not exist
        """
        stmt = select(User.invite_limit, User.invite_used).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return int(row.invite_limit or 0), int(row.invite_used or 0)

    async def get_all_ids(self) -> list[int]:
        """Get IDs of all users ordered by ID."""
        stmt = select(User.id).order_by(User.id)
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]

    async def set_inviter(self, user_id: int, inviter_id: int) -> bool:
        """
        Point invited_by at the inviter.

        Returns:
            True if the user row was updated
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(invited_by=inviter_id, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
