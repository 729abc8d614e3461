"""
Referral relation repository.

Data access layer for ReferralRelation model.
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.models.enums import ReferralStatus
from rebate_core.models.referral_relation import ReferralRelation
from rebate_core.repositories.base import BaseRepository
from rebate_core.utils.datetime_utils import utc_now


class ReferralRelationRepository(BaseRepository[ReferralRelation]):
    """Referral relation repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral relation repository."""
        super().__init__(ReferralRelation, session)

    async def get_by_invitee(
        self, invitee_id: int
    ) -> ReferralRelation | None:
        """
        Get the relation of an invitee, always reloaded from the database.

        Args:
            invitee_id: Invitee user ID

        Returns:
            ReferralRelation or None
        """
        stmt = (
            select(ReferralRelation)
            .where(ReferralRelation.invitee_id == invitee_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        inviter_id: int,
        invitee_id: int,
        invite_code: str | None,
        invite_ip: str | None,
    ) -> None:
        """
        Insert a pending relation or re-point an existing one.

        On conflict only inviter_id, invite_code and updated_at change;
        invite_ip keeps the first non-null value. Status and first payment
        fields are never touched here.

        Args:
            inviter_id: Inviter user ID
            invitee_id: Invitee user ID
            invite_code: Invite code snapshot
            invite_ip: Registration IP (may be None)
        """
        now = utc_now()
        values = {
            "inviter_id": inviter_id,
            "invitee_id": invitee_id,
            "invite_code": invite_code,
            "invite_ip": invite_ip,
            "registered_at": now,
            "status": ReferralStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }

        dialect_name = self.session.get_bind().dialect.name
        if dialect_name == "postgresql":
            insert_stmt = postgresql.insert(ReferralRelation).values(**values)
        elif dialect_name == "sqlite":
            insert_stmt = sqlite.insert(ReferralRelation).values(**values)
        else:
            await self._upsert_generic(values)
            return

        table = ReferralRelation.__table__
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[table.c.invitee_id],
            set_={
                "inviter_id": insert_stmt.excluded.inviter_id,
                "invite_code": insert_stmt.excluded.invite_code,
                "invite_ip": func.coalesce(
                    table.c.invite_ip, insert_stmt.excluded.invite_ip
                ),
                "updated_at": insert_stmt.excluded.updated_at,
            },
        )
        await self.session.execute(stmt)

    async def _upsert_generic(self, values: dict) -> None:
        """Select-then-write upsert for dialects without ON CONFLICT."""
        existing = await self.get_by_invitee(values["invitee_id"])
        if existing is None:
            self.session.add(ReferralRelation(**values))
            await self.session.flush()
            return

        existing.inviter_id = values["inviter_id"]
        existing.invite_code = values["invite_code"]
        if existing.invite_ip is None:
            existing.invite_ip = values["invite_ip"]
        existing.updated_at = values["updated_at"]
        await self.session.flush()

    async def claim_first_payment(
        self,
        invitee_id: int,
        payment_type: str,
        payment_id: int | None,
        paid_at: datetime | None = None,
    ) -> bool:
        """
        Record the first qualifying payment and activate the relation.

        Conditional on first_payment_id still being NULL, so only one
        settlement can ever claim it.

        Returns:
            True if this call recorded the first payment
        """
        paid_at = paid_at or utc_now()
        stmt = (
            update(ReferralRelation)
            .where(
                ReferralRelation.invitee_id == invitee_id,
                ReferralRelation.first_payment_id.is_(None),
            )
            .values(
                first_payment_type=payment_type,
                first_payment_id=payment_id,
                first_paid_at=paid_at,
                status=ReferralStatus.ACTIVE.value,
                updated_at=paid_at,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def activate(self, invitee_id: int) -> bool:
        """
        Move a pending relation to active.

        Returns:
            True if the status changed
        """
        stmt = (
            update(ReferralRelation)
            .where(
                ReferralRelation.invitee_id == invitee_id,
                ReferralRelation.status != ReferralStatus.ACTIVE.value,
            )
            .values(
                status=ReferralStatus.ACTIVE.value,
                updated_at=utc_now(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_by_inviter(
        self,
        inviter_id: int,
        status: ReferralStatus | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ReferralRelation]:
        """
        Get relations of an inviter, newest first.

        Args:
            inviter_id: Inviter user ID
            status: Optional status filter
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            List of relations
        """
        stmt = (
            select(ReferralRelation)
            .where(ReferralRelation.inviter_id == inviter_id)
            .order_by(ReferralRelation.registered_at.desc(), ReferralRelation.id.desc())
        )
        if status is not None:
            stmt = stmt.where(ReferralRelation.status == status.value)
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_status_counts(self, inviter_id: int) -> dict[str, int]:
        """
        Get relation counts per status in a single query.

        Args:
            inviter_id: Inviter user ID

        Returns:
            Dict like {"pending": 3, "active": 2}
        """
        stmt = (
            select(
                ReferralRelation.status,
                func.count(ReferralRelation.id).label("count"),
            )
            .where(ReferralRelation.inviter_id == inviter_id)
            .group_by(ReferralRelation.status)
        )
        result = await self.session.execute(stmt)

        counts = {status.value: 0 for status in ReferralStatus}
        for row in result.all():
            counts[row.status] = row.count
        return counts
