"""
Referral relation store.

Records inviter -> invitee edges and the inviter's invite usage. Every write
is a single statement so concurrent registrations cannot lose updates.
Methods flush; the caller owns the transaction.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.models.enums import ReferralStatus
from rebate_core.models.referral_relation import ReferralRelation
from rebate_core.repositories.referral_relation_repository import (
    ReferralRelationRepository,
)
from rebate_core.repositories.user_repository import UserRepository
from rebate_core.services.settings_provider import SystemConfigSettingsProvider


class ReferralRelationStore:
    """Referral relation operations used by registration and settlement."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize relation store."""
        self.session = session
        self.relation_repo = ReferralRelationRepository(session)
        self.user_repo = UserRepository(session)

    async def save_relation(
        self,
        inviter_id: int,
        invitee_id: int,
        invite_code: str | None,
        invite_ip: str | None = None,
    ) -> bool:
        """
        Record that inviter_id invited invitee_id.

        No-op for a zero id on either side or a self-referral. An existing
        relation is re-pointed to the new inviter and code; its IP, status
        and first payment are kept.

        Args:
            inviter_id: Inviter user ID
            invitee_id: Invitee user ID
            invite_code: Code used at registration
            invite_ip: Registration IP

        Returns:
            True if a row was written
        """
        if not inviter_id or not invitee_id or inviter_id == invitee_id:
            logger.debug(
                "Referral relation skipped",
                extra={"inviter_id": inviter_id, "invitee_id": invitee_id},
            )
            return False

        await self.relation_repo.upsert(
            inviter_id=inviter_id,
            invitee_id=invitee_id,
            invite_code=invite_code,
            invite_ip=invite_ip or None,
        )
        await self.session.flush()

        logger.info(
            "Referral relation saved",
            extra={"inviter_id": inviter_id, "invitee_id": invitee_id},
        )
        return True

    async def get_relation(self, invitee_id: int) -> ReferralRelation | None:
        """Get the relation of an invitee, None if they were not invited."""
        if not invitee_id:
            return None
        return await self.relation_repo.get_by_invitee(invitee_id)

    async def increment_invite_usage(self, inviter_id: int) -> None:
        """Count one used invite, never exceeding a positive limit."""
        if not inviter_id:
            return
        await self.user_repo.increment_invite_usage(inviter_id)
        await self.session.flush()

    async def is_invite_available(self, inviter_id: int) -> bool:
        """
        Check whether an inviter can still invite.

        Returns:
            False for unknown users or an exhausted positive limit
        """
        if not inviter_id:
            return False
        counters = await self.user_repo.get_invite_counters(inviter_id)
        if counters is None:
            return False
        limit, used = counters
        return limit <= 0 or used < limit

    async def apply_default_invite_limit(self, user_id: int) -> int:
        """
        Give a user the configured default invite limit.

        Returns:
            The limit applied, 0 when no default is configured
        """
        provider = SystemConfigSettingsProvider(self.session)
        limit = await provider.get_default_invite_limit()
        if limit <= 0:
            return 0
        await self.user_repo.apply_invite_limit(user_id, limit)
        await self.session.flush()
        return limit

    async def list_invitees(
        self,
        inviter_id: int,
        status: ReferralStatus | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ReferralRelation]:
        """List relations where the user is the inviter, newest first."""
        return await self.relation_repo.get_by_inviter(
            inviter_id, status=status, limit=limit, offset=offset
        )

    async def count_by_status(self, inviter_id: int) -> dict[str, int]:
        """Count an inviter's relations per status."""
        return await self.relation_repo.get_status_counts(inviter_id)
