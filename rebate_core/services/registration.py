"""
Referral registration service.

Glue used by the sign-up flow: validate the invite code a new user typed,
then bind the new user to the inviter once the account row exists.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.settings import settings
from rebate_core.repositories.user_repository import UserRepository
from rebate_core.services.invite_code_registry import (
    InviteCodeRegistry,
    InviterInfo,
    normalize_invite_code,
)
from rebate_core.services.referral_relation_store import ReferralRelationStore
from rebate_core.utils.db_decorators import with_rollback_on_error
from rebate_core.utils.exceptions import (
    InviteCodeInvalidError,
    InviteLimitReachedError,
)


class ReferralRegistrationService:
    """Invite code validation and invitee binding for new accounts."""

    def __init__(
        self,
        session: AsyncSession,
        invite_code_length: int | None = None,
    ) -> None:
        """
        Initialize registration service.

        Args:
            session: Async database session
            invite_code_length: Length of the code issued to the new user
        """
        self.session = session
        self.invite_code_length = invite_code_length or settings.invite_code_length
        self.user_repo = UserRepository(session)
        self.invite_registry = InviteCodeRegistry(session)
        self.relation_store = ReferralRelationStore(session)

    async def resolve_inviter(self, code: str | None) -> InviterInfo | None:
        """
        Resolve the invite code entered at sign-up.

        Args:
            code: Invite code as typed, may be empty

        Returns:
            InviterInfo, or None when no code was given

        Raises:
            InviteCodeInvalidError: If the code belongs to nobody
            InviteLimitReachedError: If the inviter has no invites left
        """
        normalized = normalize_invite_code(code)
        if not normalized:
            return None

        inviter = await self.invite_registry.find_inviter_by_code(normalized)
        if inviter is None:
            raise InviteCodeInvalidError(normalized)
        if not inviter.has_capacity:
            raise InviteLimitReachedError(inviter.id, inviter.invite_limit)
        return inviter

    @with_rollback_on_error
    async def bind_invitee(
        self,
        inviter_id: int,
        invitee_id: int,
        invite_code: str | None,
        invite_ip: str | None = None,
    ) -> str:
        """
        Attach a freshly registered user to their inviter.

        Records invited_by and the relation, counts the invite, issues the
        new user's own invite code and applies the default invite limit.
        Commits.

        Args:
            inviter_id: Inviter resolved by resolve_inviter
            invitee_id: New user ID
            invite_code: Code used at sign-up
            invite_ip: Registration IP

        Returns:
            The invitee's own invite code

        Raises:
            UserNotFoundError: If the invitee does not exist
            RebateStorageError: On database failure
        """
        bound = False
        if inviter_id and inviter_id != invitee_id:
            await self.user_repo.set_inviter(invitee_id, inviter_id)
            bound = await self.relation_store.save_relation(
                inviter_id,
                invitee_id,
                normalize_invite_code(invite_code) or None,
                invite_ip,
            )
            if bound:
                await self.relation_store.increment_invite_usage(inviter_id)

        own_code = await self.invite_registry.ensure_invite_code(
            invitee_id, self.invite_code_length
        )
        await self.relation_store.apply_default_invite_limit(invitee_id)
        await self.session.commit()

        logger.info(
            "Invitee registered",
            extra={
                "inviter_id": inviter_id if bound else None,
                "invitee_id": invitee_id,
                "invite_code": own_code,
            },
        )
        return own_code
