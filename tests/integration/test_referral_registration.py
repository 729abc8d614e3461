"""Integration tests for ReferralRegistrationService."""

import pytest

from rebate_core.models.enums import ReferralStatus
from rebate_core.services.registration import ReferralRegistrationService
from rebate_core.utils.exceptions import (
    InviteCodeInvalidError,
    InviteLimitReachedError,
    UserNotFoundError,
)


class TestResolveInviter:
    """Test sign-up code validation."""

    @pytest.mark.asyncio
    async def test_valid_code(self, session, make_user):
        """A known code with capacity resolves to its owner."""
        inviter = await make_user(invite_code="reg234", invite_limit=2, invite_used=1)
        service = ReferralRegistrationService(session)

        info = await service.resolve_inviter(" REG234 ")

        assert info.id == inviter.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [None, "", "  "])
    async def test_no_code(self, session, code):
        """No code means no inviter."""
        assert await ReferralRegistrationService(session).resolve_inviter(code) is None

    @pytest.mark.asyncio
    async def test_unknown_code(self, session):
        """Unknown codes are rejected."""
        with pytest.raises(InviteCodeInvalidError):
            await ReferralRegistrationService(session).resolve_inviter("nope99")

    @pytest.mark.asyncio
    async def test_limit_reached(self, session, make_user):
        """Exhausted inviters are rejected."""
        await make_user(invite_code="full23", invite_limit=2, invite_used=2)

        with pytest.raises(InviteLimitReachedError) as exc_info:
            await ReferralRegistrationService(session).resolve_inviter("full23")

        assert exc_info.value.invite_limit == 2


class TestBindInvitee:
    """Test binding a new account."""

    @pytest.mark.asyncio
    async def test_full_flow(
        self, session, make_user, load_user, load_relation, set_config
    ):
        """Relation, usage, own code and default limit are all recorded."""
        inviter = await make_user(invite_code="flow23", invite_limit=3)
        invitee = await make_user()
        await set_config(invite_default_limit="4")
        service = ReferralRegistrationService(session)

        info = await service.resolve_inviter("FLOW23")
        own_code = await service.bind_invitee(info.id, invitee.id, "FLOW23", "9.9.9.9")

        stored_inviter = await load_user(inviter.id)
        stored_invitee = await load_user(invitee.id)
        relation = await load_relation(invitee.id)

        assert stored_inviter.invite_used == 1
        assert stored_invitee.invited_by == inviter.id
        assert stored_invitee.invite_code == own_code
        assert stored_invitee.invite_limit == 4
        assert relation.inviter_id == inviter.id
        assert relation.invite_code == "flow23"
        assert relation.invite_ip == "9.9.9.9"
        assert relation.status == ReferralStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_without_inviter(self, session, make_user, load_user, load_relation):
        """A user without inviter still gets an own code."""
        user = await make_user()
        service = ReferralRegistrationService(session)

        own_code = await service.bind_invitee(0, user.id, None)

        assert own_code
        assert (await load_user(user.id)).invited_by is None
        assert await load_relation(user.id) is None

    @pytest.mark.asyncio
    async def test_unknown_invitee_rolls_back(self, session, make_user, load_user):
        """Nothing is counted when the invitee row is missing."""
        inviter = await make_user(invite_code="roll23")
        service = ReferralRegistrationService(session)

        with pytest.raises(UserNotFoundError):
            await service.bind_invitee(inviter.id, 999, "roll23")

        assert (await load_user(inviter.id)).invite_used == 0
