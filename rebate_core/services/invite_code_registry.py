"""
Invite code registry.

Issues short, shareable invite codes and resolves them back to inviters.
Codes are stored and returned in lower case and matched case-insensitively.
"""

import secrets
import time
from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.constants import (
    INVITE_CODE_ALPHABET,
    INVITE_CODE_DEFAULT_LENGTH,
    INVITE_CODE_FALLBACK_SUFFIX_LENGTH,
)
from rebate_core.config.settings import settings
from rebate_core.repositories.user_repository import UserRepository
from rebate_core.utils.db_decorators import with_rollback_on_error
from rebate_core.utils.exceptions import (
    InviteCodeGenerationError,
    UserNotFoundError,
)

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def normalize_invite_code(raw: str | None) -> str:
    """Canonical form of an invite code: trimmed, lower-case."""
    return (raw or "").strip().lower()


def _to_base36(value: int) -> str:
    """Encode a non-negative integer in base 36."""
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def random_invite_code(length: int = INVITE_CODE_DEFAULT_LENGTH) -> str:
    """Draw `length` characters uniformly from the unambiguous alphabet."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def fallback_invite_code(length: int = INVITE_CODE_DEFAULT_LENGTH) -> str:
    """
    Build a code from the millisecond clock plus a random suffix.

    The fastest-changing base-36 digits of the timestamp are kept so two
    calls a few milliseconds apart differ even before the suffix. Lengths
    longer than the timestamp widen the random suffix.
    """
    suffix_length = min(INVITE_CODE_FALLBACK_SUFFIX_LENGTH, length)
    stamp = _to_base36(time.time_ns() // 1_000_000)
    head = stamp[-(length - suffix_length):] if length > suffix_length else ""
    return head + random_invite_code(length - len(head))


@dataclass
class InviterInfo:
    """Owner of an invite code and their invite counters."""

    id: int
    invite_limit: int
    invite_used: int

    @property
    def has_capacity(self) -> bool:
        """A positive limit caps invites, zero means unlimited."""
        return self.invite_limit <= 0 or self.invite_used < self.invite_limit


class InviteCodeRegistry:
    """
    Invite code registry.

    ensure_invite_code only flushes: it runs inside the caller's
    transaction (registration or settlement). Regeneration is a standalone
    admin operation and commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        max_attempts: int | None = None,
    ) -> None:
        """
        Initialize invite code registry.

        Args:
            session: Async database session
            max_attempts: Random attempts before the timestamp fallback
                (defaults to settings.invite_code_max_attempts)
        """
        self.session = session
        self.max_attempts = max_attempts or settings.invite_code_max_attempts
        self.user_repo = UserRepository(session)

    async def ensure_invite_code(
        self, user_id: int, length: int = INVITE_CODE_DEFAULT_LENGTH
    ) -> str:
        """
        Return the user's invite code, issuing one if missing.

        Args:
            user_id: User ID
            length: Length of a newly generated code

        Returns:
            Canonical invite code

        Raises:
            UserNotFoundError: If the user does not exist
            InviteCodeGenerationError: If no unique code could be produced
        """
        exists, current = await self.user_repo.get_invite_code(user_id)
        if not exists:
            raise UserNotFoundError(user_id)

        normalized = normalize_invite_code(current)
        if normalized:
            return normalized

        code = await self.generate_unique_code(length)
        if not await self.user_repo.claim_invite_code(user_id, code):
            # Another caller issued a code first
            _, stored = await self.user_repo.get_invite_code(user_id)
            return normalize_invite_code(stored)
        await self.session.flush()

        logger.info(
            "Invite code issued",
            extra={"user_id": user_id, "invite_code": code},
        )
        return code

    @with_rollback_on_error
    async def regenerate_invite_code(
        self, user_id: int, length: int = INVITE_CODE_DEFAULT_LENGTH
    ) -> str:
        """
        Replace the user's invite code and reset invite usage to zero.

        The old code stops resolving immediately.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        code = await self.generate_unique_code(length)
        updated = await self.user_repo.set_invite_code(
            user_id, code, reset_usage=True
        )
        if not updated:
            raise UserNotFoundError(user_id)
        await self.session.commit()

        logger.info(
            "Invite code regenerated",
            extra={"user_id": user_id, "invite_code": code},
        )
        return code

    @with_rollback_on_error
    async def reset_all_invite_codes(
        self, length: int = INVITE_CODE_DEFAULT_LENGTH
    ) -> int:
        """
        Regenerate the invite code of every user.

        Returns:
            Number of users updated
        """
        updated = 0
        for user_id in await self.user_repo.get_all_ids():
            code = await self.generate_unique_code(length)
            if await self.user_repo.set_invite_code(user_id, code, reset_usage=True):
                # Later collision checks must see this code
                await self.session.flush()
                updated += 1
        await self.session.commit()

        logger.info("All invite codes regenerated", extra={"count": updated})
        return updated

    async def find_inviter_by_code(self, code: str | None) -> InviterInfo | None:
        """
        Resolve an invite code to its owner.

        Args:
            code: Invite code as typed by the user

        Returns:
            InviterInfo or None when the code is empty or unknown
        """
        normalized = normalize_invite_code(code)
        if not normalized:
            return None
        user = await self.user_repo.get_by_invite_code(normalized)
        if user is None:
            return None
        return InviterInfo(
            id=user.id,
            invite_limit=int(user.invite_limit or 0),
            invite_used=int(user.invite_used or 0),
        )

    async def generate_unique_code(
        self, length: int = INVITE_CODE_DEFAULT_LENGTH
    ) -> str:
        """
        Produce a code no user holds yet.

        Tries random codes first, then one timestamp-based code which is
        verified like the others.

        Raises:
            InviteCodeGenerationError: If the fallback collides as well
        """
        if length <= 0:
            raise ValueError("Invite code length must be positive")

        for _ in range(self.max_attempts):
            candidate = random_invite_code(length)
            if not await self.user_repo.invite_code_exists(candidate):
                return candidate

        candidate = fallback_invite_code(length)
        logger.warning(
            "Invite code space congested, using timestamp fallback",
            extra={"length": length, "attempts": self.max_attempts},
        )
        if await self.user_repo.invite_code_exists(candidate):
            raise InviteCodeGenerationError(
                f"No unique invite code of length {length} "
                f"after {self.max_attempts} attempts and fallback"
            )
        return candidate
