"""
Exception types for the rebate core.

Ineligible settlements are not exceptions: the engine returns False.
Exceptions are reserved for storage faults and caller errors in the
registration flow.
"""


class RebateError(Exception):
    """Base class for rebate core errors."""
    pass


class RebateStorageError(RebateError):
    """
    The backing store failed during a read or write.

    The session has been rolled back. Callers must retry or surface the
    failure; it never means "not eligible".
    """
    pass


class UserNotFoundError(RebateError, LookupError):
    """Referenced user row does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class InviteCodeGenerationError(RebateError):
    """No unique invite code could be produced."""
    pass


class InviteCodeInvalidError(RebateError, ValueError):
    """Invite code does not belong to any user."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Invite code is invalid or expired: {code!r}")
        self.code = code


class InviteLimitReachedError(RebateError, ValueError):
    """Inviter has used up their invite limit."""

    def __init__(self, inviter_id: int, invite_limit: int) -> None:
        super().__init__(
            f"Inviter {inviter_id} reached invite limit {invite_limit}"
        )
        self.inviter_id = inviter_id
        self.invite_limit = invite_limit
