"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class ReferralStatus(StrEnum):
    """Referral relation lifecycle: pending -> active, never back."""

    PENDING = "pending"
    ACTIVE = "active"


class RebateMode(StrEnum):
    """Which payments earn a commission."""

    EVERY_ORDER = "every_order"
    FIRST_ORDER = "first_order"


class TransactionStatus(StrEnum):
    """Ledger entry status."""

    CONFIRMED = "confirmed"
