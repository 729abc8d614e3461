"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from rebate_core.models.base import Base
from rebate_core.models.enums import (
    RebateMode,
    ReferralStatus,
    TransactionStatus,
)
from rebate_core.models.rebate_transaction import RebateTransaction
from rebate_core.models.referral_relation import ReferralRelation
from rebate_core.models.system_config import SystemConfig
from rebate_core.models.user import User


__all__ = [
    "Base",
    # Entities
    "User",
    "ReferralRelation",
    "RebateTransaction",
    "SystemConfig",
    # Enums
    "RebateMode",
    "ReferralStatus",
    "TransactionStatus",
]
