"""
Repositories.

Data access layer.
"""

from rebate_core.repositories.base import BaseRepository
from rebate_core.repositories.rebate_transaction_repository import (
    RebateTransactionRepository,
)
from rebate_core.repositories.referral_relation_repository import (
    ReferralRelationRepository,
)
from rebate_core.repositories.system_config_repository import (
    SystemConfigRepository,
)
from rebate_core.repositories.user_repository import UserRepository


__all__ = [
    "BaseRepository",
    "RebateTransactionRepository",
    "ReferralRelationRepository",
    "SystemConfigRepository",
    "UserRepository",
]
