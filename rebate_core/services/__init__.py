"""
Services.

Referral and rebate business logic.
"""

from rebate_core.services.invite_code_registry import (
    InviteCodeRegistry,
    InviterInfo,
)
from rebate_core.services.ledger import LedgerPage, LedgerSummary, RebateLedger
from rebate_core.services.referral_relation_store import ReferralRelationStore
from rebate_core.services.registration import ReferralRegistrationService
from rebate_core.services.settings_provider import (
    RebateSettings,
    RebateSettingsProvider,
    SystemConfigSettingsProvider,
)
from rebate_core.services.settlement_engine import RebateSettlementEngine


__all__ = [
    "InviteCodeRegistry",
    "InviterInfo",
    "LedgerPage",
    "LedgerSummary",
    "RebateLedger",
    "RebateSettings",
    "RebateSettingsProvider",
    "RebateSettlementEngine",
    "ReferralRegistrationService",
    "ReferralRelationStore",
    "SystemConfigSettingsProvider",
]
