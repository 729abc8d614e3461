"""
Referral and rebate constants.

Centralized constants shared by the settlement core.
"""

from decimal import Decimal

# ========================================================================
# INVITE CODES
# ========================================================================

# Unambiguous alphabet: no 0, 1, i, l, o
INVITE_CODE_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"
INVITE_CODE_DEFAULT_LENGTH = 6
INVITE_CODE_MAX_ATTEMPTS = 10
# Random characters appended to the timestamp in the fallback code
INVITE_CODE_FALLBACK_SUFFIX_LENGTH = 2

# ========================================================================
# SYSTEM CONFIG KEYS (system_configs table)
# ========================================================================

CONFIG_KEY_REBATE_RATE = "rebate_rate"
CONFIG_KEY_REBATE_MODE = "rebate_mode"
CONFIG_KEY_INVITE_DEFAULT_LIMIT = "invite_default_limit"

# ========================================================================
# MONEY
# ========================================================================

MONEY_QUANTUM = Decimal("0.01")
REBATE_RATE_MIN = Decimal("0")
REBATE_RATE_MAX = Decimal("1")

# ========================================================================
# ACCOUNT ELIGIBILITY
# ========================================================================

USER_STATUS_ACTIVE = 1

# ========================================================================
# PAYMENT SOURCES
# ========================================================================

SOURCE_TYPE_PURCHASE = "purchase"
SOURCE_TYPE_RECHARGE = "recharge"
EVENT_TYPE_PURCHASE_REBATE = "purchase_rebate"
EVENT_TYPE_RECHARGE_REBATE = "recharge_rebate"

# ========================================================================
# LEDGER PAGINATION
# ========================================================================

LEDGER_DEFAULT_PAGE_SIZE = 20
LEDGER_MAX_PAGE_SIZE = 200

# Partial unique index allowing one positive ledger entry per payment event
LEDGER_SOURCE_UNIQUE_INDEX = "uq_rebate_transactions_source_positive"
