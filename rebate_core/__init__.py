"""
Referral rebate settlement core.

Invite codes, referral relations and exactly-once rebate settlement
for a subscription-service panel.
"""

__version__ = "1.0.0"
