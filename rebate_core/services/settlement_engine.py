"""
Rebate settlement engine.

Turns a paid purchase or recharge into a commission for the payer's
inviter, at most once per payment event.

Correctness under concurrent and retried payment callbacks comes from the
database, not from in-process locks:
- the ledger's partial unique index on (source_type, source_id) for
  positive amounts rejects a second credit for the same event,
- balances change through relative UPDATE statements,
- the first payment is claimed with a conditional UPDATE.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rebate_core.config.constants import (
    EVENT_TYPE_PURCHASE_REBATE,
    EVENT_TYPE_RECHARGE_REBATE,
    SOURCE_TYPE_PURCHASE,
    SOURCE_TYPE_RECHARGE,
)
from rebate_core.config.settings import settings
from rebate_core.models.enums import RebateMode, TransactionStatus
from rebate_core.repositories.rebate_transaction_repository import (
    RebateTransactionRepository,
    is_duplicate_source_error,
)
from rebate_core.repositories.referral_relation_repository import (
    ReferralRelationRepository,
)
from rebate_core.repositories.user_repository import UserRepository
from rebate_core.services.invite_code_registry import InviteCodeRegistry
from rebate_core.services.referral_relation_store import ReferralRelationStore
from rebate_core.services.settings_provider import (
    RebateSettingsProvider,
    SystemConfigSettingsProvider,
)
from rebate_core.utils.db_decorators import with_rollback_on_error
from rebate_core.utils.money import multiply_money, round2, to_decimal


class RebateSettlementEngine:
    """
    Settles referral rebates for payment events.

    Ineligible events return False. Database failures roll the session back
    and raise RebateStorageError; they are never reported as False.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings_provider: RebateSettingsProvider | None = None,
        invite_code_length: int | None = None,
    ) -> None:
        """
        Initialize settlement engine.

        Args:
            session: Async database session
            settings_provider: Rebate settings source, read on every call
                (defaults to the system_configs table on this session)
            invite_code_length: Length of codes issued to inviters lacking one
                (defaults to settings.invite_code_length)
        """
        self.session = session
        self.settings_provider = settings_provider or SystemConfigSettingsProvider(session)
        self.invite_code_length = invite_code_length or settings.invite_code_length
        self.user_repo = UserRepository(session)
        self.relation_repo = ReferralRelationRepository(session)
        self.ledger_repo = RebateTransactionRepository(session)
        self.relation_store = ReferralRelationStore(session)
        self.invite_registry = InviteCodeRegistry(session)

    @with_rollback_on_error
    async def award_rebate(
        self,
        invitee_id: int,
        amount: Decimal | float | int | str,
        source_type: str,
        source_id: int | None = None,
        trade_no: str | None = None,
        event_type: str | None = None,
    ) -> bool:
        """
        Credit the invitee's inviter for one payment event.

        Args:
            invitee_id: Paying user
            amount: Paid amount
            source_type: "purchase" or "recharge"
            source_id: Internal id of the paid record, idempotency key
            trade_no: External transaction reference
            event_type: Ledger annotation (defaults to source_type)

        Returns:
            True if a rebate was credited, False if the event does not qualify

        Raises:
            RebateStorageError: On any database failure
        """
        context = {
            "invitee_id": invitee_id,
            "source_type": source_type,
            "source_id": source_id,
        }

        if not invitee_id or invitee_id <= 0:
            return self._reject("invalid_invitee", context)
        try:
            paid_amount = to_decimal(amount)
        except ValueError:
            return self._reject("invalid_amount", context)
        if paid_amount <= 0:
            return self._reject("non_positive_amount", context)

        rebate_settings = await self.settings_provider.get_rebate_settings()
        if rebate_settings.rate <= 0:
            return self._reject("rebates_disabled", context)

        inviter_id = await self.user_repo.get_inviter_id(invitee_id)
        if not inviter_id or inviter_id <= 0:
            return self._reject("no_inviter", context)
        if inviter_id == invitee_id:
            return self._reject("self_referral", context)
        context["inviter_id"] = inviter_id

        if not await self.user_repo.is_eligible_inviter(inviter_id):
            return self._reject("inviter_not_eligible", context)

        if source_id is not None and await self.ledger_repo.has_positive_entry(
            source_type, source_id
        ):
            return self._reject("already_settled", context)

        relation = await self.relation_store.get_relation(invitee_id)
        relation_created = False
        if relation is None:
            invite_code = await self.invite_registry.ensure_invite_code(
                inviter_id, self.invite_code_length
            )
            await self.relation_store.save_relation(
                inviter_id, invitee_id, invite_code
            )
            relation = await self.relation_store.get_relation(invitee_id)
            relation_created = True
            if relation is None:
                return self._reject("relation_missing", context)

        had_first_payment = relation.first_payment_id is not None
        was_active = relation.is_active

        if rebate_settings.mode == RebateMode.FIRST_ORDER and had_first_payment:
            return await self._reject_keeping(
                "first_order_already_paid", context, relation_created
            )

        rebate_amount = multiply_money(paid_amount, rebate_settings.rate)
        if rebate_amount <= 0:
            return await self._reject_keeping(
                "rebate_rounds_to_zero", context, relation_created
            )

        try:
            await self.ledger_repo.create(
                inviter_id=inviter_id,
                referral_id=relation.id,
                invitee_id=invitee_id,
                source_type=source_type,
                source_id=source_id,
                trade_no=trade_no,
                event_type=event_type or source_type,
                amount=rebate_amount,
                status=TransactionStatus.CONFIRMED.value,
            )
        except IntegrityError as e:
            if not is_duplicate_source_error(e):
                raise
            # A concurrent settlement of the same event committed first
            await self.session.rollback()
            logger.warning("Duplicate rebate blocked by ledger constraint", extra=context)
            return False

        if not await self.user_repo.credit_rebate(inviter_id, rebate_amount):
            await self.session.rollback()
            return self._reject("inviter_missing", context)

        if not had_first_payment:
            claimed = await self.relation_repo.claim_first_payment(
                invitee_id, source_type, source_id
            )
            if not claimed:
                if rebate_settings.mode == RebateMode.FIRST_ORDER:
                    await self.session.rollback()
                    return self._reject("first_order_lost_race", context)
                await self.relation_repo.activate(invitee_id)
        elif not was_active:
            await self.relation_repo.activate(invitee_id)

        await self.session.commit()

        logger.info(
            "Rebate awarded",
            extra={
                **context,
                "trade_no": trade_no,
                "rate": str(rebate_settings.rate),
                "mode": rebate_settings.mode.value,
                "amount": str(paid_amount),
                "rebate": str(rebate_amount),
            },
        )
        return True

    async def settle_purchase(
        self,
        user_id: int,
        amount: Decimal | float | int | str,
        record_id: int,
        trade_no: str | None = None,
    ) -> bool:
        """Award the rebate for a paid package purchase."""
        return await self.award_rebate(
            user_id,
            amount,
            SOURCE_TYPE_PURCHASE,
            source_id=record_id,
            trade_no=trade_no,
            event_type=EVENT_TYPE_PURCHASE_REBATE,
        )

    async def settle_recharge(
        self,
        user_id: int,
        amount: Decimal | float | int | str,
        record_id: int,
        trade_no: str | None = None,
    ) -> bool:
        """Award the rebate for a paid balance recharge."""
        return await self.award_rebate(
            user_id,
            amount,
            SOURCE_TYPE_RECHARGE,
            source_id=record_id,
            trade_no=trade_no,
            event_type=EVENT_TYPE_RECHARGE_REBATE,
        )

    @with_rollback_on_error
    async def insert_user_transaction(
        self,
        user_id: int,
        amount: Decimal | float | int | str,
        event_type: str,
        source_type: str,
        source_id: int | None = None,
        trade_no: str | None = None,
        remark: str | None = None,
    ) -> bool:
        """
        Append a non-referral ledger entry (manual adjustment and the like).

        The amount is rounded to cents first. Nothing is written for user 0
        or an amount that rounds to zero. Balances are not touched.

        Returns:
            True if an entry was written

        Raises:
            RebateStorageError: On any database failure
        """
        fixed_amount = round2(amount)
        if not user_id or fixed_amount == 0:
            return False

        try:
            await self.ledger_repo.create(
                inviter_id=user_id,
                referral_id=None,
                invitee_id=None,
                source_type=source_type,
                source_id=source_id,
                trade_no=trade_no,
                event_type=event_type,
                amount=fixed_amount,
                status=TransactionStatus.CONFIRMED.value,
                remark=remark,
            )
        except IntegrityError as e:
            if not is_duplicate_source_error(e):
                raise
            await self.session.rollback()
            logger.warning(
                "Duplicate ledger entry rejected",
                extra={
                    "user_id": user_id,
                    "source_type": source_type,
                    "source_id": source_id,
                },
            )
            return False

        await self.session.commit()

        logger.info(
            "Ledger entry recorded",
            extra={
                "user_id": user_id,
                "event_type": event_type,
                "amount": str(fixed_amount),
            },
        )
        return True

    def _reject(self, reason: str, context: dict) -> bool:
        """Log why an event does not qualify and return False."""
        logger.debug(f"Rebate not applied: {reason}", extra=context)
        return False

    async def _reject_keeping(
        self, reason: str, context: dict, relation_created: bool
    ) -> bool:
        """Reject, but commit a relation created during this call."""
        if relation_created:
            await self.session.commit()
        return self._reject(reason, context)
