"""Ledger engine: limit-checked debits and credits on card balances.

Every mutation is a read-modify-write against the card store:

1. load the card (``CardNotFoundError`` if absent);
2. reject inactive cards;
3. roll the daily counters to today;
4. check the balance and the limits;
5. ``compare_and_save`` the new state together with its transaction record.

If step 5 loses a version race, the whole sequence restarts from a fresh
load, up to ``LedgerConfig.max_commit_attempts`` times. With
``CardLocks`` configured, steps 1-5 also run under a per-card lock so
conflicts only come from other processes.
"""

import logging
import uuid
from contextlib import nullcontext
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, ContextManager

from card_ledger.config import LedgerConfig
from card_ledger.exceptions import (
    CardInactiveError,
    CardNotFoundError,
    ConcurrencyExhaustedError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidEntityStateError,
    LedgerError,
    LimitExceededError,
    OwnerNotFoundError,
    ValidationError,
    VersionConflictError,
)
from card_ledger.ledger.amounts import AmountLike, format_amount, to_amount
from card_ledger.ledger.daily_reset import DailyHeadroom, apply_daily_reset, remaining_daily_limits
from card_ledger.ledger.locks import CardLocks
from card_ledger.models import (
    CardState,
    ErrorKind,
    LimitKind,
    OperationOutcome,
    OperationStatus,
    OperationType,
    TransactionRecord,
    TransactionType,
)
from card_ledger.sinks.base import AuditSink, dispatch_outcome
from card_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)

CommitResult = tuple[CardState, TransactionRecord | None]
Mutation = Callable[[CardState, datetime], CommitResult]


class LedgerEngine:
    """Apply debits, credits and administrative updates to cards."""

    def __init__(
        self,
        store: LedgerStore,
        config: LedgerConfig | None = None,
        audit_sink: AuditSink | None = None,
        locks: CardLocks | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the engine.

        Parameters
        ----------
        store : LedgerStore
            Card store and transaction log.
        config : LedgerConfig | None
            Limits and retry policy (defaults apply when omitted).
        audit_sink : AuditSink | None
            Receives one ``OperationOutcome`` per inbound operation.
        locks : CardLocks | None
            Per-card lock registry. Created automatically when
            ``config.serialize_per_card`` is set.
        clock : Callable[[], datetime]
            Source of "now"; its date drives the daily counter reset.
        """
        self.store = store
        self.config = config or LedgerConfig()
        self.limits = self.config.limits
        self.audit_sink = audit_sink
        if locks is None and self.config.serialize_per_card:
            locks = CardLocks(default_timeout=self.config.lock_timeout_seconds)
        self.locks = locks
        self._clock = clock

    # Money movements

    def debit(self, card_id: str, amount: AmountLike, description: str | None = None) -> CardState:
        """Withdraw ``amount`` from a card.

        Raises
        ------
        InvalidAmountError, CardNotFoundError, CardInactiveError,
        InsufficientBalanceError, LimitExceededError,
        ConcurrencyExhaustedError, StoreUnavailableError
        """
        return self._move(TransactionType.DEBIT, card_id, amount, description)

    def credit(self, card_id: str, amount: AmountLike, description: str | None = None) -> CardState:
        """Add ``amount`` to a card.

        A credit that would break either credit limit is rejected whole,
        never clamped.
        """
        return self._move(TransactionType.CREDIT, card_id, amount, description)

    def _move(
        self,
        kind: TransactionType,
        card_id: str,
        amount: AmountLike,
        description: str | None,
    ) -> CardState:
        def action() -> CommitResult:
            value = to_amount(amount)
            return self._commit(
                card_id,
                lambda state, now: self._movement(kind, state, value, now, description),
            )

        return self._run(OperationType(kind.value), card_id, action, amount)

    def _movement(
        self,
        kind: TransactionType,
        state: CardState,
        amount: Decimal,
        now: datetime,
        description: str | None,
    ) -> CommitResult:
        if not state.active:
            raise CardInactiveError(state.card_id)

        state = apply_daily_reset(state, now.date())
        timestamp = self._timestamp(state, now)

        if kind == TransactionType.DEBIT:
            self._check_debit(state, amount)
            new_state = replace(
                state,
                total_balance=state.total_balance - amount,
                daily_debited=state.daily_debited + amount,
                updated_at=timestamp,
            )
            default_description = f"Debited {format_amount(amount)}"
        else:
            self._check_credit(state, amount)
            new_state = replace(
                state,
                total_balance=state.total_balance + amount,
                daily_credited=state.daily_credited + amount,
                updated_at=timestamp,
            )
            default_description = f"Credited {format_amount(amount)}"

        record = TransactionRecord(
            transaction_id=str(uuid.uuid4()),
            card_id=state.card_id,
            transaction_type=kind,
            amount=amount,
            card_type=state.card_type,
            description=description or default_description,
            timestamp=timestamp,
            balance_after=new_state.total_balance,
        )
        return new_state, record

    def _check_debit(self, state: CardState, amount: Decimal) -> None:
        if amount > state.total_balance:
            raise InsufficientBalanceError(
                f"Insufficient balance on card {state.card_id}: "
                f"{format_amount(state.total_balance)} available, {format_amount(amount)} requested"
            )
        if amount > self.limits.max_single_debit:
            raise LimitExceededError(
                LimitKind.MAX_SINGLE_DEBIT,
                self.limits.max_single_debit,
                f"Max withdrawal limit of {format_amount(self.limits.max_single_debit)} exceeded",
            )
        if state.daily_debited + amount > self.limits.daily_debit_limit:
            raise LimitExceededError(
                LimitKind.DAILY_DEBIT,
                self.limits.daily_debit_limit,
                f"Daily debit limit of {format_amount(self.limits.daily_debit_limit)} exceeded "
                f"({format_amount(state.daily_debited)} already debited today)",
            )

    def _check_credit(self, state: CardState, amount: Decimal) -> None:
        if amount > self.limits.max_single_credit:
            raise LimitExceededError(
                LimitKind.MAX_SINGLE_CREDIT,
                self.limits.max_single_credit,
                f"Amount exceeds max credit limit of {format_amount(self.limits.max_single_credit)}",
            )
        if state.daily_credited + amount > self.limits.daily_credit_limit:
            raise LimitExceededError(
                LimitKind.DAILY_CREDIT,
                self.limits.daily_credit_limit,
                f"Daily credit limit of {format_amount(self.limits.daily_credit_limit)} exceeded "
                f"({format_amount(state.daily_credited)} already credited today)",
            )

    # Administrative updates

    def update_card(self, card_id: str, card_holder_name: str) -> CardState:
        """Change the name printed on the card."""
        def action() -> CommitResult:
            if not card_holder_name or not card_holder_name.strip():
                raise ValidationError("Card holder name cannot be null or empty")
            name = card_holder_name.strip()
            return self._commit(
                card_id,
                lambda state, now: (
                    replace(state, card_holder_name=name, updated_at=self._timestamp(state, now)),
                    None,
                ),
            )

        return self._run(OperationType.UPDATE, card_id, action)

    def activate(self, card_id: str) -> CardState:
        """Re-enable debits and credits on a card."""
        return self._run(OperationType.ACTIVATE, card_id, lambda: self._set_active(card_id, True))

    def deactivate(self, card_id: str) -> CardState:
        """Reject all further debits and credits on a card."""
        return self._run(OperationType.DEACTIVATE, card_id, lambda: self._set_active(card_id, False))

    def _set_active(self, card_id: str, active: bool) -> CommitResult:
        def mutation(state: CardState, now: datetime) -> CommitResult:
            if state.active == active:
                return state, None
            return replace(state, active=active, updated_at=self._timestamp(state, now)), None

        return self._commit(card_id, mutation)

    def delete_card(self, card_id: str) -> None:
        """Remove a card from the store.

        Its transaction records stay in the log. A missing card raises
        ``CardNotFoundError``.
        """
        def action() -> tuple[None, None]:
            with self._serialized(card_id):
                if not self.store.delete(card_id):
                    raise CardNotFoundError(card_id)
            return None, None

        self._run(OperationType.DELETE, card_id, action)

    # Reads

    def get_state(self, card_id: str) -> CardState:
        """Return the stored state of a card without touching its counters."""
        return self._load(card_id)

    def remaining_daily_limits(self, card_id: str) -> DailyHeadroom:
        """Today's remaining debit and credit volume, reset applied in memory only."""
        state = self._load(card_id)
        return remaining_daily_limits(state, self._clock().date(), self.limits)

    def transactions(
        self,
        card_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        """Get a card's transaction history in commit order."""
        self._load(card_id)
        return self.store.transactions_for_card(card_id, transaction_type)

    def owner_cards(self, owner_id: str) -> list[CardState]:
        """Get all cards of an owner."""
        self._require_owner(owner_id)
        return self.store.cards_for_owner(owner_id)

    def owner_transactions(
        self,
        owner_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        """Get the transactions of all of an owner's cards."""
        self._require_owner(owner_id)
        return self.store.transactions_for_owner(owner_id, transaction_type)

    def reconcile(self, card_id: str) -> Decimal:
        """Check a card's history against its balance.

        Each record's ``balance_after`` must follow from the previous one by
        its signed amount, and the last one must equal the current balance.

        Returns
        -------
        Decimal
            The balance the card was issued with, as implied by its history.

        Raises
        ------
        InvalidEntityStateError
            If the history and the stored balance disagree.
        """
        state = self._load(card_id)
        records = self.store.transactions_for_card(card_id)
        if not records:
            return state.total_balance

        opening = records[0].balance_after - records[0].signed_amount
        running = opening
        for record in records:
            running += record.signed_amount
            if record.balance_after is not None and record.balance_after != running:
                raise InvalidEntityStateError(
                    f"Card {card_id} history breaks at {record.transaction_id}: "
                    f"expected {running}, recorded {record.balance_after}"
                )
        if running != state.total_balance:
            raise InvalidEntityStateError(
                f"Card {card_id} balance {state.total_balance} does not match history total {running}"
            )
        return opening

    # Plumbing

    def _load(self, card_id: str) -> CardState:
        state = self.store.load(card_id)
        if state is None:
            raise CardNotFoundError(card_id)
        return state

    def _require_owner(self, owner_id: str) -> None:
        if self.store.get_owner(owner_id) is None:
            raise OwnerNotFoundError(owner_id)

    def _serialized(self, card_id: str) -> ContextManager[None]:
        if self.locks is None:
            return nullcontext()
        return self.locks.hold(card_id, self.config.lock_timeout_seconds)

    def _timestamp(self, state: CardState, now: datetime) -> datetime:
        # Keeps record timestamps non-decreasing per card if the clock steps back
        if state.updated_at is not None and state.updated_at > now:
            return state.updated_at
        return now

    def _commit(self, card_id: str, mutation: Mutation) -> CommitResult:
        attempts = self.config.max_commit_attempts
        for attempt in range(1, attempts + 1):
            with self._serialized(card_id):
                current = self._load(card_id)
                new_state, record = mutation(current, self._clock())
                if new_state is current:
                    return current, None
                try:
                    return self.store.compare_and_save(new_state, record), record
                except VersionConflictError:
                    logger.debug(
                        "Version conflict on card %s (attempt %d/%d)",
                        card_id,
                        attempt,
                        attempts,
                        extra={"card_id": card_id},
                    )
        raise ConcurrencyExhaustedError(
            f"Card {card_id} kept changing concurrently; gave up after {attempts} attempts"
        )

    def _run(
        self,
        operation: OperationType,
        card_id: str,
        action: Callable[[], tuple],
        amount: AmountLike | None = None,
    ) -> CardState:
        try:
            state, record = action()
        except LedgerError as exc:
            logger.warning(
                "%s on card %s rejected: %s",
                operation.value,
                card_id,
                exc,
                extra={"card_id": card_id, "operation": operation.value, "error_kind": exc.kind.value},
            )
            self._report(operation, card_id, OperationStatus.FAILED, amount, error=exc)
            raise
        except Exception as exc:
            logger.error("%s on card %s failed unexpectedly", operation.value, card_id, exc_info=True)
            self._report(operation, card_id, OperationStatus.FAILED, amount, error=exc)
            raise

        if record is not None:
            logger.info(
                "%s of %s on card %s accepted (balance %s, version %d)",
                operation.value,
                format_amount(record.amount),
                card_id,
                format_amount(state.total_balance),
                state.version,
                extra={"card_id": card_id, "operation": operation.value},
            )
        else:
            logger.info("%s on card %s done", operation.value, card_id, extra={"card_id": card_id})
        self._report(operation, card_id, OperationStatus.SUCCESS, amount, record=record)
        return state

    def _report(
        self,
        operation: OperationType,
        card_id: str,
        status: OperationStatus,
        amount: AmountLike | None,
        record: TransactionRecord | None = None,
        error: Exception | None = None,
    ) -> None:
        if error is None:
            message = record.description if record is not None else ""
            error_kind = None
        else:
            message = str(error)
            error_kind = error.kind if isinstance(error, LedgerError) else ErrorKind.UNEXPECTED

        outcome = OperationOutcome(
            operation=operation,
            card_id=card_id,
            status=status,
            timestamp=record.timestamp if record is not None else self._clock(),
            amount=record.amount if record is not None else _reported_amount(amount),
            error_kind=error_kind,
            message=message,
            transaction_id=record.transaction_id if record is not None else None,
        )
        dispatch_outcome(self.audit_sink, outcome)


def _reported_amount(amount: AmountLike | None) -> Decimal | None:
    if amount is None:
        return None
    try:
        return to_amount(amount)
    except InvalidAmountError:
        return None
