"""Card issuance."""

import logging
from datetime import date, datetime
from typing import Callable

from card_ledger.config import LedgerConfig
from card_ledger.exceptions import (
    CardNumberExhaustedError,
    DuplicateCardNumberError,
    LedgerError,
    OwnerNotFoundError,
    ValidationError,
)
from card_ledger.generators import CardNumberGenerator
from card_ledger.ledger.amounts import ZERO, AmountLike, to_amount
from card_ledger.models import (
    CardState,
    ErrorKind,
    OperationOutcome,
    OperationStatus,
    OperationType,
)
from card_ledger.sinks.base import AuditSink, dispatch_outcome
from card_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)


def add_years(day: date, years: int) -> date:
    """Shift a date by whole years, mapping Feb 29 to Feb 28 when needed."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


class CardFactory:
    """Issue new cards with unique numbers and zeroed counters."""

    def __init__(
        self,
        store: LedgerStore,
        config: LedgerConfig | None = None,
        audit_sink: AuditSink | None = None,
        generator: CardNumberGenerator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.config = config or LedgerConfig()
        self.audit_sink = audit_sink
        self.generator = generator or CardNumberGenerator(seed=self.config.seed)
        self._clock = clock

    def issue(
        self,
        owner_id: str,
        initial_balance: AmountLike,
        card_type: str,
        active: bool = True,
    ) -> CardState:
        """Issue a card for an existing owner.

        Parameters
        ----------
        owner_id : str
            Owner the card belongs to.
        initial_balance : Decimal | int | str | float
            Opening balance; must be a positive amount.
        card_type : str
            Free-form label such as ``"VISA"``.
        active : bool
            Whether the card accepts operations right away.

        Returns
        -------
        CardState
            The stored card at version 0.

        Raises
        ------
        OwnerNotFoundError, InvalidAmountError, ValidationError,
        CardNumberExhaustedError, StoreUnavailableError
        """
        try:
            state = self._issue(owner_id, initial_balance, card_type, active)
        except LedgerError as exc:
            logger.warning("Card issuance for owner %s rejected: %s", owner_id, exc)
            self._report(None, OperationStatus.FAILED, str(exc), exc.kind)
            raise

        logger.info(
            "Issued %s card %s (%s) for owner %s",
            state.card_type,
            state.card_id,
            state.masked_number,
            owner_id,
            extra={"card_id": state.card_id, "operation": OperationType.ISSUE.value},
        )
        self._report(state, OperationStatus.SUCCESS, f"Issued card {state.masked_number}")
        return state

    def _issue(
        self,
        owner_id: str,
        initial_balance: AmountLike,
        card_type: str,
        active: bool,
    ) -> CardState:
        if not owner_id:
            raise ValidationError("Owner id must be provided")
        balance = to_amount(initial_balance, field="initial_balance")
        if not card_type or not card_type.strip():
            raise ValidationError("Card type must not be empty")

        owner = self.store.get_owner(owner_id)
        if owner is None:
            raise OwnerNotFoundError(owner_id)

        now = self._clock()
        today = now.date()
        attempts = self.config.card_number_attempts

        for attempt in range(1, attempts + 1):
            number = self.generator.card_number()
            if self.store.card_number_exists(number):
                logger.debug("Card number draw %d/%d already taken", attempt, attempts)
                continue

            state = CardState(
                card_id=self.generator.card_id(),
                card_number=number,
                owner_id=owner_id,
                card_type=card_type.strip(),
                active=active,
                total_balance=balance,
                daily_debited=ZERO,
                daily_credited=ZERO,
                last_reset_date=today,
                issue_date=today,
                expiry_date=add_years(today, self.config.card_validity_years),
                card_holder_name=owner.name,
                version=0,
                updated_at=now,
            )
            try:
                return self.store.insert(state)
            except DuplicateCardNumberError:
                # Lost a race with a concurrent issuance drawing the same number
                logger.debug("Card number draw %d/%d taken at insert", attempt, attempts)

        raise CardNumberExhaustedError(f"No unused card number found after {attempts} draws")

    def _report(
        self,
        state: CardState | None,
        status: OperationStatus,
        message: str,
        error_kind: ErrorKind | None = None,
    ) -> None:
        outcome = OperationOutcome(
            operation=OperationType.ISSUE,
            card_id=state.card_id if state is not None else None,
            status=status,
            timestamp=self._clock(),
            amount=state.total_balance if state is not None else None,
            error_kind=error_kind,
            message=message,
        )
        dispatch_outcome(self.audit_sink, outcome)
