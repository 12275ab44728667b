"""Transaction and outcome records."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from card_ledger.models.enums import ErrorKind, OperationStatus, OperationType, TransactionType


@dataclass(frozen=True)
class TransactionRecord:
    """Immutable record of one accepted debit or credit."""

    transaction_id: str
    card_id: str
    transaction_type: TransactionType
    amount: Decimal
    card_type: str
    description: str
    timestamp: datetime
    balance_after: Decimal | None = None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign it applies to the balance."""
        if self.transaction_type == TransactionType.DEBIT:
            return -self.amount
        return self.amount


@dataclass
class OperationOutcome:
    """Result of an inbound operation as reported to audit sinks."""

    operation: OperationType
    card_id: str | None
    status: OperationStatus
    timestamp: datetime
    amount: Decimal | None = None
    error_kind: ErrorKind | None = None
    message: str = ""
    transaction_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == OperationStatus.SUCCESS
