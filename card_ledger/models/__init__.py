"""Domain models for the card ledger."""

from card_ledger.models.base import Event, Owner
from card_ledger.models.card import CardState
from card_ledger.models.enums import (
    ErrorKind,
    LimitKind,
    OperationStatus,
    OperationType,
    TransactionType,
)
from card_ledger.models.transaction import OperationOutcome, TransactionRecord

__all__ = [
    "CardState",
    "ErrorKind",
    "Event",
    "LimitKind",
    "OperationOutcome",
    "OperationStatus",
    "OperationType",
    "Owner",
    "TransactionRecord",
    "TransactionType",
]
