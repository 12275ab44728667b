"""Custom exception hierarchy for card-ledger."""

from card_ledger.models.enums import ErrorKind, LimitKind


class LedgerError(Exception):
    """Base exception for all card-ledger errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED


class EntityNotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class CardNotFoundError(EntityNotFoundError):
    """Raised when a card id is not present in the card store."""

    def __init__(self, card_id: str) -> None:
        super().__init__(f"Card {card_id} not found")
        self.card_id = card_id


class OwnerNotFoundError(EntityNotFoundError):
    """Raised when a card is issued for an owner that does not exist."""

    def __init__(self, owner_id: str) -> None:
        super().__init__(f"Owner {owner_id} not found")
        self.owner_id = owner_id


class InvalidEntityStateError(LedgerError):
    """Raised when an entity is in an invalid state for the operation."""


class CardInactiveError(InvalidEntityStateError):
    """Raised when a debit or credit targets a deactivated card."""

    kind = ErrorKind.INACTIVE

    def __init__(self, card_id: str) -> None:
        super().__init__(f"Card {card_id} is not active")
        self.card_id = card_id


class ValidationError(LedgerError):
    """Raised when caller input is malformed."""

    kind = ErrorKind.INVALID_INPUT


class InvalidAmountError(ValidationError):
    """Raised for non-positive, non-finite or over-precise amounts."""

    kind = ErrorKind.INVALID_AMOUNT


class InsufficientBalanceError(LedgerError):
    """Raised when a debit exceeds the card's total balance."""

    kind = ErrorKind.INSUFFICIENT_BALANCE


class LimitExceededError(LedgerError):
    """Raised when an operation would break a single or daily limit."""

    kind = ErrorKind.LIMIT_EXCEEDED

    def __init__(self, limit: LimitKind, limit_value: object, message: str) -> None:
        super().__init__(message)
        self.limit = limit
        self.limit_value = limit_value


class VersionConflictError(LedgerError):
    """Raised by a store when the saved version no longer matches."""

    kind = ErrorKind.CONFLICT


class ConcurrencyExhaustedError(LedgerError):
    """Raised when optimistic retries or lock waits run out."""

    kind = ErrorKind.CONCURRENCY_EXHAUSTED


class DuplicateCardNumberError(LedgerError):
    """Raised by a store when a card number is already taken."""

    kind = ErrorKind.CONFLICT


class CardNumberExhaustedError(LedgerError):
    """Raised when no unused card number was drawn within the attempt budget."""

    kind = ErrorKind.CONCURRENCY_EXHAUSTED


class StoreUnavailableError(LedgerError):
    """Raised when a storage collaborator fails."""

    kind = ErrorKind.STORE_UNAVAILABLE


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""

    kind = ErrorKind.INVALID_INPUT


class SinkError(LedgerError):
    """Raised when an audit sink operation fails."""
