"""Storage contract shared by every ledger backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

from card_ledger.models import CardState, Owner, TransactionRecord, TransactionType


class LedgerStore(ABC):
    """Card store, transaction log and owner lookup behind one interface.

    Backends must make ``compare_and_save`` a single atomic unit: the
    version check, the state write and the optional record append either
    all take effect or none do. Records for a card are returned in the
    order their state writes committed.
    """

    # Owners

    @abstractmethod
    def add_owner(self, owner: Owner) -> None:
        """Register an owner, replacing the name of an existing one."""

    @abstractmethod
    def get_owner(self, owner_id: str) -> Owner | None:
        """Return the owner or ``None`` when it does not exist."""

    # Card store

    @abstractmethod
    def load(self, card_id: str) -> CardState | None:
        """Return the current state of a card or ``None``."""

    @abstractmethod
    def card_number_exists(self, card_number: str) -> bool:
        """Check whether a card number is already issued."""

    @abstractmethod
    def insert(self, state: CardState) -> CardState:
        """Persist a newly issued card.

        Raises ``DuplicateCardNumberError`` if the number is taken and
        ``OwnerNotFoundError`` if the owner is unknown.
        """

    @abstractmethod
    def compare_and_save(
        self,
        state: CardState,
        record: TransactionRecord | None = None,
    ) -> CardState:
        """Save ``state`` if the stored version still equals ``state.version``.

        Returns the saved snapshot with its version incremented. Raises
        ``VersionConflictError`` when another write committed first and
        ``CardNotFoundError`` when the card is gone.
        """

    @abstractmethod
    def delete(self, card_id: str) -> bool:
        """Remove a card. Returns ``False`` when it was not present."""

    @abstractmethod
    def cards_for_owner(self, owner_id: str) -> list[CardState]:
        """Get all cards of an owner."""

    # Transaction log

    @abstractmethod
    def transactions_for_card(
        self,
        card_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        """Get a card's records in commit order."""

    @abstractmethod
    def transactions_for_owner(
        self,
        owner_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        """Get the records of every current card of an owner."""
