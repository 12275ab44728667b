"""In-memory ledger store with relationship tracking."""

import threading
from dataclasses import dataclass, field, replace

from card_ledger.exceptions import (
    CardNotFoundError,
    DuplicateCardNumberError,
    OwnerNotFoundError,
    VersionConflictError,
)
from card_ledger.models import CardState, Owner, TransactionRecord, TransactionType
from card_ledger.store.base import LedgerStore


@dataclass
class InMemoryLedgerStore(LedgerStore):
    """Thread-safe in-memory store.

    A single store-wide lock guards every read and write, which makes
    ``compare_and_save`` atomic with respect to other callers.
    """

    # Primary entities
    owners: dict[str, Owner] = field(default_factory=dict)
    cards: dict[str, CardState] = field(default_factory=dict)

    # Append-only log
    transactions: list[TransactionRecord] = field(default_factory=list)

    # Relationship indexes
    _owner_cards: dict[str, list[str]] = field(default_factory=dict)
    _card_numbers: dict[str, str] = field(default_factory=dict)
    _card_transactions: dict[str, list[int]] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_owner(self, owner: Owner) -> None:
        """Add an owner to the store."""
        with self._lock:
            self.owners[owner.owner_id] = owner
            self._owner_cards.setdefault(owner.owner_id, [])

    def get_owner(self, owner_id: str) -> Owner | None:
        with self._lock:
            return self.owners.get(owner_id)

    def load(self, card_id: str) -> CardState | None:
        with self._lock:
            return self.cards.get(card_id)

    def card_number_exists(self, card_number: str) -> bool:
        with self._lock:
            return card_number in self._card_numbers

    def insert(self, state: CardState) -> CardState:
        with self._lock:
            if state.owner_id not in self.owners:
                raise OwnerNotFoundError(state.owner_id)
            if state.card_number in self._card_numbers:
                raise DuplicateCardNumberError(f"Card number ending {state.card_number[-4:]} already issued")
            if state.card_id in self.cards:
                raise DuplicateCardNumberError(f"Card {state.card_id} already exists")

            self.cards[state.card_id] = state
            self._card_numbers[state.card_number] = state.card_id
            self._owner_cards[state.owner_id].append(state.card_id)
            self._card_transactions.setdefault(state.card_id, [])
            return state

    def compare_and_save(
        self,
        state: CardState,
        record: TransactionRecord | None = None,
    ) -> CardState:
        with self._lock:
            current = self.cards.get(state.card_id)
            if current is None:
                raise CardNotFoundError(state.card_id)
            if current.version != state.version:
                raise VersionConflictError(
                    f"Card {state.card_id} is at version {current.version}, expected {state.version}"
                )

            saved = replace(state, version=state.version + 1)
            mark = len(self.transactions)
            if record is not None:
                self._append_record(record)
            try:
                self._write_state(saved)
            except Exception:
                self._truncate_log(state.card_id, mark)
                raise
            return saved

    def delete(self, card_id: str) -> bool:
        with self._lock:
            state = self.cards.pop(card_id, None)
            if state is None:
                return False
            self._card_numbers.pop(state.card_number, None)
            owner_cards = self._owner_cards.get(state.owner_id, [])
            if card_id in owner_cards:
                owner_cards.remove(card_id)
            return True

    def cards_for_owner(self, owner_id: str) -> list[CardState]:
        with self._lock:
            card_ids = self._owner_cards.get(owner_id, [])
            return [self.cards[cid] for cid in card_ids]

    def transactions_for_card(
        self,
        card_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        with self._lock:
            indices = self._card_transactions.get(card_id, [])
            records = [self.transactions[i] for i in indices]
        if transaction_type is None:
            return records
        return [r for r in records if r.transaction_type == transaction_type]

    def transactions_for_owner(
        self,
        owner_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        with self._lock:
            card_ids = list(self._owner_cards.get(owner_id, []))
        records: list[TransactionRecord] = []
        for card_id in card_ids:
            records.extend(self.transactions_for_card(card_id, transaction_type))
        return records

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        with self._lock:
            return {
                "owners": len(self.owners),
                "cards": len(self.cards),
                "transactions": len(self.transactions),
            }

    # Internal steps of compare_and_save, called with the lock held.

    def _append_record(self, record: TransactionRecord) -> None:
        idx = len(self.transactions)
        self.transactions.append(record)
        self._card_transactions.setdefault(record.card_id, []).append(idx)

    def _write_state(self, state: CardState) -> None:
        self.cards[state.card_id] = state

    def _truncate_log(self, card_id: str, mark: int) -> None:
        del self.transactions[mark:]
        indices = self._card_transactions.get(card_id, [])
        while indices and indices[-1] >= mark:
            indices.pop()
