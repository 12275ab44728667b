"""Ledger storage backends."""

from card_ledger.store.base import LedgerStore
from card_ledger.store.memory import InMemoryLedgerStore
from card_ledger.store.postgres import PostgresLedgerStore

__all__ = ["InMemoryLedgerStore", "LedgerStore", "PostgresLedgerStore"]
