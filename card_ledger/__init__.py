"""Credit-card ledger with limit enforcement and optimistic concurrency."""

from card_ledger.config import LedgerConfig, LedgerLimits
from card_ledger.ledger import CardFactory, CardLocks, LedgerEngine
from card_ledger.store import InMemoryLedgerStore, LedgerStore, PostgresLedgerStore

__version__ = "0.1.0"

__all__ = [
    "CardFactory",
    "CardLocks",
    "InMemoryLedgerStore",
    "LedgerConfig",
    "LedgerEngine",
    "LedgerLimits",
    "LedgerStore",
    "PostgresLedgerStore",
]
