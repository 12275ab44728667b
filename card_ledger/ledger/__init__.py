"""Ledger core: engine, issuance, daily reset and locking."""

from card_ledger.ledger.amounts import to_amount
from card_ledger.ledger.daily_reset import (
    DailyCounters,
    DailyHeadroom,
    apply_daily_reset,
    remaining_daily_limits,
    roll_daily_counters,
)
from card_ledger.ledger.engine import LedgerEngine
from card_ledger.ledger.factory import CardFactory
from card_ledger.ledger.locks import CardLocks

__all__ = [
    "CardFactory",
    "CardLocks",
    "DailyCounters",
    "DailyHeadroom",
    "LedgerEngine",
    "apply_daily_reset",
    "remaining_daily_limits",
    "roll_daily_counters",
    "to_amount",
]
