"""Lazy day-boundary reset of the per-card daily counters.

Counters are never zeroed by a timer. Each mutating ledger call rolls them
forward first, so a reset only becomes visible on the next operation for
that card. Reads that want today's headroom apply the same policy to a
copy without persisting it.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from card_ledger.config import LedgerLimits
from card_ledger.ledger.amounts import ZERO
from card_ledger.models import CardState


@dataclass(frozen=True)
class DailyCounters:
    """The day-scoped part of a card's state."""

    daily_debited: Decimal
    daily_credited: Decimal
    last_reset_date: date


@dataclass(frozen=True)
class DailyHeadroom:
    """How much more can be debited and credited today."""

    debit_remaining: Decimal
    credit_remaining: Decimal
    as_of: date


def roll_daily_counters(counters: DailyCounters, today: date) -> DailyCounters:
    """Zero both counters when ``today`` is past the last reset date."""
    if today > counters.last_reset_date:
        return DailyCounters(daily_debited=ZERO, daily_credited=ZERO, last_reset_date=today)
    return counters


def apply_daily_reset(state: CardState, today: date) -> CardState:
    """Return ``state`` with its daily counters rolled to ``today``."""
    counters = DailyCounters(state.daily_debited, state.daily_credited, state.last_reset_date)
    rolled = roll_daily_counters(counters, today)
    if rolled is counters:
        return state
    return replace(
        state,
        daily_debited=rolled.daily_debited,
        daily_credited=rolled.daily_credited,
        last_reset_date=rolled.last_reset_date,
    )


def remaining_daily_limits(state: CardState, today: date, limits: LedgerLimits) -> DailyHeadroom:
    """Compute today's remaining debit and credit volume for a card."""
    view = apply_daily_reset(state, today)
    return DailyHeadroom(
        debit_remaining=max(ZERO, limits.daily_debit_limit - view.daily_debited),
        credit_remaining=max(ZERO, limits.daily_credit_limit - view.daily_credited),
        as_of=today,
    )
