"""Tests for the lazy daily counter reset."""

from datetime import date
from decimal import Decimal

from card_ledger.config import LedgerLimits
from card_ledger.ledger.daily_reset import (
    DailyCounters,
    apply_daily_reset,
    remaining_daily_limits,
    roll_daily_counters,
)

TODAY = date(2026, 10, 19)


class TestRollDailyCounters:
    """Tests for roll_daily_counters."""

    def test_same_day_keeps_counters(self) -> None:
        counters = DailyCounters(Decimal("100.00"), Decimal("50.00"), TODAY)

        assert roll_daily_counters(counters, TODAY) is counters

    def test_next_day_zeroes_counters(self) -> None:
        counters = DailyCounters(Decimal("100.00"), Decimal("50.00"), TODAY)

        rolled = roll_daily_counters(counters, date(2026, 10, 20))

        assert rolled == DailyCounters(Decimal("0.00"), Decimal("0.00"), date(2026, 10, 20))

    def test_earlier_day_keeps_counters(self) -> None:
        """A clock stepping back never resets counters."""
        counters = DailyCounters(Decimal("100.00"), Decimal("50.00"), TODAY)

        assert roll_daily_counters(counters, date(2026, 10, 18)) is counters

    def test_gap_of_several_days(self) -> None:
        counters = DailyCounters(Decimal("5.00"), Decimal("0.00"), date(2026, 9, 1))

        rolled = roll_daily_counters(counters, TODAY)

        assert rolled.last_reset_date == TODAY
        assert rolled.daily_debited == Decimal("0.00")


class TestApplyDailyReset:
    """Tests for apply_daily_reset."""

    def test_unchanged_state_is_returned_as_is(self, build_card) -> None:
        card = build_card(daily_debited=Decimal("300.00"), last_reset_date=TODAY)

        assert apply_daily_reset(card, TODAY) is card

    def test_reset_only_touches_daily_fields(self, build_card) -> None:
        card = build_card(
            daily_debited=Decimal("300.00"),
            daily_credited=Decimal("20.00"),
            last_reset_date=date(2026, 10, 18),
            version=7,
        )

        rolled = apply_daily_reset(card, TODAY)

        assert rolled.daily_debited == Decimal("0.00")
        assert rolled.daily_credited == Decimal("0.00")
        assert rolled.last_reset_date == TODAY
        assert rolled.total_balance == card.total_balance
        assert rolled.version == 7
        assert card.daily_debited == Decimal("300.00")


class TestRemainingDailyLimits:
    """Tests for remaining_daily_limits."""

    def test_headroom_today(self, build_card) -> None:
        card = build_card(
            daily_debited=Decimal("19500.00"),
            daily_credited=Decimal("1000.00"),
            last_reset_date=TODAY,
        )

        headroom = remaining_daily_limits(card, TODAY, LedgerLimits())

        assert headroom.debit_remaining == Decimal("500.00")
        assert headroom.credit_remaining == Decimal("49000.00")
        assert headroom.as_of == TODAY

    def test_headroom_after_day_change(self, build_card) -> None:
        card = build_card(daily_debited=Decimal("19500.00"), last_reset_date=date(2026, 10, 18))

        headroom = remaining_daily_limits(card, TODAY, LedgerLimits())

        assert headroom.debit_remaining == Decimal("20000")
        assert card.daily_debited == Decimal("19500.00")

    def test_headroom_never_negative(self, build_card) -> None:
        """Counters above a lowered limit report zero headroom."""
        card = build_card(daily_debited=Decimal("800.00"), last_reset_date=TODAY)

        headroom = remaining_daily_limits(card, TODAY, LedgerLimits(daily_debit_limit=Decimal("500")))

        assert headroom.debit_remaining == Decimal("0.00")
