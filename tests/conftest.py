"""Pytest configuration and fixtures."""

from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from card_ledger.config import LedgerConfig
from card_ledger.generators import CardNumberGenerator
from card_ledger.ledger import CardFactory, LedgerEngine
from card_ledger.models import CardState, OperationOutcome, Owner
from card_ledger.sinks.base import AuditSink
from card_ledger.store import InMemoryLedgerStore

START = datetime(2026, 10, 19, 10, 30)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSink(AuditSink):
    """Keeps every outcome in memory."""

    def __init__(self) -> None:
        self.outcomes: list[OperationOutcome] = []
        self.closed = False

    def on_operation_result(self, outcome: OperationOutcome) -> None:
        self.outcomes.append(outcome)

    def close(self) -> None:
        self.closed = True


class ExplodingSink(AuditSink):
    """Fails on every outcome."""

    def __init__(self) -> None:
        self.calls = 0

    def on_operation_result(self, outcome: OperationOutcome) -> None:
        self.calls += 1
        raise RuntimeError("audit backend down")


def make_card(owner_id: str = "owner-001", **overrides: object) -> CardState:
    """Build a card snapshot dated on the frozen clock's day."""
    state = CardState(
        card_id="card-001",
        card_number="4111111111111111",
        owner_id=owner_id,
        card_type="VISA",
        active=True,
        total_balance=Decimal("1000.00"),
        daily_debited=Decimal("0.00"),
        daily_credited=Decimal("0.00"),
        last_reset_date=START.date(),
        issue_date=date(2026, 1, 1),
        expiry_date=date(2036, 1, 1),
        card_holder_name="Ana Souza",
        version=0,
        updated_at=START - timedelta(hours=1),
    )
    return replace(state, **overrides)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at a fixed morning."""
    return FrozenClock()


@pytest.fixture
def owner() -> Owner:
    """Sample owner."""
    return Owner(owner_id="owner-001", name="Ana Souza")


@pytest.fixture
def store(owner: Owner) -> InMemoryLedgerStore:
    """Fresh store holding the sample owner."""
    store = InMemoryLedgerStore()
    store.add_owner(owner)
    return store


@pytest.fixture
def sink() -> RecordingSink:
    """Audit sink capturing outcomes."""
    return RecordingSink()


@pytest.fixture
def engine(store: InMemoryLedgerStore, sink: RecordingSink, clock: FrozenClock) -> LedgerEngine:
    """Engine with default limits on the in-memory store."""
    return LedgerEngine(store, audit_sink=sink, clock=clock)


@pytest.fixture
def factory(store: InMemoryLedgerStore, sink: RecordingSink, clock: FrozenClock, seed: int) -> CardFactory:
    """Card factory with a seeded number generator."""
    return CardFactory(
        store,
        config=LedgerConfig(seed=seed),
        audit_sink=sink,
        generator=CardNumberGenerator(seed=seed),
        clock=clock,
    )


@pytest.fixture
def card(store: InMemoryLedgerStore) -> CardState:
    """Active card with a 1,000.00 balance and untouched daily counters."""
    return store.insert(make_card())


@pytest.fixture
def build_card():
    """Factory for card snapshots with overridable fields."""
    return make_card


@pytest.fixture
def exploding_sink() -> ExplodingSink:
    """Audit sink that raises on every outcome."""
    return ExplodingSink()
