"""Credit card ledger state."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True)
class CardState:
    """Current ledger state of one card.

    Snapshots are immutable; the engine derives a new snapshot with
    ``dataclasses.replace`` and hands it to the store, which bumps
    ``version`` when the compare-and-save succeeds.
    """

    card_id: str
    card_number: str  # 16 digits, unique
    owner_id: str
    card_type: str  # VISA, MASTERCARD, ...
    active: bool
    total_balance: Decimal
    daily_debited: Decimal
    daily_credited: Decimal
    last_reset_date: date
    issue_date: date
    expiry_date: date
    card_holder_name: str = ""
    version: int = 0
    updated_at: datetime | None = None

    @property
    def masked_number(self) -> str:
        """Card number with all but the last four digits hidden."""
        return f"****-****-****-{self.card_number[-4:]}"
