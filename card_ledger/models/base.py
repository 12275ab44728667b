"""Base models shared across the ledger."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Owner:
    """Customer that owns one or more cards.

    The ledger only needs the id for referential checks and the name to
    stamp the card holder at issuance.
    """

    owner_id: str
    name: str


@dataclass
class Event:
    """Standard event envelope for streaming."""

    event_id: str
    event_type: str  # entity.action (e.g., card.debit)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Entity ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
