"""Card number and card id generation."""

import threading

from card_ledger.generators.base import BaseGenerator

CARD_NUMBER_LENGTH = 16

# Faker numerify: "%" draws 1-9, "#" draws 0-9
CARD_NUMBER_PATTERN = "%" + "#" * (CARD_NUMBER_LENGTH - 1)


class CardNumberGenerator(BaseGenerator):
    """Draw candidate card numbers and card ids.

    Uniqueness is not guaranteed here; the card factory rejects draws that
    are already present in the store.
    """

    def __init__(self, seed: int | None = None) -> None:
        super().__init__(seed)
        self._lock = threading.Lock()

    def card_number(self) -> str:
        """Draw a 16-digit number without a leading zero."""
        with self._lock:
            return self.fake.numerify(CARD_NUMBER_PATTERN)

    def card_id(self) -> str:
        """Draw a card id."""
        with self._lock:
            return self.fake.uuid4()
