"""Per-card mutual exclusion for single-process deployments."""

import threading
from contextlib import contextmanager
from typing import Iterator

from card_ledger.exceptions import ConcurrencyExhaustedError


class _LockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class CardLocks:
    """Registry of one lock per card id.

    Entries are reference counted and dropped when the last holder (or
    waiter) leaves, so the registry only grows with the number of cards
    being operated on concurrently.
    """

    def __init__(self, default_timeout: float = 5.0) -> None:
        self.default_timeout = default_timeout
        self._guard = threading.Lock()
        self._entries: dict[str, _LockEntry] = {}

    @contextmanager
    def hold(self, card_id: str, timeout: float | None = None) -> Iterator[None]:
        """Hold the lock for ``card_id`` for the duration of the block.

        Raises
        ------
        ConcurrencyExhaustedError
            If the lock could not be acquired within ``timeout`` seconds.
        """
        wait = self.default_timeout if timeout is None else timeout

        with self._guard:
            entry = self._entries.get(card_id)
            if entry is None:
                entry = self._entries[card_id] = _LockEntry()
            entry.holders += 1

        try:
            if not entry.lock.acquire(timeout=wait):
                raise ConcurrencyExhaustedError(
                    f"Timed out after {wait:.1f}s waiting for card {card_id}"
                )
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[card_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
