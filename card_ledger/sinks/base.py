"""Audit sink contract."""

import logging
from abc import ABC, abstractmethod

from card_ledger.models import OperationOutcome

logger = logging.getLogger(__name__)


class AuditSink(ABC):
    """Receives the outcome of every inbound ledger operation."""

    @abstractmethod
    def on_operation_result(self, outcome: OperationOutcome) -> None:
        """Record one outcome."""

    def close(self) -> None:
        """Flush and release resources."""


class NullSink(AuditSink):
    """Discard outcomes."""

    def on_operation_result(self, outcome: OperationOutcome) -> None:
        return None


def dispatch_outcome(sink: AuditSink | None, outcome: OperationOutcome) -> None:
    """Hand an outcome to the sink.

    Sink errors are logged and dropped: the ledger result is already
    decided when this runs.
    """
    if sink is None:
        return
    try:
        sink.on_operation_result(outcome)
    except Exception:
        logger.exception(
            "Audit sink %s failed for %s on card %s",
            type(sink).__name__,
            outcome.operation.value,
            outcome.card_id,
        )
