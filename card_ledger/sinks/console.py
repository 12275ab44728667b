"""Console sink for debugging and development."""

import json

from card_ledger.models import OperationOutcome
from card_ledger.sinks.base import AuditSink
from card_ledger.sinks.serialization import to_dict


class ConsoleSink(AuditSink):
    """Print outcomes to stdout."""

    def __init__(self, pretty: bool = False, failures_only: bool = False) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        failures_only : bool
            Skip successful outcomes.
        """
        self.pretty = pretty
        self.failures_only = failures_only
        self._counts: dict[str, int] = {}

    def on_operation_result(self, outcome: OperationOutcome) -> None:
        key = outcome.status.value
        self._counts[key] = self._counts.get(key, 0) + 1
        if self.failures_only and outcome.succeeded:
            return

        data = to_dict(outcome)
        if self.pretty:
            print(json.dumps(data, indent=2, ensure_ascii=False))
        else:
            print(json.dumps(data, ensure_ascii=False))

    def close(self) -> None:
        """Print summary."""
        print("Ledger outcomes:")
        for status, count in sorted(self._counts.items()):
            print(f"  {status}: {count}")
