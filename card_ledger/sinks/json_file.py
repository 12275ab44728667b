"""JSON Lines file sink for operation outcomes."""

import json
import threading
from pathlib import Path

from card_ledger.exceptions import SinkError
from card_ledger.models import OperationOutcome
from card_ledger.sinks.base import AuditSink
from card_ledger.sinks.serialization import to_dict


class JsonLinesSink(AuditSink):
    """Append each outcome as one JSON line.

    The file is opened in append mode and never rewritten, so earlier
    entries survive restarts.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize JSON Lines sink.

        Parameters
        ----------
        path : str | Path
            File to append to. Parent directories are created.
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def on_operation_result(self, outcome: OperationOutcome) -> None:
        line = json.dumps(to_dict(outcome), ensure_ascii=False) + "\n"
        with self._lock:
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as exc:
                raise SinkError(f"Cannot write audit entry to {self.path}: {exc}") from exc
            self._count += 1

    def read_all(self) -> list[dict]:
        """Load every entry written so far."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
