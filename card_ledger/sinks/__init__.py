"""Audit sinks for ledger operation outcomes."""

from card_ledger.config import LedgerConfig
from card_ledger.sinks.base import AuditSink, NullSink, dispatch_outcome
from card_ledger.sinks.console import ConsoleSink
from card_ledger.sinks.json_file import JsonLinesSink
from card_ledger.sinks.kafka import KafkaSink


def create_audit_sink(config: LedgerConfig) -> AuditSink:
    """Build the sink selected by ``config.audit.sink``."""
    audit = config.audit
    if audit.sink == "console":
        return ConsoleSink()
    if audit.sink == "json":
        return JsonLinesSink(audit.json_path)
    if audit.sink == "kafka":
        return KafkaSink(config.kafka, topic=audit.topic)
    return NullSink()


__all__ = [
    "AuditSink",
    "ConsoleSink",
    "JsonLinesSink",
    "KafkaSink",
    "NullSink",
    "create_audit_sink",
    "dispatch_outcome",
]
