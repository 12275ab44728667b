"""Kafka sink for publishing ledger outcomes."""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from confluent_kafka import Producer

from card_ledger.config import KafkaConfig
from card_ledger.models import Event, OperationOutcome
from card_ledger.sinks.base import AuditSink
from card_ledger.sinks.serialization import to_dict

logger = logging.getLogger(__name__)

EVENT_SOURCE = "card-ledger"
DEFAULT_TOPIC = "ledger.card-operations"


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0
    start_time: float | None = None

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0

    @property
    def pending(self) -> int:
        """Messages sent but not yet acknowledged either way."""
        return self.sent - self.delivered - self.failed


class KafkaSink(AuditSink):
    """Publish outcomes as events keyed by card id.

    Keying by card id keeps every event of one card in a single partition,
    so consumers see them in the order the ledger committed them.
    """

    def __init__(self, config: KafkaConfig | str, topic: str = DEFAULT_TOPIC) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        topic : str
            Topic receiving outcome events.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.topic = topic
        self.producer = self._create_producer()
        self.stats = ProducerStats(start_time=time.time())

    def _create_producer(self) -> Producer:
        """Create Kafka producer with configuration."""
        return Producer(self.config.to_dict())

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Count delivery reports; a lost outcome is logged with its card key."""
        if err:
            self.stats.failed += 1
            key = msg.key() if msg is not None else None
            logger.error(
                "Outcome for card %s not delivered to %s: %s",
                key.decode("utf-8") if key else "-",
                self.topic,
                err,
            )
        else:
            self.stats.delivered += 1
            logger.debug("Outcome delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def to_event(self, outcome: OperationOutcome) -> Event:
        """Wrap an outcome in the streaming envelope."""
        return Event(
            event_id=str(uuid.uuid4()),
            event_type=f"card.{outcome.operation.value.lower()}.{outcome.status.value.lower()}",
            event_time=outcome.timestamp,
            source=EVENT_SOURCE,
            subject=outcome.card_id or "",
            data=to_dict(outcome),
            metadata={"transaction_id": outcome.transaction_id} if outcome.transaction_id else {},
        )

    def on_operation_result(self, outcome: OperationOutcome) -> None:
        event = self.to_event(outcome)
        value = json.dumps(to_dict(event), ensure_ascii=False).encode("utf-8")
        key = outcome.card_id.encode("utf-8") if outcome.card_id else None

        self.producer.produce(
            topic=self.topic,
            key=key,
            value=value,
            callback=self._delivery_callback,
        )
        self.stats.sent += 1
        self.producer.poll(0)

    def flush(self, timeout: float = 30.0) -> None:
        """Flush pending messages."""
        self.producer.flush(timeout)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
