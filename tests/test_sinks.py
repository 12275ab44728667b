"""Tests for audit sinks."""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from card_ledger.config import AuditConfig, KafkaConfig, LedgerConfig
from card_ledger.exceptions import InsufficientBalanceError, SinkError
from card_ledger.ledger import LedgerEngine
from card_ledger.models import ErrorKind, OperationOutcome, OperationStatus, OperationType
from card_ledger.sinks import (
    ConsoleSink,
    JsonLinesSink,
    KafkaSink,
    NullSink,
    create_audit_sink,
    dispatch_outcome,
)
from card_ledger.sinks.kafka import ProducerStats


@pytest.fixture
def success() -> OperationOutcome:
    return OperationOutcome(
        operation=OperationType.DEBIT,
        card_id="card-001",
        status=OperationStatus.SUCCESS,
        timestamp=datetime(2026, 10, 19, 10, 30),
        amount=Decimal("12.50"),
        message="Debited 12.50",
        transaction_id="txn-001",
    )


@pytest.fixture
def failure() -> OperationOutcome:
    return OperationOutcome(
        operation=OperationType.CREDIT,
        card_id="card-001",
        status=OperationStatus.FAILED,
        timestamp=datetime(2026, 10, 19, 10, 31),
        amount=Decimal("60000.00"),
        error_kind=ErrorKind.LIMIT_EXCEEDED,
        message="Amount exceeds max credit limit of 50,000.00",
    )


class TestDispatchOutcome:
    """Tests for dispatch_outcome."""

    def test_no_sink(self, success: OperationOutcome) -> None:
        dispatch_outcome(None, success)

    def test_delivers(self, success: OperationOutcome, sink) -> None:
        dispatch_outcome(sink, success)

        assert sink.outcomes == [success]

    def test_sink_errors_are_logged(
        self, success: OperationOutcome, exploding_sink, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="card_ledger.sinks.base"):
            dispatch_outcome(exploding_sink, success)

        assert exploding_sink.calls == 1
        assert "Audit sink ExplodingSink failed" in caplog.text

    def test_null_sink(self, success: OperationOutcome) -> None:
        sink = NullSink()

        assert sink.on_operation_result(success) is None
        sink.close()


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_prints_json_line(self, success: OperationOutcome, capsys: pytest.CaptureFixture) -> None:
        ConsoleSink().on_operation_result(success)

        data = json.loads(capsys.readouterr().out)
        assert data["operation"] == "DEBIT"
        assert data["amount"] == "12.50"
        assert data["timestamp"] == "2026-10-19T10:30:00"

    def test_pretty(self, success: OperationOutcome, capsys: pytest.CaptureFixture) -> None:
        ConsoleSink(pretty=True).on_operation_result(success)

        assert "\n  " in capsys.readouterr().out

    def test_failures_only(
        self, success: OperationOutcome, failure: OperationOutcome, capsys: pytest.CaptureFixture
    ) -> None:
        console = ConsoleSink(failures_only=True)
        console.on_operation_result(success)
        console.on_operation_result(failure)

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["error_kind"] == "LIMIT_EXCEEDED"

    def test_close_prints_summary(
        self, success: OperationOutcome, failure: OperationOutcome, capsys: pytest.CaptureFixture
    ) -> None:
        console = ConsoleSink(failures_only=True)
        console.on_operation_result(success)
        console.on_operation_result(failure)
        capsys.readouterr()

        console.close()

        out = capsys.readouterr().out
        assert "FAILED: 1" in out
        assert "SUCCESS: 1" in out


class TestJsonLinesSink:
    """Tests for JsonLinesSink."""

    def test_appends_lines(
        self, tmp_path: Path, success: OperationOutcome, failure: OperationOutcome
    ) -> None:
        sink = JsonLinesSink(tmp_path / "audit" / "ledger.jsonl")
        sink.on_operation_result(success)
        sink.on_operation_result(failure)

        entries = sink.read_all()
        assert sink.count == 2
        assert [e["status"] for e in entries] == ["SUCCESS", "FAILED"]
        assert entries[0]["transaction_id"] == "txn-001"
        assert entries[1]["transaction_id"] is None

    def test_survives_reopen(self, tmp_path: Path, success: OperationOutcome) -> None:
        path = tmp_path / "ledger.jsonl"
        JsonLinesSink(path).on_operation_result(success)
        JsonLinesSink(path).on_operation_result(success)

        assert len(JsonLinesSink(path).read_all()) == 2

    def test_read_missing_file(self, tmp_path: Path) -> None:
        assert JsonLinesSink(tmp_path / "none.jsonl").read_all() == []

    def test_write_error(self, tmp_path: Path, success: OperationOutcome) -> None:
        sink = JsonLinesSink(tmp_path / "ledger.jsonl")
        sink.path = tmp_path

        with pytest.raises(SinkError):
            sink.on_operation_result(success)
        assert sink.count == 0


class TestProducerStats:
    """Tests for ProducerStats."""

    def test_success_rate(self) -> None:
        assert ProducerStats(sent=10, delivered=9, failed=1).success_rate == 0.9
        assert ProducerStats().success_rate == 0.0

    def test_pending(self) -> None:
        assert ProducerStats(sent=10, delivered=6, failed=1).pending == 3


class TestKafkaSinkMocked:
    """Tests for KafkaSink using mocks (no actual Kafka connection)."""

    @patch("card_ledger.sinks.kafka.Producer")
    def test_init_with_string(self, mock_producer_class: MagicMock) -> None:
        sink = KafkaSink("localhost:9092")

        assert sink.config.bootstrap_servers == "localhost:9092"
        assert sink.topic == "ledger.card-operations"
        mock_producer_class.assert_called_once_with(KafkaConfig().to_dict())

    @patch("card_ledger.sinks.kafka.Producer")
    def test_publishes_event_keyed_by_card(
        self, mock_producer_class: MagicMock, success: OperationOutcome
    ) -> None:
        mock_producer = mock_producer_class.return_value
        sink = KafkaSink(KafkaConfig(bootstrap_servers="kafka:9092"), topic="audit")

        sink.on_operation_result(success)

        kwargs = mock_producer.produce.call_args.kwargs
        assert kwargs["topic"] == "audit"
        assert kwargs["key"] == b"card-001"
        event = json.loads(kwargs["value"])
        assert event["event_type"] == "card.debit.success"
        assert event["source"] == "card-ledger"
        assert event["subject"] == "card-001"
        assert event["data"]["amount"] == "12.50"
        assert event["metadata"] == {"transaction_id": "txn-001"}
        assert sink.stats.sent == 1
        mock_producer.poll.assert_called_with(0)

    @patch("card_ledger.sinks.kafka.Producer")
    def test_issue_failure_has_no_key(self, mock_producer_class: MagicMock) -> None:
        outcome = OperationOutcome(
            operation=OperationType.ISSUE,
            card_id=None,
            status=OperationStatus.FAILED,
            timestamp=datetime(2026, 10, 19, 10, 30),
            error_kind=ErrorKind.NOT_FOUND,
        )
        sink = KafkaSink("localhost:9092")

        sink.on_operation_result(outcome)

        kwargs = mock_producer_class.return_value.produce.call_args.kwargs
        assert kwargs["key"] is None
        assert json.loads(kwargs["value"])["event_type"] == "card.issue.failed"

    @patch("card_ledger.sinks.kafka.Producer")
    def test_delivery_callback(self, mock_producer_class: MagicMock) -> None:
        sink = KafkaSink("localhost:9092")
        msg = MagicMock()
        msg.topic.return_value = "ledger.card-operations"
        msg.partition.return_value = 0
        msg.offset.return_value = 7
        msg.key.return_value = b"card-001"

        sink._delivery_callback(None, msg)
        sink._delivery_callback("broker down", msg)

        assert sink.stats.delivered == 1
        assert sink.stats.failed == 1

    @patch("card_ledger.sinks.kafka.Producer")
    def test_close_flushes(self, mock_producer_class: MagicMock) -> None:
        sink = KafkaSink("localhost:9092")

        sink.close()

        mock_producer_class.return_value.flush.assert_called_once_with(30.0)


class TestCreateAuditSink:
    """Tests for create_audit_sink."""

    def test_default_is_null(self) -> None:
        assert isinstance(create_audit_sink(LedgerConfig()), NullSink)

    def test_console(self) -> None:
        assert isinstance(create_audit_sink(LedgerConfig(audit=AuditConfig(sink="console"))), ConsoleSink)

    def test_json(self, tmp_path: Path) -> None:
        config = LedgerConfig(audit=AuditConfig(sink="json", json_path=tmp_path / "a.jsonl"))

        sink = create_audit_sink(config)

        assert isinstance(sink, JsonLinesSink)
        assert sink.path == tmp_path / "a.jsonl"

    @patch("card_ledger.sinks.kafka.Producer")
    def test_kafka(self, mock_producer_class: MagicMock) -> None:
        config = LedgerConfig(audit=AuditConfig(sink="kafka", topic="ops"))

        sink = create_audit_sink(config)

        assert isinstance(sink, KafkaSink)
        assert sink.topic == "ops"


class TestEngineWithJsonSink:
    """End to end: engine outcomes land in the JSON Lines file."""

    def test_engine_writes_audit_trail(self, store, card, clock, tmp_path: Path) -> None:
        sink = JsonLinesSink(tmp_path / "audit.jsonl")
        engine = LedgerEngine(store, audit_sink=sink, clock=clock)

        engine.debit(card.card_id, "10")
        with pytest.raises(InsufficientBalanceError):
            engine.debit(card.card_id, "999999")

        entries = sink.read_all()
        assert [e["status"] for e in entries] == ["SUCCESS", "FAILED"]
        assert entries[1]["error_kind"] == "INSUFFICIENT_BALANCE"
