"""Configuration management for card-ledger."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from card_ledger.exceptions import ConfigurationError

# Process-wide policy limits, identical for every card.
MAX_SINGLE_DEBIT = Decimal("50000")
DAILY_DEBIT_LIMIT = Decimal("20000")
DAILY_CREDIT_LIMIT = Decimal("50000")
MAX_SINGLE_CREDIT = Decimal("50000")


@dataclass(frozen=True)
class LedgerLimits:
    """Single-operation and daily caps applied to every card."""

    max_single_debit: Decimal = MAX_SINGLE_DEBIT
    daily_debit_limit: Decimal = DAILY_DEBIT_LIMIT
    daily_credit_limit: Decimal = DAILY_CREDIT_LIMIT
    max_single_credit: Decimal = MAX_SINGLE_CREDIT

    def __post_init__(self) -> None:
        for name in ("max_single_debit", "daily_debit_limit", "daily_credit_limit", "max_single_credit"):
            value = getattr(self, name)
            if not isinstance(value, Decimal) or not value.is_finite() or value <= 0:
                raise ConfigurationError(f"{name} must be a positive Decimal, got {value!r}")


@dataclass
class KafkaConfig:
    """Kafka producer configuration for the audit topic."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    # Keeps a card's events in commit order across producer retries; needs acks=all
    idempotent: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        conf: dict[str, Any] = {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }
        if self.idempotent and self.acks == "all":
            conf["enable.idempotence"] = True
        return conf


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "card_ledger"
    user: str = "postgres"
    password: str = "postgres"
    connect_timeout: int = 5

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            f"?connect_timeout={self.connect_timeout}"
        )


AUDIT_SINKS = ("none", "console", "json", "kafka")


@dataclass
class AuditConfig:
    """Where operation outcomes are reported."""

    sink: str = "none"
    json_path: Path = field(default_factory=lambda: Path("output") / "ledger_audit.jsonl")
    topic: str = "ledger.card-operations"

    def __post_init__(self) -> None:
        if self.sink not in AUDIT_SINKS:
            raise ConfigurationError(f"Unknown audit sink {self.sink!r}; expected one of {AUDIT_SINKS}")


@dataclass
class LedgerConfig:
    """Main configuration for card-ledger."""

    limits: LedgerLimits = field(default_factory=LedgerLimits)
    max_commit_attempts: int = 5
    serialize_per_card: bool = False
    lock_timeout_seconds: float = 5.0
    card_number_attempts: int = 20
    card_validity_years: int = 10
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    seed: int | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_commit_attempts < 1:
            raise ConfigurationError("max_commit_attempts must be at least 1")
        if self.card_number_attempts < 1:
            raise ConfigurationError("card_number_attempts must be at least 1")
        if not self.lock_timeout_seconds > 0:
            raise ConfigurationError("lock_timeout_seconds must be positive")
        if self.card_validity_years < 1:
            raise ConfigurationError("card_validity_years must be at least 1")

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        def _decimal(name: str, default: Decimal) -> Decimal:
            raw = os.getenv(name)
            if raw is None:
                return default
            try:
                return Decimal(raw)
            except InvalidOperation as exc:
                raise ConfigurationError(f"{name} is not a decimal: {raw!r}") from exc

        def _int(name: str, default: int | None) -> int | None:
            raw = os.getenv(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{name} is not an integer: {raw!r}") from exc

        def _float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if raw is None:
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{name} is not a number: {raw!r}") from exc

        limits = LedgerLimits(
            max_single_debit=_decimal("LEDGER_MAX_SINGLE_DEBIT", MAX_SINGLE_DEBIT),
            daily_debit_limit=_decimal("LEDGER_DAILY_DEBIT_LIMIT", DAILY_DEBIT_LIMIT),
            daily_credit_limit=_decimal("LEDGER_DAILY_CREDIT_LIMIT", DAILY_CREDIT_LIMIT),
            max_single_credit=_decimal("LEDGER_MAX_SINGLE_CREDIT", MAX_SINGLE_CREDIT),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=_int("POSTGRES_PORT", 5432),
            database=os.getenv("POSTGRES_DB", "card_ledger"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        audit = AuditConfig(
            sink=os.getenv("AUDIT_SINK", "none"),
            json_path=Path(os.getenv("AUDIT_JSON_PATH", "output/ledger_audit.jsonl")),
            topic=os.getenv("AUDIT_TOPIC", "ledger.card-operations"),
        )

        return cls(
            limits=limits,
            max_commit_attempts=_int("LEDGER_MAX_COMMIT_ATTEMPTS", 5),
            serialize_per_card=os.getenv("LEDGER_SERIALIZE_PER_CARD", "false").lower() == "true",
            lock_timeout_seconds=_float("LEDGER_LOCK_TIMEOUT", 5.0),
            card_number_attempts=_int("LEDGER_CARD_NUMBER_ATTEMPTS", 20),
            postgres=postgres,
            kafka=kafka,
            audit=audit,
            seed=_int("SEED", None),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
