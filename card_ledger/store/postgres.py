"""PostgreSQL ledger store (psycopg 3).

Each compare-and-save runs inside one connection transaction: the
versioned ``UPDATE`` of the card row and the ``INSERT`` of its transaction
record commit together or roll back together.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Iterator

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row

from card_ledger.config import PostgresConfig
from card_ledger.exceptions import (
    CardNotFoundError,
    DuplicateCardNumberError,
    OwnerNotFoundError,
    StoreUnavailableError,
    VersionConflictError,
)
from card_ledger.models import CardState, Owner, TransactionRecord, TransactionType
from card_ledger.store.base import LedgerStore

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS owners (
    owner_id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS cards (
    card_id TEXT PRIMARY KEY,
    card_number CHAR(16) NOT NULL UNIQUE,
    owner_id TEXT NOT NULL REFERENCES owners (owner_id),
    card_holder_name TEXT NOT NULL,
    card_type TEXT NOT NULL,
    active BOOLEAN NOT NULL,
    total_balance NUMERIC(15, 2) NOT NULL CHECK (total_balance >= 0),
    daily_debited NUMERIC(15, 2) NOT NULL,
    daily_credited NUMERIC(15, 2) NOT NULL,
    last_reset_date DATE NOT NULL,
    issue_date DATE NOT NULL,
    expiry_date DATE NOT NULL,
    version INTEGER NOT NULL,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_cards_owner ON cards (owner_id);

CREATE TABLE IF NOT EXISTS card_transactions (
    seq BIGSERIAL PRIMARY KEY,
    transaction_id TEXT NOT NULL UNIQUE,
    card_id TEXT NOT NULL,
    transaction_type TEXT NOT NULL,
    amount NUMERIC(15, 2) NOT NULL CHECK (amount > 0),
    card_type TEXT NOT NULL,
    description TEXT NOT NULL,
    balance_after NUMERIC(15, 2),
    "timestamp" TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_card_transactions_card ON card_transactions (card_id, seq);
"""

CARD_COLUMNS = (
    "card_id, card_number, owner_id, card_holder_name, card_type, active, total_balance, "
    "daily_debited, daily_credited, last_reset_date, issue_date, expiry_date, version, updated_at"
)

TRANSACTION_COLUMNS = (
    'transaction_id, card_id, transaction_type, amount, card_type, description, balance_after, "timestamp"'
)

INSERT_CARD_SQL = f"""
INSERT INTO cards ({CARD_COLUMNS})
VALUES (%(card_id)s, %(card_number)s, %(owner_id)s, %(card_holder_name)s, %(card_type)s, %(active)s,
        %(total_balance)s, %(daily_debited)s, %(daily_credited)s, %(last_reset_date)s, %(issue_date)s,
        %(expiry_date)s, %(version)s, %(updated_at)s)
"""

UPDATE_CARD_SQL = """
UPDATE cards
SET card_holder_name = %(card_holder_name)s,
    active = %(active)s,
    total_balance = %(total_balance)s,
    daily_debited = %(daily_debited)s,
    daily_credited = %(daily_credited)s,
    last_reset_date = %(last_reset_date)s,
    version = version + 1,
    updated_at = %(updated_at)s
WHERE card_id = %(card_id)s AND version = %(version)s
"""

INSERT_TRANSACTION_SQL = f"""
INSERT INTO card_transactions ({TRANSACTION_COLUMNS})
VALUES (%(transaction_id)s, %(card_id)s, %(transaction_type)s, %(amount)s, %(card_type)s,
        %(description)s, %(balance_after)s, %(timestamp)s)
"""


class PostgresLedgerStore(LedgerStore):
    """Ledger store backed by PostgreSQL."""

    def __init__(
        self,
        config: PostgresConfig | str,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        """Initialize the store.

        Parameters
        ----------
        config : PostgresConfig | str
            Connection configuration or a connection string.
        connect : Callable | None
            Connection factory, ``psycopg.connect`` by default.
        """
        self.conninfo = config.connection_string if isinstance(config, PostgresConfig) else config
        self._connect = connect or psycopg.connect

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        """Open a connection whose block is one transaction."""
        try:
            with self._connect(self.conninfo) as conn:
                yield conn
        except psycopg.OperationalError as exc:
            logger.error("PostgreSQL unavailable: %s", exc)
            raise StoreUnavailableError(f"PostgreSQL unavailable: {exc}") from exc

    def create_schema(self) -> None:
        """Create the ledger tables if they do not exist."""
        with self._connection() as conn:
            conn.execute(SCHEMA_SQL)
        logger.info("Ledger schema ready")

    def add_owner(self, owner: Owner) -> None:
        """Insert or rename an owner."""
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO owners (owner_id, name) VALUES (%s, %s) "
                "ON CONFLICT (owner_id) DO UPDATE SET name = EXCLUDED.name",
                (owner.owner_id, owner.name),
            )

    def get_owner(self, owner_id: str) -> Owner | None:
        with self._connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute("SELECT owner_id, name FROM owners WHERE owner_id = %s", (owner_id,))
            row = cur.fetchone()
        return Owner(owner_id=row["owner_id"], name=row["name"]) if row else None

    def load(self, card_id: str) -> CardState | None:
        with self._connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(f"SELECT {CARD_COLUMNS} FROM cards WHERE card_id = %s", (card_id,))  # noqa: S608
            row = cur.fetchone()
        return _row_to_card(row) if row else None

    def card_number_exists(self, card_number: str) -> bool:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute("SELECT 1 FROM cards WHERE card_number = %s", (card_number,))
            return cur.fetchone() is not None

    def insert(self, state: CardState) -> CardState:
        try:
            with self._connection() as conn, conn.cursor() as cur:
                cur.execute(INSERT_CARD_SQL, _card_params(state))
        except pg_errors.UniqueViolation as exc:
            raise DuplicateCardNumberError(f"Card ending {state.card_number[-4:]} already issued") from exc
        except pg_errors.ForeignKeyViolation as exc:
            raise OwnerNotFoundError(state.owner_id) from exc
        return state

    def compare_and_save(
        self,
        state: CardState,
        record: TransactionRecord | None = None,
    ) -> CardState:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(UPDATE_CARD_SQL, _card_params(state))
            if cur.rowcount == 0:
                cur.execute("SELECT version FROM cards WHERE card_id = %s", (state.card_id,))
                if cur.fetchone() is None:
                    raise CardNotFoundError(state.card_id)
                raise VersionConflictError(f"Card {state.card_id} changed since version {state.version}")
            if record is not None:
                cur.execute(INSERT_TRANSACTION_SQL, _transaction_params(record))

        return replace(state, version=state.version + 1)

    def delete(self, card_id: str) -> bool:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM cards WHERE card_id = %s", (card_id,))
            return cur.rowcount > 0

    def cards_for_owner(self, owner_id: str) -> list[CardState]:
        with self._connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"SELECT {CARD_COLUMNS} FROM cards WHERE owner_id = %s ORDER BY issue_date, card_id",  # noqa: S608
                (owner_id,),
            )
            rows = cur.fetchall()
        return [_row_to_card(row) for row in rows]

    def transactions_for_card(
        self,
        card_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        query = f"SELECT {TRANSACTION_COLUMNS} FROM card_transactions WHERE card_id = %s"  # noqa: S608
        params: list[Any] = [card_id]
        if transaction_type is not None:
            query += " AND transaction_type = %s"
            params.append(transaction_type.value)
        query += " ORDER BY seq"

        with self._connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            rows = cur.fetchall()
        return [_row_to_transaction(row) for row in rows]

    def transactions_for_owner(
        self,
        owner_id: str,
        transaction_type: TransactionType | None = None,
    ) -> list[TransactionRecord]:
        query = (
            "SELECT t.transaction_id, t.card_id, t.transaction_type, t.amount, t.card_type, "
            't.description, t.balance_after, t."timestamp" '
            "FROM card_transactions t JOIN cards c ON c.card_id = t.card_id WHERE c.owner_id = %s"
        )
        params: list[Any] = [owner_id]
        if transaction_type is not None:
            query += " AND t.transaction_type = %s"
            params.append(transaction_type.value)
        query += " ORDER BY t.card_id, t.seq"

        with self._connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            rows = cur.fetchall()
        return [_row_to_transaction(row) for row in rows]


def _card_params(state: CardState) -> dict[str, Any]:
    return {
        "card_id": state.card_id,
        "card_number": state.card_number,
        "owner_id": state.owner_id,
        "card_holder_name": state.card_holder_name,
        "card_type": state.card_type,
        "active": state.active,
        "total_balance": state.total_balance,
        "daily_debited": state.daily_debited,
        "daily_credited": state.daily_credited,
        "last_reset_date": state.last_reset_date,
        "issue_date": state.issue_date,
        "expiry_date": state.expiry_date,
        "version": state.version,
        "updated_at": state.updated_at,
    }


def _transaction_params(record: TransactionRecord) -> dict[str, Any]:
    return {
        "transaction_id": record.transaction_id,
        "card_id": record.card_id,
        "transaction_type": record.transaction_type.value,
        "amount": record.amount,
        "card_type": record.card_type,
        "description": record.description,
        "balance_after": record.balance_after,
        "timestamp": record.timestamp,
    }


def _row_to_card(row: dict[str, Any]) -> CardState:
    return CardState(
        card_id=row["card_id"],
        card_number=row["card_number"].strip(),
        owner_id=row["owner_id"],
        card_type=row["card_type"],
        active=row["active"],
        total_balance=row["total_balance"],
        daily_debited=row["daily_debited"],
        daily_credited=row["daily_credited"],
        last_reset_date=row["last_reset_date"],
        issue_date=row["issue_date"],
        expiry_date=row["expiry_date"],
        card_holder_name=row["card_holder_name"],
        version=row["version"],
        updated_at=row["updated_at"],
    )


def _row_to_transaction(row: dict[str, Any]) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=row["transaction_id"],
        card_id=row["card_id"],
        transaction_type=TransactionType(row["transaction_type"]),
        amount=row["amount"],
        card_type=row["card_type"],
        description=row["description"],
        timestamp=row["timestamp"],
        balance_after=row["balance_after"],
    )
