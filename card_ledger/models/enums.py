"""Enumeration types for ledger entities and outcomes."""

from enum import Enum


class TransactionType(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class OperationType(str, Enum):
    ISSUE = "ISSUE"
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    UPDATE = "UPDATE"
    ACTIVATE = "ACTIVATE"
    DEACTIVATE = "DEACTIVATE"
    DELETE = "DELETE"


class OperationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    CONFLICT = "CONFLICT"
    CONCURRENCY_EXHAUSTED = "CONCURRENCY_EXHAUSTED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    UNEXPECTED = "UNEXPECTED"


class LimitKind(str, Enum):
    MAX_SINGLE_DEBIT = "MAX_SINGLE_DEBIT"
    DAILY_DEBIT = "DAILY_DEBIT"
    MAX_SINGLE_CREDIT = "MAX_SINGLE_CREDIT"
    DAILY_CREDIT = "DAILY_CREDIT"
