"""Exceptions raised by the database engine."""

from __future__ import annotations

from collections.abc import Iterable


class DatabaseError(Exception):
    """Base class for every error the engine reports."""


class InternalError(DatabaseError):
    def __init__(self, context: str) -> None:
        self.context = context
        super().__init__(f"Internal Error: {context}.")


class TableExistsError(DatabaseError):
    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table {table} already exists.")


class TupleTooBigError(DatabaseError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Tuple is too big. Expected {expected} bytes, but got {actual} bytes."
        )


class TupleExistsError(DatabaseError):
    def __init__(self) -> None:
        super().__init__("Tuple already exists")


class TupleNotFoundError(DatabaseError):
    def __init__(self) -> None:
        super().__init__("Tuple not found.")


class TableNotFoundError(DatabaseError):
    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table {table} not found.")


class ColumnNotFoundError(DatabaseError):
    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"Column {column} not found.")


class UnimplementedError(DatabaseError):
    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"Not yet implemented: {what}.")


class UnsupportedError(DatabaseError):
    def __init__(self, context: str) -> None:
        self.context = context
        super().__init__(f"Unsupported: {context}.")


class ExpectedError(DatabaseError):
    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected}, but got {actual}.")


def _type_list(types: Iterable[object]) -> str:
    return "[" + ", ".join(str(t) for t in types) + "]"


class TypeMismatchError(DatabaseError):
    def __init__(self, expected: Iterable[object], actual: Iterable[object]) -> None:
        self.expected = list(expected)
        self.actual = list(actual)
        super().__init__(
            f"Type mismatch: Expected {_type_list(self.expected)}, "
            f"but got {_type_list(self.actual)}."
        )


class TransactionActiveError(DatabaseError):
    def __init__(self) -> None:
        super().__init__("Writing transaction already active.")


class NoActiveTransactionError(DatabaseError):
    def __init__(self) -> None:
        super().__init__("No active transaction.")


class DivisionByZeroError(DatabaseError):
    def __init__(self) -> None:
        super().__init__("Division by zero.")


class DuplicateKeyError(DatabaseError):
    def __init__(self, key: str, column: str) -> None:
        self.key = key
        self.column = column
        super().__init__(f"Duplicate key {key} in column {column}.")


class NullNotAllowedError(DatabaseError):
    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"NULL is not allowed in column {column}.")