"""Producers that expose common Python data sources as LazyIterators.

Nothing is opened, read or executed until the first element is requested, and
every adapter releases what it opened when the iterator is closed.
"""
from __future__ import annotations

import csv
import logging
import os
from contextlib import ExitStack
from typing import Any, Iterable, Optional, Sequence, TextIO, Union

from .iterator import END_OF_DATA, LazyIterator

logger = logging.getLogger(__name__)


class IterableIterator(LazyIterator):
    """Serve the items of any Python iterable, in order."""

    def __init__(self, iterable: Iterable[Any]):
        super().__init__()
        self._iterable = iterable
        self._it = None

    def _compute_next(self) -> Any:
        if self._it is None:
            self._it = iter(self._iterable)
        return next(self._it, END_OF_DATA)

    def _release(self) -> None:
        # generators hold frames (and maybe open files) until closed
        target = self._it if self._it is not None else self._iterable
        closer = getattr(target, "close", None)
        if callable(closer):
            closer()


class CsvIterator(LazyIterator):
    """Serve each record of a delimited-text source as a list of strings.

    ``source`` is either a path, opened on the first advance and closed on
    release, or an already open text stream, which stays owned by the caller.
    A malformed record is a terminal error.
    """

    def __init__(
            self,
            source: Union[str, os.PathLike, TextIO],
            *,
            delimiter: Optional[str] = None,
            dialect: str = "excel",
            check_field_count: bool = True,
            encoding: str = "utf-8",
        ):
        super().__init__()
        self._source = source
        self._delimiter = delimiter or os.getenv("CSV_DELIMITER", ",")
        self._dialect = dialect
        self._check_field_count = check_field_count
        self._encoding = encoding
        self._expected_fields: Optional[int] = None
        self._reader = None
        self._stack = ExitStack()

    def _open(self):
        if isinstance(self._source, (str, os.PathLike)):
            stream = self._stack.enter_context(open(self._source, newline="", encoding=self._encoding))
            logger.debug("csv.open path=%s", self._source)
        else:
            stream = self._source
        return csv.reader(stream, dialect=self._dialect, delimiter=self._delimiter, strict=True)

    def _compute_next(self) -> Any:
        if self._reader is None:
            self._reader = self._open()
        record = next(self._reader, END_OF_DATA)
        while record == []:  # blank line
            record = next(self._reader, END_OF_DATA)
        if record is END_OF_DATA or not self._check_field_count:
            return record

        if self._expected_fields is None:
            self._expected_fields = len(record)
        elif len(record) != self._expected_fields:
            raise csv.Error(
                f"line {self._reader.line_num}: wrong number of fields "
                f"(got {len(record)}, expected {self._expected_fields})"
            )
        return record

    def _release(self) -> None:
        self._stack.close()


class CursorIterator(LazyIterator):
    """Serve the rows of a DB-API cursor; closing the iterator closes the cursor."""

    def __init__(self, cursor: Any):
        super().__init__()
        self._cursor = cursor

    def _compute_next(self) -> Any:
        row = self._cursor.fetchone()
        if row is None:
            return END_OF_DATA
        return row

    def _release(self) -> None:
        self._cursor.close()


class QueryIterator(LazyIterator):
    """Run ``sql`` on the first advance and serve the resulting rows."""

    def __init__(self, connection: Any, sql: str, params: Sequence[Any] = ()):
        super().__init__()
        self._connection = connection
        self._sql = sql
        self._params = params
        self._cursor = None

    def _compute_next(self) -> Any:
        if self._cursor is None:
            self._cursor = self._connection.cursor()
            logger.debug("query.execute sql=%r", self._sql)
            self._cursor.execute(self._sql, self._params)
        row = self._cursor.fetchone()
        if row is None:
            return END_OF_DATA
        return row

    def _release(self) -> None:
        if self._cursor is not None:
            self._cursor.close()


def from_iterable(iterable: Iterable[Any]) -> IterableIterator:
    return IterableIterator(iterable)


def from_csv(source, *, delimiter=None, dialect="excel", check_field_count=True,
             encoding="utf-8") -> CsvIterator:
    return CsvIterator(source, delimiter=delimiter, dialect=dialect,
                       check_field_count=check_field_count, encoding=encoding)


def from_cursor(cursor: Any) -> CursorIterator:
    return CursorIterator(cursor)


def from_query(connection: Any, sql: str, params: Sequence[Any] = ()) -> QueryIterator:
    return QueryIterator(connection, sql, params)
