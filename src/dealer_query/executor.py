"""
Query Executor
==============

Execution service the pipeline hands a safe statement to. The SQLite
implementation runs in-process against a table created from the schema
descriptor.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Iterable

import structlog

from dealer_query.exceptions import ExecutionError
from dealer_query.models import Row, SqlStatement
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor

logger = structlog.get_logger(__name__)


class QueryExecutor(ABC):
    """Runs a statement and returns rows as column → value mappings."""

    @abstractmethod
    def execute(self, statement: SqlStatement) -> list[Row]:
        """
        Execute a statement.

        Raises:
            ExecutionError: If the statement cannot be executed
        """
        pass


class SQLiteExecutor(QueryExecutor):
    """
    SQLite-backed executor.

    Runs the parameterized form when the statement has one and the text
    form otherwise. A single connection is shared behind a lock so the
    executor can be used from request threads.
    """

    def __init__(
        self,
        database_path: str = ":memory:",
        schema: SchemaDescriptor | None = None,
    ) -> None:
        self.database_path = database_path
        self.schema = schema or VEHICLES_SCHEMA
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(database_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._create_table()

    def _create_table(self) -> None:
        with self._lock:
            self._conn.execute(self.schema.create_table_sql())
            self._conn.commit()

    def is_empty(self) -> bool:
        with self._lock:
            row = self._conn.execute(f"SELECT COUNT(*) FROM {self.schema.table}").fetchone()
        return row[0] == 0

    def load(self, vehicles: Iterable[Row]) -> int:
        """Insert vehicles; unknown keys are ignored. Returns rows inserted."""
        columns = self.schema.columns
        placeholders = ", ".join("?" for _ in columns)
        insert = f"INSERT INTO {self.schema.table} ({', '.join(columns)}) VALUES ({placeholders})"
        values = [tuple(vehicle.get(column) for column in columns) for vehicle in vehicles]
        with self._lock:
            self._conn.executemany(insert, values)
            self._conn.commit()
        logger.info("inventory_loaded", count=len(values), table=self.schema.table)
        return len(values)

    def execute(self, statement: SqlStatement) -> list[Row]:
        if statement.is_parameterized:
            sql, params = statement.parameterized_sql, statement.params
        else:
            sql, params = statement.sql, ()

        try:
            with self._lock:
                cursor = self._conn.execute(sql, params)
                rows = [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise ExecutionError(f"SQL execution error: {e!s}") from e

        logger.debug("statement_executed", sql=sql, row_count=len(rows))
        return rows

    def close(self) -> None:
        with self._lock:
            self._conn.close()
