"""
Unit Tests for SQLiteExecutor
=============================
"""

import pytest

from dealer_query.exceptions import ExecutionError
from dealer_query.executor import SQLiteExecutor
from dealer_query.models import SAFE_DEFAULT_SQL, Filter, Intent, SqlStatement
from dealer_query.sample_data import SAMPLE_VEHICLES
from dealer_query.stages.synthesizer import build_statement


class TestLoading:
    """Tests for table creation and seeding."""

    def test_new_database_is_empty(self) -> None:
        executor = SQLiteExecutor()
        try:
            assert executor.is_empty() is True
        finally:
            executor.close()

    def test_load_sample_inventory(self) -> None:
        executor = SQLiteExecutor()
        try:
            assert executor.load(SAMPLE_VEHICLES) == len(SAMPLE_VEHICLES)
            assert executor.is_empty() is False
        finally:
            executor.close()

    def test_unknown_keys_ignored(self) -> None:
        executor = SQLiteExecutor()
        try:
            executor.load([{"make": "Kia", "model": "Soul", "dealer_cost": 1}])
            rows = executor.execute(SqlStatement(sql=SAFE_DEFAULT_SQL, intent=Intent()))
            assert rows[0]["make"] == "Kia"
            assert "dealer_cost" not in rows[0]
        finally:
            executor.close()


class TestExecution:
    """Tests for running statements."""

    def test_text_form(self, executor: SQLiteExecutor) -> None:
        statement = SqlStatement(
            sql="SELECT COUNT(*) FROM vehicles WHERE make = 'Jeep'", intent=Intent()
        )
        assert executor.execute(statement) == [{"COUNT(*)": 3}]

    def test_parameterized_form_preferred(self, executor: SQLiteExecutor) -> None:
        """Test that the bound form runs when the statement carries one."""
        intent = Intent(task="list", filters=(Filter("make", "=", "Toyota"),))
        statement = build_statement(intent)
        rows = executor.execute(statement)
        assert sorted(row["model"] for row in rows) == ["Camry", "Tacoma"]

    def test_numeric_bounds_bound_as_numbers(self, executor: SQLiteExecutor) -> None:
        intent = Intent(task="count", filters=(Filter("price_cents", "<", "2000000"),))
        assert executor.execute(build_statement(intent)) == [{"COUNT(*)": 1}]

    def test_rows_are_plain_dicts(self, executor: SQLiteExecutor) -> None:
        rows = executor.execute(SqlStatement(sql=SAFE_DEFAULT_SQL, intent=Intent()))
        assert len(rows) == 10
        assert all(isinstance(row, dict) for row in rows)

    def test_sqlite_error_wrapped(self, executor: SQLiteExecutor) -> None:
        statement = SqlStatement(sql="SELECT nonexistent FROM vehicles", intent=Intent())
        with pytest.raises(ExecutionError, match="SQL execution error"):
            executor.execute(statement)
