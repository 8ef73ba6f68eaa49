"""
Unit Tests for QuerySafetyFilter
================================

Tests for the keyword denylist and structural checks.
"""

import pytest

from dealer_query.models import SAFE_DEFAULT_SQL
from dealer_query.stages.safety import QuerySafetyFilter, validate_sql

DENIED = ["DROP", "DELETE", "UPDATE", "INSERT", "ALTER", "CREATE", "TRUNCATE"]


class TestDenylist:
    """Tests for mutating keyword rejection."""

    @pytest.mark.parametrize("keyword", DENIED)
    @pytest.mark.parametrize("transform", [str.upper, str.lower, str.title])
    def test_keyword_rejected_in_any_case(self, keyword: str, transform) -> None:
        sql = f"SELECT * FROM vehicles; {transform(keyword)} TABLE vehicles"
        result = QuerySafetyFilter().validate(sql)
        assert result.valid is False

    def test_offending_keyword_named(self) -> None:
        result = QuerySafetyFilter().validate("DROP TABLE vehicles")
        assert result.valid is False
        assert "DROP" in result.error

    def test_keyword_inside_value_rejected(self) -> None:
        """Test that denylisted words are rejected even inside quoted values."""
        result = validate_sql("SELECT * FROM vehicles WHERE description = 'insert note here'")
        assert result.valid is False
        assert "INSERT" in result.error

    def test_updated_at_column_allowed(self) -> None:
        """Test that a whitelisted column containing a keyword is not rejected."""
        result = validate_sql("SELECT * FROM vehicles ORDER BY updated_at DESC LIMIT 10")
        assert result.valid is True

    def test_keyword_prefix_inside_value_allowed(self) -> None:
        """Test that a quoted word merely starting with a keyword passes."""
        result = validate_sql("SELECT * FROM vehicles WHERE description LIKE '%DROPPED%'")
        assert result.valid is True


class TestStructure:
    """Tests for structural rules beyond the denylist."""

    @pytest.mark.parametrize(
        "sql",
        [
            SAFE_DEFAULT_SQL,
            "SELECT COUNT(*) FROM vehicles WHERE make = 'Honda'",
            "SELECT DISTINCT body_style FROM vehicles WHERE make = 'Jeep'",
            "select avg(price_cents) from vehicles;",
            "SELECT * FROM vehicles WHERE location = 'Lot; north -- side'",
        ],
    )
    def test_valid_statements(self, sql: str) -> None:
        assert QuerySafetyFilter().validate(sql).valid is True

    @pytest.mark.parametrize(
        "sql,violation",
        [
            ("SELECT * FROM vehicles; SELECT * FROM vehicles", "Multiple statements"),
            ("SELECT * FROM vehicles -- comment", "comment"),
            ("SELECT * FROM vehicles /* x */", "comment"),
            ("SELECT * FROM users", "Unknown relation"),
            ("SELECT * FROM vehicles JOIN dealers ON 1 = 1", "Unknown relation"),
            ("PRAGMA table_info(vehicles)", "Only SELECT"),
        ],
    )
    def test_rejected_statements(self, sql: str, violation: str) -> None:
        result = QuerySafetyFilter().validate(sql)
        assert result.valid is False
        assert any(violation in v for v in result.violations)

    @pytest.mark.parametrize("sql", ["", "   "])
    def test_empty_statement(self, sql: str) -> None:
        assert QuerySafetyFilter().validate(sql).valid is False
