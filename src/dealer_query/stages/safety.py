"""
Query Safety Filter
===================

Last-resort coarse gate on a generated statement. It scans text rather than
parsing grammar, so it is a safety net and not a proof of safety; column
whitelisting happens earlier, when the synthesizer builds conditions.

Denied keywords match as whole words anywhere in the statement, quoted values
included: ``'insert note here'`` is rejected, while ``updated_at`` and
``'%DROPPED%'`` pass.
"""

import re

import structlog

from dealer_query.models import SafetyResult
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor

logger = structlog.get_logger(__name__)

_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")


class QuerySafetyFilter:
    """Stateless validator for a single SQL statement."""

    STRUCTURAL_PATTERNS = [
        (r";\s*\S", "Multiple statements detected"),
        (r"--|/\*", "SQL comment detected (potential injection)"),
        (r"\bEXEC(?:UTE)?\s*\(", "Dynamic SQL execution detected"),
    ]

    def __init__(self, schema: SchemaDescriptor | None = None) -> None:
        self.schema = schema or VEHICLES_SCHEMA
        self._keyword_patterns = [
            (keyword, re.compile(rf"\b{keyword}\b"))
            for keyword in self.schema.denied_keywords
        ]

    @property
    def name(self) -> str:
        return "query_safety_filter"

    def validate(self, sql: str) -> SafetyResult:
        """
        Check a statement against the keyword denylist and structural rules.

        Args:
            sql: Statement text to check

        Returns:
            SafetyResult; when invalid, ``error`` names the first violation
        """
        if not isinstance(sql, str) or not sql.strip():
            return SafetyResult(valid=False, error="Empty SQL statement", violations=("empty",))

        upper_sql = sql.upper()
        # Structure is judged outside quoted values; keywords are not
        bare_sql = _STRING_LITERAL.sub("''", sql).rstrip().rstrip(";")
        violations = []

        for keyword, pattern in self._keyword_patterns:
            if pattern.search(upper_sql):
                violations.append(f"Dangerous keyword detected: {keyword}")

        for pattern, description in self.STRUCTURAL_PATTERNS:
            if re.search(pattern, bare_sql, re.IGNORECASE):
                violations.append(description)

        if not upper_sql.lstrip().startswith("SELECT"):
            violations.append("Only SELECT statements are allowed")

        table = self.schema.table.upper()
        for referenced in re.findall(r"\b(?:FROM|JOIN)\s+([\w.\"`\[\]]+)", bare_sql.upper()):
            if referenced.strip("\"`[]") != table:
                violations.append(f"Unknown relation referenced: {referenced.lower()}")

        if violations:
            logger.warning("statement_rejected", sql=sql, violations=violations)
            return SafetyResult(valid=False, error=violations[0], violations=tuple(violations))

        return SafetyResult(valid=True)


def validate_sql(sql: str, schema: SchemaDescriptor | None = None) -> SafetyResult:
    """Module-level shortcut for a one-off check."""
    return QuerySafetyFilter(schema).validate(sql)
