"""
Query Synthesizer
=================

Turns an Intent into a single SELECT against the vehicles relation.
"""

import json
import re
from dataclasses import replace
from typing import Any

from dealer_query.diagnostics import DiagnosticsObserver, ErrorKind
from dealer_query.llm.base import LLMInterface, strip_code_fences
from dealer_query.models import (
    SAFE_DEFAULT_SQL,
    Aggregate,
    AggregateFunction,
    Filter,
    FilterOperator,
    Intent,
    SqlStatement,
    TaskType,
)
from dealer_query.schema import VEHICLES_SCHEMA, SchemaDescriptor
from dealer_query.stages.base import PipelineStage

_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$")
_RANGE_OPERATORS = {FilterOperator.LT, FilterOperator.GT, FilterOperator.LE, FilterOperator.GE}
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_WORD = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Words that are never column references. Mutating keywords are listed so
# that statements using them reach the safety filter and get rejected there.
SQL_KEYWORDS = frozenset({
    "SELECT", "DISTINCT", "ALL", "FROM", "WHERE", "AND", "OR", "NOT", "IN",
    "LIKE", "IS", "NULL", "BETWEEN", "GROUP", "BY", "HAVING", "ORDER", "ASC",
    "DESC", "LIMIT", "OFFSET", "AS", "CASE", "WHEN", "THEN", "ELSE", "END",
    "TRUE", "FALSE", "ESCAPE", "COLLATE", "NOCASE", "CAST", "INTEGER", "TEXT",
    "REAL", "LOWER", "UPPER", "ROUND", "COALESCE",
    "JOIN", "ON", "UNION", "TABLE", "INTO", "VALUES", "SET", "PRAGMA",
    "DROP", "DELETE", "UPDATE", "INSERT", "ALTER", "CREATE", "TRUNCATE",
})

DEFAULT_DISTINCT_FIELD = "body_style"
DEFAULT_GROUP_FIELD = "make"


def as_number(value: Any) -> int | float | None:
    """Numeric form of a filter value, or None when it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if isinstance(value, float) and value.is_integer() else value
    if isinstance(value, str) and _NUMBER.match(value.strip()):
        number = float(value)
        return int(number) if number.is_integer() else number
    return None


def quote(value: Any) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def render_literal(operator: FilterOperator, value: Any) -> str:
    """Text form of a filter value: range operators leave numbers unquoted."""
    if operator in _RANGE_OPERATORS:
        number = as_number(value)
        if number is not None:
            return str(number)
    return quote(value)


def render_condition(condition: Filter) -> str:
    """``field = 'value'``, ``field < 30000``, ``field LIKE '%v%'``, ``field IN ('a', 'b')``."""
    field, operator, value = condition.field, condition.operator, condition.value
    if operator == FilterOperator.LIKE:
        return f"{field} LIKE {quote(f'%{value}%')}"
    if operator == FilterOperator.IN:
        values = value if isinstance(value, (tuple, list)) else (value,)
        return f"{field} IN ({', '.join(quote(v) for v in values)})"
    return f"{field} {operator.value} {render_literal(operator, value)}"


def _bind(schema: SchemaDescriptor, field: str, value: Any) -> Any:
    if schema.is_numeric(field):
        number = as_number(value)
        if number is not None:
            return number
    return value


def render_parameterized(condition: Filter, schema: SchemaDescriptor) -> tuple[str, list]:
    field, operator, value = condition.field, condition.operator, condition.value
    if operator == FilterOperator.LIKE:
        return f"{field} LIKE ?", [f"%{value}%"]
    if operator == FilterOperator.IN:
        values = value if isinstance(value, (tuple, list)) else (value,)
        placeholders = ", ".join("?" for _ in values)
        return f"{field} IN ({placeholders})", [_bind(schema, field, v) for v in values]
    return f"{field} {operator.value} ?", [_bind(schema, field, value)]


def allowed_filters(intent: Intent, schema: SchemaDescriptor) -> list[Filter]:
    """Filters on whitelisted columns; anything else is silently dropped."""
    return [
        f for f in intent.filters
        if schema.is_column(f.field) and isinstance(f.operator, FilterOperator)
    ]


def sanitize(intent: Intent, schema: SchemaDescriptor) -> Intent:
    """Copy of the intent holding only whitelisted filters, aggregates and sorts."""
    return replace(
        intent,
        filters=tuple(allowed_filters(intent, schema)),
        aggregates=tuple(
            a for a in intent.aggregates
            if schema.is_column(a.field)
            or (a.field == "*" and a.function == AggregateFunction.COUNT)
        ),
        sort=tuple(s for s in intent.sort if schema.is_column(s.field)),
    )


def _aggregate_expression(aggregate: Aggregate) -> str:
    if aggregate.function == AggregateFunction.COUNT and aggregate.field == "*":
        return "COUNT(*)"
    return f"{aggregate.function.value}({aggregate.field})"


def build_statement(
    intent: Intent,
    schema: SchemaDescriptor = VEHICLES_SCHEMA,
    max_limit: int = 100,
) -> SqlStatement:
    """
    Deterministic intent → SQL mapping.

    Renders the text form and an equivalent parameterized form in one pass,
    so the two can never disagree on which conditions were kept.
    """
    clean = sanitize(intent, schema)
    table = schema.table

    conditions, bound_conditions, params = [], [], []
    for condition in clean.filters:
        conditions.append(render_condition(condition))
        fragment, values = render_parameterized(condition, schema)
        bound_conditions.append(fragment)
        params.extend(values)

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    bound_where = f" WHERE {' AND '.join(bound_conditions)}" if bound_conditions else ""
    tail = ""

    distinct_fields = [a.field for a in clean.aggregates if a.function == AggregateFunction.DISTINCT]
    value_aggregates = [a for a in clean.aggregates if a.function != AggregateFunction.DISTINCT]
    task = clean.task
    if task == TaskType.AGGREGATE and distinct_fields and not value_aggregates:
        task = TaskType.DISTINCT

    if task == TaskType.COUNT:
        head = f"SELECT COUNT(*) FROM {table}"
    elif task == TaskType.DISTINCT:
        field = (distinct_fields or [a.field for a in value_aggregates if a.field != "*"] or [DEFAULT_DISTINCT_FIELD])[0]
        head = f"SELECT DISTINCT {field} FROM {table}"
    elif task == TaskType.AGGREGATE:
        expressions = [_aggregate_expression(a) for a in value_aggregates] or ["COUNT(*)"]
        head = f"SELECT {', '.join(expressions)} FROM {table}"
    elif task == TaskType.COMPARE:
        group = next(
            (f.field for f in clean.filters if f.operator == FilterOperator.IN),
            DEFAULT_GROUP_FIELD,
        )
        expressions = [_aggregate_expression(a) for a in value_aggregates] or ["COUNT(*)"]
        head = f"SELECT {group}, {', '.join(expressions)} FROM {table}"
        tail = f" GROUP BY {group}"
    else:
        head = f"SELECT * FROM {table}"
        if clean.sort:
            tail += " ORDER BY " + ", ".join(f"{s.field} {s.direction.value}" for s in clean.sort)
        tail += f" LIMIT {max(1, min(clean.limit, max_limit))}"

    return SqlStatement(
        sql=head + where + tail,
        intent=intent,
        parameterized_sql=head + bound_where + tail,
        params=tuple(params),
    )


def unknown_identifiers(sql: str, schema: SchemaDescriptor = VEHICLES_SCHEMA) -> list[str]:
    """
    Identifiers in ``sql`` that are neither whitelisted columns, the table,
    an allowed function nor an SQL keyword. Quoted values are ignored.
    """
    allowed = {column.lower() for column in schema.columns}
    allowed.add(schema.table.lower())
    allowed.update(function.lower() for function in schema.functions)
    allowed.update(keyword.lower() for keyword in SQL_KEYWORDS)

    unknown = []
    for word in _WORD.findall(_STRING_LITERAL.sub("''", sql)):
        if word.lower() not in allowed and word not in unknown:
            unknown.append(word)
    return unknown


def normalize_generated_sql(text: str | None, table: str = "vehicles") -> str:
    """Clean model output into a single SELECT against ``table``."""
    sql = strip_code_fences(text or "").strip().rstrip(";").strip()
    if "select" not in sql.lower():
        return SAFE_DEFAULT_SQL
    if f"from {table}" not in sql.lower():
        sql = re.sub(r"from\s+\w+", f"FROM {table}", sql, count=1, flags=re.IGNORECASE)
    return sql


class QuerySynthesizer(PipelineStage):
    """
    Builds the SQL statement for an intent.

    The deterministic builder is the default. In generation mode the model
    writes the statement from the sanitized intent; its output is normalized,
    and discarded in favor of the builder whenever it references an
    identifier outside the whitelist or a column the whitelist rejected.
    """

    SYSTEM_PROMPT = """You are a Dealer SQL Generator. You create SQL queries from structured intent.

SCHEMA COLUMNS (whitelist only):
{columns}

CRITICAL RULES:
1. ONLY use columns from the whitelist above
2. Use correct table name: "{table}"
3. For COUNT queries: SELECT COUNT(*) FROM {table} WHERE [conditions]
4. For LIST queries: SELECT * FROM {table} WHERE [conditions] LIMIT [limit]
5. For DISTINCT queries: SELECT DISTINCT [field] FROM {table} WHERE [conditions]
6. For AGGREGATE queries: SELECT [function]([field]) FROM {table} WHERE [conditions]

FILTER OPERATORS:
- "=" → WHERE field = 'value'
- "!=" → WHERE field != 'value'
- "<" → WHERE field < value
- ">" → WHERE field > value
- "<=" → WHERE field <= value
- ">=" → WHERE field >= value
- "LIKE" → WHERE field LIKE '%value%'
- "IN" → WHERE field IN ('value1', 'value2')

AGGREGATE FUNCTIONS: {functions}

EXAMPLES:
Intent: {{"task": "count", "filters": [{{"field": "make", "operator": "=", "value": "Honda"}}]}}
SQL: SELECT COUNT(*) FROM {table} WHERE make = 'Honda'

Intent: {{"task": "distinct", "filters": [{{"field": "make", "operator": "=", "value": "Jeep"}}], "aggregates": [{{"function": "DISTINCT", "field": "body_style"}}]}}
SQL: SELECT DISTINCT body_style FROM {table} WHERE make = 'Jeep'

Generate ONLY the SQL query, no explanations, no markdown formatting."""

    TEMPERATURE = 0.1
    MAX_TOKENS = 200

    def __init__(
        self,
        llm: LLMInterface | None = None,
        schema: SchemaDescriptor | None = None,
        observer: DiagnosticsObserver | None = None,
        use_generation: bool = False,
        max_limit: int = 100,
    ) -> None:
        super().__init__(llm=llm, schema=schema, observer=observer)
        self.use_generation = use_generation and llm is not None
        self.max_limit = max_limit
        self.SYSTEM_PROMPT = self.SYSTEM_PROMPT.format(
            columns=self.schema.column_listing(),
            table=self.schema.table,
            functions=", ".join(self.schema.functions),
        )

    @property
    def name(self) -> str:
        return "query_synthesizer"

    def synthesize(self, intent: Intent) -> SqlStatement:
        """Produce a statement for the intent. Never raises."""
        try:
            built = build_statement(intent, self.schema, self.max_limit)
            if not self.use_generation:
                return built
            return self._generate(intent, built)
        except Exception as e:
            message = self._fallback(e)
            return SqlStatement.safe_default(intent, error=message)

    def _generate(self, intent: Intent, built: SqlStatement) -> SqlStatement:
        clean = sanitize(intent, self.schema)
        prompt = f"Intent: {json.dumps(clean.to_dict())}\n\nGenerate SQL:"
        raw = self._complete(prompt)
        if "select" not in (raw or "").lower():
            message = self._fallback("Generated text contained no SELECT", ErrorKind.MALFORMED_OUTPUT)
            return SqlStatement.safe_default(intent, error=message)
        sql = normalize_generated_sql(raw, self.schema.table)

        dropped = {f.field for f in intent.filters} - {f.field for f in clean.filters}
        unknown = unknown_identifiers(sql, self.schema)
        if unknown or any(str(field).lower() in sql.lower() for field in dropped):
            names = ", ".join(unknown) or ", ".join(sorted(map(str, dropped)))
            self._fallback(
                f"Generated SQL referenced a column outside the whitelist: {names}",
                ErrorKind.SCHEMA_VIOLATION,
            )
            return built
        return SqlStatement(sql=sql, intent=intent)
