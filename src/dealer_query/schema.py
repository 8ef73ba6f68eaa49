"""
Schema Descriptor
=================

Single source of truth for the relation, columns, functions and operators
that generated SQL may use. Every stage receives the same descriptor.
"""

from dataclasses import dataclass, field

from dealer_query.models import AggregateFunction, FilterOperator


@dataclass(frozen=True)
class SchemaDescriptor:
    """Whitelist of everything a generated statement may reference."""

    table: str
    columns: tuple[str, ...]
    types: dict[str, str] = field(default_factory=dict)
    numeric_columns: frozenset[str] = frozenset()
    functions: tuple[str, ...] = tuple(f.value for f in AggregateFunction)
    operators: tuple[str, ...] = tuple(o.value for o in FilterOperator)
    denied_keywords: tuple[str, ...] = (
        "DROP",
        "DELETE",
        "UPDATE",
        "INSERT",
        "ALTER",
        "CREATE",
        "TRUNCATE",
    )

    def is_column(self, name: object) -> bool:
        return isinstance(name, str) and name in self.columns

    def is_numeric(self, name: str) -> bool:
        return name in self.numeric_columns

    def column_listing(self) -> str:
        """Columns rendered for prompts, seven per line."""
        lines = []
        for start in range(0, len(self.columns), 7):
            lines.append("- " + ", ".join(self.columns[start:start + 7]))
        return "\n".join(lines)

    def create_table_sql(self) -> str:
        columns = [f"{name} {self.types.get(name, 'TEXT')}" for name in self.columns]
        return f"CREATE TABLE IF NOT EXISTS {self.table} ({', '.join(columns)})"


VEHICLE_COLUMN_TYPES = {
    "stock_number": "TEXT",
    "vin": "TEXT",
    "year": "INTEGER",
    "make": "TEXT",
    "model": "TEXT",
    "trim": "TEXT",
    "body_style": "TEXT",
    "price_cents": "INTEGER",
    "mileage": "INTEGER",
    "drivetrain": "TEXT",
    "fuel_type": "TEXT",
    "exterior_color": "TEXT",
    "interior_color": "TEXT",
    "transmission": "TEXT",
    "vehicle_type": "TEXT",
    "days_on_lot": "INTEGER",
    "description": "TEXT",
    "location": "TEXT",
    "website": "TEXT",
    "updated_at": "TEXT",
}

VEHICLES_SCHEMA = SchemaDescriptor(
    table="vehicles",
    columns=tuple(VEHICLE_COLUMN_TYPES),
    types=VEHICLE_COLUMN_TYPES,
    numeric_columns=frozenset(
        name for name, kind in VEHICLE_COLUMN_TYPES.items() if kind == "INTEGER"
    ),
)
