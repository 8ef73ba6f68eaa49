"""
Keyword Heuristics
==================

Pure keyword-driven helpers that re-derive parts of an intent from the
question text. The extractor uses them for context carryover and when no
generation service is configured.
"""

import re
from typing import Optional

from dealer_query.models import (
    Aggregate,
    AggregateFunction,
    Filter,
    FilterOperator,
    Intent,
    SortDirection,
    SortSpec,
    TaskType,
)

VEHICLE_TYPES = {
    "suv": ["suv", "suvs"],
    "truck": ["truck", "trucks", "pickup", "pickups"],
    "sedan": ["sedan", "sedans"],
    "coupe": ["coupe", "coupes"],
    "convertible": ["convertible", "convertibles"],
    "hatchback": ["hatchback", "hatchbacks"],
    "wagon": ["wagon", "wagons"],
    "van": ["van", "vans", "minivan", "minivans"],
    "motorcycle": ["motorcycle", "motorcycles", "bike", "bikes"],
}

MAKES = [
    "Honda", "Toyota", "Ford", "Chevrolet", "BMW", "Mercedes", "Audi", "Lexus",
    "Nissan", "Hyundai", "Kia", "Mazda", "Subaru", "Volkswagen", "Jeep", "Ram",
    "Dodge", "Chrysler", "Cadillac", "Lincoln", "Acura", "Infiniti", "Genesis",
    "Harley-Davidson", "Yamaha", "Kawasaki", "Suzuki",
]

MAKE_ALIASES = {
    "chevy": "Chevrolet",
    "vw": "Volkswagen",
    "benz": "Mercedes",
    "harley": "Harley-Davidson",
}

COLORS = {
    "black": "Black",
    "white": "White",
    "silver": "Silver",
    "gray": "Gray",
    "grey": "Gray",
    "red": "Red",
    "blue": "Blue",
    "green": "Green",
    "brown": "Brown",
    "beige": "Beige",
    "gold": "Gold",
    "orange": "Orange",
    "yellow": "Yellow",
}

DISTINCT_FIELDS = {
    "type": "body_style",
    "kind": "body_style",
    "style": "body_style",
    "body style": "body_style",
    "color": "exterior_color",
    "colour": "exterior_color",
    "make": "make",
    "brand": "make",
    "model": "model",
    "trim": "trim",
    "drivetrain": "drivetrain",
    "fuel type": "fuel_type",
    "transmission": "transmission",
    "location": "location",
}

AGGREGATE_KEYWORDS = {
    "average": AggregateFunction.AVG,
    "avg": AggregateFunction.AVG,
    "mean": AggregateFunction.AVG,
    "total": AggregateFunction.SUM,
    "sum": AggregateFunction.SUM,
    "minimum": AggregateFunction.MIN,
    "lowest": AggregateFunction.MIN,
    "maximum": AggregateFunction.MAX,
    "highest": AggregateFunction.MAX,
}

SORT_PHRASES = [
    (r"\b(?:cheapest|least expensive|lowest[- ]priced)\b", "price_cents", SortDirection.ASC),
    (r"\b(?:most expensive|priciest|highest[- ]priced)\b", "price_cents", SortDirection.DESC),
    (r"\b(?:lowest mileage|fewest miles|least miles)\b", "mileage", SortDirection.ASC),
    (r"\b(?:longest on (?:the )?lot|aged units|oldest inventory)\b", "days_on_lot", SortDirection.DESC),
    (r"\bnewest\b", "year", SortDirection.DESC),
    (r"\boldest\b", "year", SortDirection.ASC),
]

_AMOUNT = r"\$?\s*(\d[\d,]*(?:\.\d+)?)\s*(k|thousand)?\b"
_UPPER_BOUND = re.compile(
    r"\b(under|below|less than|cheaper than|up to|at most|max(?:imum)?)\s+" + _AMOUNT
    + r"(\s*(?:miles|mi)\b)?"
)
_LOWER_BOUND = re.compile(
    r"\b(over|above|more than|greater than|at least|min(?:imum)?)\s+" + _AMOUNT
    + r"(\s*(?:miles|mi)\b)?"
)
_YEAR = re.compile(r"(?<![\$\d,])\b(19[89]\d|20[0-4]\d)\b(?![,\d]|\s*(?:k|miles|mi)\b)")
_LIMIT = re.compile(r"\b(?:top|first|last|show me|list)\s+(\d{1,3})\b")
_LIST_VERBS = re.compile(r"\b(?:show|list|display|find|pull up|give me)\b")

_ELLIPTICAL = [
    re.compile(
        r"^(?:(?:ok(?:ay)?|great|cool|and|so)[,\s]+)?(?:please\s+)?"
        r"(?:show|list|display|give|pull up|let me see|see)"
        r"(?:\s+(?:me|us))?"
        r"(?:\s+(?:them|those|these|it|that|the list|all of them|them all"
        r"|(?:the|those|these) (?:vehicles|cars|units|ones)))?"
        r"(?:\s+please)?[\s.!?]*$"
    ),
    re.compile(r"^(?:which|what) (?:ones|are they|are those)[\s.!?]*$"),
    re.compile(r"^(?:and\s+)?(?:them|those|these)[\s.!?]*$"),
]


def _words(question: str) -> str:
    return " ".join(question.lower().split())


def extract_vehicle_type(question: str) -> Optional[str]:
    """Map a phrase like "trucks" or "pickup" to a vehicle type like TRUCK."""
    text = _words(question)
    for vehicle_type, keywords in VEHICLE_TYPES.items():
        for keyword in keywords:
            if re.search(rf"\b{re.escape(keyword)}\b", text):
                return vehicle_type.upper()
    return None


def extract_make(question: str) -> Optional[str]:
    """Find the first known make mentioned in the question ("hondas" -> Honda)."""
    text = _words(question)
    for make in MAKES:
        if re.search(rf"\b{re.escape(make.lower())}", text):
            return make
    for alias, make in MAKE_ALIASES.items():
        if re.search(rf"\b{alias}\b", text):
            return make
    return None


def extract_color(question: str) -> Optional[str]:
    text = _words(question)
    for keyword, color in COLORS.items():
        if re.search(rf"\b{keyword}\b", text):
            return color
    return None


def extract_year(question: str) -> Optional[int]:
    match = _YEAR.search(_words(question))
    return int(match.group(1)) if match else None


def _amount(number: str, suffix: Optional[str]) -> float:
    value = float(number.replace(",", ""))
    if suffix:
        value *= 1000
    return value


def _bound_filter(match: re.Match, strict: str, inclusive: str) -> Filter:
    phrase, number, suffix, miles = match.groups()
    operator = FilterOperator(inclusive if phrase.startswith(("up to", "at ", "max", "min")) else strict)
    amount = _amount(number, suffix)
    if miles:
        return Filter("mileage", operator, int(amount))
    return Filter("price_cents", operator, int(round(amount * 100)))


def extract_range_filters(question: str) -> list[Filter]:
    """Price and mileage bounds ("under $30k" -> price_cents < 3000000)."""
    text = _words(question)
    filters = []
    for match in _UPPER_BOUND.finditer(text):
        filters.append(_bound_filter(match, "<", "<="))
    for match in _LOWER_BOUND.finditer(text):
        filters.append(_bound_filter(match, ">", ">="))
    return filters


def extract_limit(question: str) -> Optional[int]:
    match = _LIMIT.search(_words(question))
    return int(match.group(1)) if match else None


def filters_from_text(question: str) -> tuple[Filter, ...]:
    """Every filter the keyword helpers can recover from a piece of text."""
    filters = []
    make = extract_make(question)
    if make:
        filters.append(Filter("make", FilterOperator.EQ, make))
    vehicle_type = extract_vehicle_type(question)
    if vehicle_type:
        filters.append(Filter("body_style", FilterOperator.EQ, vehicle_type))
    color = extract_color(question)
    if color:
        filters.append(Filter("exterior_color", FilterOperator.EQ, color))
    year = extract_year(question)
    if year:
        filters.append(Filter("year", FilterOperator.EQ, year))
    filters.extend(extract_range_filters(question))
    return tuple(filters)


def is_elliptical(question: str) -> bool:
    """True for follow-ups like "show me" that name no subject of their own."""
    text = _words(question).strip(" .!?")
    if not text:
        return False
    if filters_from_text(text):
        return False
    return any(pattern.match(text) for pattern in _ELLIPTICAL)


def extract_distinct_field(question: str) -> Optional[str]:
    text = _words(question)
    for phrase, column in sorted(DISTINCT_FIELDS.items(), key=lambda item: -len(item[0])):
        if re.search(rf"\b(?:what|which)\s+(?:\w+\s+)?{phrase}(?:e?s)?\b", text):
            return column
    return None


def _aggregate_field(text: str) -> str:
    if re.search(r"\b(?:mileage|miles)\b", text):
        return "mileage"
    if re.search(r"\b(?:days on (?:the )?lot|aging|age)\b", text):
        return "days_on_lot"
    if re.search(r"\byears?\b", text) and "price" not in text:
        return "year"
    return "price_cents"


def infer_task(question: str) -> TaskType:
    text = _words(question)
    if re.search(r"\b(?:how many|count|number of)\b", text):
        return TaskType.COUNT
    if re.search(r"\b(?:compare|comparison|versus|vs\.?)\b", text):
        return TaskType.COMPARE
    if extract_distinct_field(text):
        return TaskType.DISTINCT
    if not _LIST_VERBS.search(text) and any(
        re.search(rf"\b{keyword}\b", text) for keyword in AGGREGATE_KEYWORDS
    ):
        return TaskType.AGGREGATE
    return TaskType.LIST


def extract_sort(question: str) -> tuple[SortSpec, ...]:
    text = _words(question)
    for pattern, column, direction in SORT_PHRASES:
        if re.search(pattern, text):
            return (SortSpec(column, direction),)
    return ()


def heuristic_intent(question: str, default_limit: int = 10) -> Intent:
    """Build a complete intent from keywords alone."""
    text = _words(question)
    task = infer_task(text)
    filters = list(filters_from_text(text))
    aggregates: list[Aggregate] = []

    if task == TaskType.COUNT:
        aggregates.append(Aggregate(AggregateFunction.COUNT, "*"))
    elif task == TaskType.DISTINCT:
        aggregates.append(Aggregate(AggregateFunction.DISTINCT, extract_distinct_field(text)))
    elif task == TaskType.AGGREGATE:
        function = next(
            fn for keyword, fn in AGGREGATE_KEYWORDS.items()
            if re.search(rf"\b{keyword}\b", text)
        )
        aggregates.append(Aggregate(function, _aggregate_field(text)))
    elif task == TaskType.COMPARE:
        makes = [make for make in MAKES if re.search(rf"\b{re.escape(make.lower())}", text)]
        if len(makes) > 1:
            filters = [f for f in filters if f.field != "make"]
            filters.insert(0, Filter("make", FilterOperator.IN, tuple(makes)))
        aggregates.append(Aggregate(AggregateFunction.COUNT, "*"))
        if "price" in text:
            aggregates.append(Aggregate(AggregateFunction.AVG, "price_cents"))

    return Intent(
        task=task,
        filters=tuple(filters),
        aggregates=tuple(aggregates),
        sort=extract_sort(text) if task == TaskType.LIST else (),
        limit=extract_limit(text) or default_limit,
        original_question=question,
    )
