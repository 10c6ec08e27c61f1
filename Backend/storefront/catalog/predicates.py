"""
Catalog predicate tree.

A logical catalog query becomes a small tree of filter nodes:

    And(children)           every child must match
    Or(children)            at least one child must match
    Equals(field, value)    exact match
    Contains(field, value)  case-insensitive substring match

Nodes are immutable and carry no store-specific detail; translators in
translators.py turn a tree into a SQLAlchemy clause or evaluate it in
memory. Because a search disjunction is always a single Or child of the
top-level And, it can never widen the tenant, category or promoted
restrictions around it.

Usage:
    predicate = build_predicate("demo-cafe", "tea", "Snacks", promoted_only=False)
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from .types import ALL_CATEGORIES, normalize_search_term

# Logical field names understood by every translator
FIELD_TENANT = "tenant"
FIELD_AVAILABLE = "available"
FIELD_PROMOTED = "promoted"
FIELD_NAME = "name"
FIELD_CATEGORY = "category"


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    field: str
    value: str


@dataclass(frozen=True)
class And:
    children: tuple["Predicate", ...]


@dataclass(frozen=True)
class Or:
    children: tuple["Predicate", ...]


Predicate = Union[Equals, Contains, And, Or]


def build_predicate(
    tenant_id: str,
    search_term: str = "",
    category: str = ALL_CATEGORIES,
    promoted_only: Optional[bool] = False,
    sentinel: str = ALL_CATEGORIES,
) -> And:
    """
    Build the filter for one catalog query.

    The result is always an And whose first two children pin the tenant and
    availability. Standard queries explicitly exclude promoted items so the
    paginated catalog never repeats the featured strip. promoted_only=None
    adds no promoted restriction at all (the legacy combined listing).
    """
    children: list[Predicate] = [
        Equals(FIELD_TENANT, tenant_id),
        Equals(FIELD_AVAILABLE, True),
    ]

    term = normalize_search_term(search_term)
    if term:
        children.append(
            Or((Contains(FIELD_NAME, term), Contains(FIELD_CATEGORY, term)))
        )

    if category and category != sentinel:
        children.append(Equals(FIELD_CATEGORY, category))

    if promoted_only is not None:
        children.append(Equals(FIELD_PROMOTED, bool(promoted_only)))
    return And(tuple(children))


def describe(predicate: Predicate) -> str:
    """Render a predicate as a compact, fully parenthesized string."""
    if isinstance(predicate, Equals):
        return f"{predicate.field}={predicate.value!r}"
    if isinstance(predicate, Contains):
        return f"{predicate.field}~{predicate.value!r}"
    if isinstance(predicate, And):
        return "(" + " AND ".join(describe(child) for child in predicate.children) + ")"
    if isinstance(predicate, Or):
        return "(" + " OR ".join(describe(child) for child in predicate.children) + ")"
    raise TypeError(f"Unknown predicate node: {predicate!r}")
