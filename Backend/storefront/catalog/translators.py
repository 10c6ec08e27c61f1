"""
Predicate translators.

to_sql_clause() turns a predicate tree into a SQLAlchemy boolean clause for
SqlCatalogStore; matches() evaluates the same tree against a plain record
dict for InMemoryCatalogStore. Both walk the tree recursively, so nesting in
the tree is nesting in the output.
"""

from typing import Any, Mapping, Optional

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from ..models import MenuItem, Shop
from .predicates import (
    FIELD_AVAILABLE,
    FIELD_CATEGORY,
    FIELD_NAME,
    FIELD_PROMOTED,
    FIELD_TENANT,
    And,
    Contains,
    Equals,
    Or,
    Predicate,
)

SQL_FIELD_MAP: dict[str, Any] = {
    FIELD_TENANT: Shop.slug,
    FIELD_AVAILABLE: MenuItem.is_available,
    FIELD_PROMOTED: MenuItem.is_featured,
    FIELD_NAME: MenuItem.name,
    FIELD_CATEGORY: MenuItem.category,
}


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so a search term is matched literally."""
    return (
        value.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )


def to_sql_clause(
    predicate: Predicate,
    field_map: Optional[Mapping[str, Any]] = None,
) -> ColumnElement[bool]:
    columns = field_map or SQL_FIELD_MAP

    if isinstance(predicate, Equals):
        column = _column(columns, predicate.field)
        if isinstance(predicate.value, bool):
            return column.is_(predicate.value)
        return column == predicate.value
    if isinstance(predicate, Contains):
        column = _column(columns, predicate.field)
        return column.ilike(f"%{escape_like(predicate.value)}%", escape="\\")
    if isinstance(predicate, And):
        return and_(*(to_sql_clause(child, columns) for child in predicate.children))
    if isinstance(predicate, Or):
        return or_(*(to_sql_clause(child, columns) for child in predicate.children))
    raise TypeError(f"Unknown predicate node: {predicate!r}")


def _column(columns: Mapping[str, Any], field: str):
    try:
        return columns[field]
    except KeyError:
        raise ValueError(f"No column mapped for predicate field {field!r}") from None


# ────────────────────────────────────────────────────────────────
# In-memory evaluation
# ────────────────────────────────────────────────────────────────

def record_value(record: Mapping[str, Any], field: str) -> Any:
    """Read a logical field from a raw store record."""
    if field == FIELD_TENANT:
        return record.get("tenant_id")
    if field == FIELD_AVAILABLE:
        return bool(record.get("is_available", True))
    if field == FIELD_PROMOTED:
        return bool(record.get("is_featured", False))
    if field == FIELD_NAME:
        return record.get("name")
    if field == FIELD_CATEGORY:
        return record.get("category")
    raise ValueError(f"Unknown predicate field {field!r}")


def matches(predicate: Predicate, record: Mapping[str, Any]) -> bool:
    if isinstance(predicate, Equals):
        return record_value(record, predicate.field) == predicate.value
    if isinstance(predicate, Contains):
        value = record_value(record, predicate.field)
        if value is None:
            return False
        return predicate.value.lower() in str(value).lower()
    if isinstance(predicate, And):
        return all(matches(child, record) for child in predicate.children)
    if isinstance(predicate, Or):
        return any(matches(child, record) for child in predicate.children)
    raise TypeError(f"Unknown predicate node: {predicate!r}")
