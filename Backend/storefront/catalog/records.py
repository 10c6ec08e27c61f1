"""
Validation and repair of raw store records.

Both the featured and the paginated fetch paths go through
validate_record(); a record either becomes a CatalogItem or a
MalformedRecordError that the caller filters out.

Repairs:
    category  -> category_name, then category, then the generic label
    image     -> placeholder reference when empty
    offer     -> kept only when a positive number below price
"""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from .errors import MalformedRecordError
from .types import CatalogItem

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_LABEL = "General"
PLACEHOLDER_IMAGE = "/default-product.png"


def coerce_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def validate_record(
    record: Mapping[str, Any],
    *,
    default_category: str = DEFAULT_CATEGORY_LABEL,
    placeholder_image: str = PLACEHOLDER_IMAGE,
) -> Union[CatalogItem, MalformedRecordError]:
    record_id = _clean_text(record.get("id"))
    if not record_id:
        return MalformedRecordError("missing id")

    name = _clean_text(record.get("name"))
    if not name:
        return MalformedRecordError("missing name", record_id)

    price = coerce_number(record.get("price"))
    if price is None:
        return MalformedRecordError(f"non-numeric price {record.get('price')!r}", record_id)

    category = (
        _clean_text(record.get("category_name"))
        or _clean_text(record.get("category"))
        or default_category
    )
    image = _clean_text(record.get("image")) or placeholder_image

    offer_price = coerce_number(record.get("offer_price"))
    if offer_price is not None and not (0 < offer_price < price):
        offer_price = None

    return CatalogItem(
        id=record_id,
        name=name,
        category=category,
        # Storefront cards fall back to the category when there is no description
        description=_clean_text(record.get("description")) or category,
        price=price,
        offer_price=offer_price,
        image=image,
        promoted=bool(record.get("is_featured")),
    )


def repair_records(
    records: Iterable[Mapping[str, Any]],
    *,
    default_category: str = DEFAULT_CATEGORY_LABEL,
    placeholder_image: str = PLACEHOLDER_IMAGE,
) -> list[CatalogItem]:
    """Validate every record, dropping the malformed ones."""
    items: list[CatalogItem] = []
    dropped: list[MalformedRecordError] = []
    for record in records:
        result = validate_record(
            record,
            default_category=default_category,
            placeholder_image=placeholder_image,
        )
        if isinstance(result, MalformedRecordError):
            dropped.append(result)
        else:
            items.append(result)

    if dropped:
        logger.warning(
            "Dropped %s malformed catalog record(s): %s",
            len(dropped),
            "; ".join(error.message for error in dropped[:5]),
        )
    return items
