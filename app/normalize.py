# app/normalize.py
"""
Map one raw feed record onto the canonical Product document.

Field aliases are ordered lists of source keys; the first one holding a
non-empty value wins. Unknown keys are ignored.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from .errors import InvalidPriceFormat, MissingIdentifier
from .pricing import normalize_price
from .schemas import Product

logger = logging.getLogger(__name__)

ID_FIELDS = ("id", "asin")
IMAGE_FIELDS = ("image", "imageURLHighRes")
MAX_CATEGORIES = 5


def safe_get(obj: Dict[str, Any], *keys):
    """Try multiple keys, return the first non-empty value (or None)"""
    for k in keys:
        if k in obj and obj[k] not in (None, "", [], {}):
            return obj[k]
    return None


def flatten_description(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, list):
        if not value or value[0] is None:
            return None
        return str(value[0])
    return None


def truncate_categories(value) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value else None
    if isinstance(value, list):
        if not value:
            return None
        return [str(c) for c in value[:MAX_CATEGORIES]]
    return None


def _as_str_list(value) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def normalize_record(raw: Dict[str, Any],
                     on_price_error: Optional[Callable[[str, InvalidPriceFormat], None]] = None) -> Product:
    """
    Build a Product from a decoded feed record.

    Raises MissingIdentifier when neither "id" nor "asin" is present. An
    unparsable price is logged and left absent; on_price_error, when given,
    is called with the record id and the error.
    """
    ident = safe_get(raw, *ID_FIELDS)
    if ident is None or isinstance(ident, (list, dict)):
        raise MissingIdentifier(f"record has no usable {' or '.join(ID_FIELDS)}")
    ident = str(ident)

    try:
        price = normalize_price(raw.get("price"))
    except InvalidPriceFormat as e:
        logger.warning("Record %s: %s; indexing without price", ident, e)
        if on_price_error is not None:
            on_price_error(ident, e)
        price = None

    title = raw.get("title")
    return Product(
        id=ident,
        title=str(title) if title is not None else None,
        description=flatten_description(raw.get("description")),
        category=truncate_categories(raw.get("category")),
        price=price,
        image=_as_str_list(safe_get(raw, *IMAGE_FIELDS)),
    )
