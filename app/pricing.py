# app/pricing.py
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from .errors import InvalidPriceFormat

NON_PRICE_CHARS_RE = re.compile(r"[^0-9.]")


def normalize_price(raw) -> Optional[Decimal]:
    """
    Parse a free-form price such as "$12.99" or "$9.39 - $49.33" into a Decimal.

    Returns None for missing or blank input. A range written with two "$" keeps
    its first value; ranges in other currencies are not detected. Anything left
    unparsable after stripping non-numeric characters raises InvalidPriceFormat.
    """
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float, Decimal)):
        raise InvalidPriceFormat(raw)
    if not isinstance(raw, str):
        # numbers skip the text path; str() may give exponent form
        value = Decimal(str(raw))
        if not value.is_finite():
            raise InvalidPriceFormat(raw)
        return abs(value)
    text = raw
    if text.strip() == "":
        return None

    # range: keep everything before the last "$"
    if text.find("$") != text.rfind("$"):
        text = text[:text.rfind("$")]

    cleaned = NON_PRICE_CHARS_RE.sub("", text)
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise InvalidPriceFormat(raw) from exc
