# catalog_bot/utils.py
# ------------------------------------------------------------
# Small shared helpers
# - logging setup (once per process)
# - user-input parsing for prices and product ids
# - price rendering for replies
# ------------------------------------------------------------
import logging
import re
from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional

_PRICE_JUNK = re.compile(r"[^0-9.]")
_CENTS = Decimal("0.01")
_ID_MIN, _ID_MAX = -(2 ** 63), 2 ** 63 - 1


def configure_logging(level: str = "INFO") -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("catalog_bot").setLevel(log_level)


def parse_price(text: str) -> Optional[Decimal]:
    """
    Keep only digits and dots, then read the rest as a Decimal.
    "$2,500.00", "2500" and "USD 2500" all give Decimal 2500. Returns None when nothing usable is left.
    """
    cleaned = _PRICE_JUNK.sub("", text or "")
    if not cleaned:
        return None
    try:
        price = Decimal(cleaned)
    except InvalidOperation:
        return None
    return price if price.is_finite() else None


def parse_product_id(text: str) -> Optional[int]:
    """Signed 64-bit ids only; anything else reads as not a number."""
    try:
        product_id = int((text or "").strip())
    except ValueError:
        return None
    if not _ID_MIN <= product_id <= _ID_MAX:
        return None
    return product_id


def format_price(price: Optional[Decimal]) -> str:
    """2500 -> "2500", 2500.50 -> "2500.50". Any number of digits."""
    if price is None:
        return "0"
    price = Decimal(price)
    with localcontext() as ctx:
        # room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, price.adjusted() + 3, len(price.as_tuple().digits))
        if price == price.to_integral_value():
            return format(price.quantize(Decimal(1)), "f")
        return format(price.quantize(_CENTS), "f")
