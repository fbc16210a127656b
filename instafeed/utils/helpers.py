"""General-purpose utility helpers."""
import re
from datetime import date, datetime, timezone

SHOP_DOMAIN_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$", re.IGNORECASE)


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Return the current UTC calendar day (the analytics bucket)."""
    return utc_now().date()


def is_valid_shop_domain(shop: object) -> bool:
    """True for ``<store>.myshopify.com`` domains."""
    return isinstance(shop, str) and bool(SHOP_DOMAIN_RE.match(shop))


def store_handle(shop: str) -> str:
    """``devsapig.myshopify.com`` -> ``devsapig``."""
    return shop.removesuffix(".myshopify.com")


def truncate(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to max_length with suffix."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix
