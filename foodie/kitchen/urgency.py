"""Expiry urgency classification for products.

All functions take an optional ``now`` so a caller can classify a batch of
products against a single instant. Day counts compare UTC calendar days;
the expired check compares exact instants.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Product

EXPIRING_SOON_DAYS = 2


class UrgencyLevel(str, Enum):
    OK = "ok"
    USE_SOON = "use_soon"  # expires in 1-2 days
    USE_TODAY = "use_today"
    WOULDNT_TRUST = "wouldnt_trust"  # already expired


# Most urgent first. Expired products sort last: they are excluded from
# suggestions rather than prioritized.
_URGENCY_RANK: dict[UrgencyLevel, int] = {
    UrgencyLevel.USE_TODAY: 0,
    UrgencyLevel.USE_SOON: 1,
    UrgencyLevel.OK: 2,
    UrgencyLevel.WOULDNT_TRUST: 3,
}


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _utc_day(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def urgency_rank(level: UrgencyLevel) -> int:
    return _URGENCY_RANK[level]


def days_until_expiry(product: Product, now: datetime | None = None) -> int | None:
    """Return whole calendar days until expiry.

    0 means the product expires today, negative values mean it expired on
    an earlier day. ``None`` when the product has no date at all.
    """
    expiry = product.effective_expiry_date
    if expiry is None:
        return None
    return (_utc_day(expiry) - _utc_day(_now(now))).days


def is_expired(product: Product, now: datetime | None = None) -> bool:
    expiry = product.effective_expiry_date
    if expiry is None:
        return False
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry < _now(now)


def is_expiring_soon(product: Product, now: datetime | None = None) -> bool:
    """True when the product expires within EXPIRING_SOON_DAYS calendar days.

    Uses day granularity only, so a product that expired earlier today
    still counts as expiring soon.
    """
    days = days_until_expiry(product, now)
    if days is None:
        return False
    return 0 <= days <= EXPIRING_SOON_DAYS


def classify(product: Product, now: datetime | None = None) -> UrgencyLevel:
    """Determine how urgently a product should be used.

    - no date            -> OK
    - expired            -> WOULDNT_TRUST
    - expires today      -> USE_TODAY
    - expires in 1-2 days -> USE_SOON
    - later              -> OK
    """
    if product.effective_expiry_date is None:
        return UrgencyLevel.OK

    now = _now(now)
    # The instant check must run before the day count.
    if is_expired(product, now):
        return UrgencyLevel.WOULDNT_TRUST

    days = days_until_expiry(product, now)
    if days == 0:
        return UrgencyLevel.USE_TODAY
    if is_expiring_soon(product, now):
        return UrgencyLevel.USE_SOON
    return UrgencyLevel.OK
