"""Time-window views over flash sales."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from storefront.remote.models import FlashSale
from storefront.utils.dates import now_utc


def active_sales(sales: Iterable[FlashSale], now: datetime | None = None) -> list[FlashSale]:
    """Active, unexpired sales, soonest-expiring first."""
    now = now or now_utc()
    live = [s for s in sales if s.is_active_now(now)]
    live.sort(key=lambda s: s.expires_at)
    return live


def expired_sales(sales: Iterable[FlashSale], now: datetime | None = None) -> list[FlashSale]:
    now = now or now_utc()
    return [s for s in sales if s.is_expired(now) or not s.is_active]


def sale_key(sale: FlashSale) -> str:
    return f"sale-{sale.id}"
