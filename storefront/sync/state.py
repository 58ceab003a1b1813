"""In-memory view state shared by the sync components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from storefront.logic.sales import active_sales, expired_sales
from storefront.remote.models import Announcement, CatalogItem, Event, FlashSale, PopUpMarket

SALES = "sales"
MARKETS = "markets"
ANNOUNCEMENTS = "announcements"
EVENTS = "events"
CATALOG = "catalog"


@dataclass
class StoreState:
    """Mutated only through SyncEngine and NotificationInbox operations."""

    sales: list[FlashSale] = field(default_factory=list)
    markets: list[PopUpMarket] = field(default_factory=list)
    announcements: list[Announcement] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    catalog: list[CatalogItem] = field(default_factory=list)
    is_loading: bool = False
    last_refreshed_at: datetime | None = None
    # User-facing error per resource; only set when that resource has no data.
    errors: dict[str, str] = field(default_factory=dict)

    def active_sales(self, now: datetime | None = None) -> list[FlashSale]:
        return active_sales(self.sales, now)

    def expired_sales(self, now: datetime | None = None) -> list[FlashSale]:
        return expired_sales(self.sales, now)

    def has_data(self, resource: str) -> bool:
        return bool(getattr(self, resource))

    def error_for(self, resource: str) -> str | None:
        return self.errors.get(resource)
