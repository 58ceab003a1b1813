"""Domain records decoded from the backend and catalog provider."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from storefront.utils.dates import now_utc


class CutType(str, enum.Enum):
    RIBEYE = "Ribeye"
    NY_STRIP = "NY Strip"
    FILET_MIGNON = "Filet Mignon"
    SIRLOIN = "Sirloin"
    GROUND_BEEF = "Ground Beef"
    BRISKET = "Brisket"
    ROAST = "Chuck Roast"
    T_BONE = "T-Bone"
    BUNDLE = "Bundle"
    CUSTOM = "Custom Box"

    @classmethod
    def parse(cls, value: str | None) -> CutType:
        try:
            return cls(value)
        except ValueError:
            return cls.CUSTOM


@dataclass(slots=True)
class FlashSale:
    id: str
    title: str
    description: str
    cut_type: CutType
    original_price: float
    sale_price: float
    weight_lbs: float
    starts_at: datetime
    expires_at: datetime
    image_system_name: str
    is_active: bool

    @property
    def discount_percent(self) -> int:
        if self.original_price <= 0:
            return 0
        return round((self.original_price - self.sale_price) / self.original_price * 100)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or now_utc()) >= self.expires_at

    def is_active_now(self, now: datetime | None = None) -> bool:
        return self.is_active and not self.is_expired(now)

    def time_remaining(self, now: datetime | None = None) -> str:
        now = now or now_utc()
        if self.expires_at <= now:
            return "Expired"
        seconds = int((self.expires_at - now).total_seconds())
        hours, minutes = seconds // 3600, (seconds % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m left"
        return f"{minutes}m left"

    @property
    def price_per_lb(self) -> float:
        return self.sale_price / self.weight_lbs

    @property
    def formatted_original_price(self) -> str:
        return f"${self.original_price:.2f}"

    @property
    def formatted_sale_price(self) -> str:
        return f"${self.sale_price:.2f}"

    @property
    def formatted_price_per_lb(self) -> str:
        return f"${self.price_per_lb:.2f}/lb"


@dataclass(slots=True)
class PopUpMarket:
    id: str
    title: str
    description: str | None
    address: str | None
    latitude: float
    longitude: float
    starts_at: datetime | None
    ends_at: datetime | None
    is_active: bool


@dataclass(slots=True)
class Event:
    id: str
    title: str
    description: str | None
    location: str | None
    starts_at: datetime | None
    ends_at: datetime | None
    is_active: bool


@dataclass(slots=True)
class Announcement:
    id: str
    title: str
    message: str
    # Raw server string; part of the dedup identity.
    created_at: str | None
    is_active: bool

    @property
    def dedup_key(self) -> str:
        return f"announcement-{self.id}-{self.created_at or ''}"


LOW_STOCK_THRESHOLD = 5


@dataclass(slots=True)
class CatalogVariation:
    id: str
    name: str
    price_cents: int | None
    quantity: float | None = None

    @property
    def is_tracked(self) -> bool:
        return self.quantity is not None

    @property
    def is_sold_out(self) -> bool:
        return self.quantity is not None and self.quantity <= 0

    @property
    def formatted_price(self) -> str:
        if self.price_cents is None:
            return "Market Price"
        return f"${self.price_cents / 100:.2f}"


@dataclass(slots=True)
class CatalogItem:
    id: str
    name: str
    description: str | None
    category: str | None
    variations: list[CatalogVariation] = field(default_factory=list)

    @property
    def tracked_quantity(self) -> float:
        return sum(v.quantity for v in self.variations if v.quantity is not None)

    @property
    def is_sold_out(self) -> bool:
        # Untracked variations count as always available.
        tracked = [v for v in self.variations if v.is_tracked]
        if not tracked:
            return False
        return all(v.is_sold_out for v in self.variations)

    @property
    def is_low_stock(self) -> bool:
        if not any(v.is_tracked for v in self.variations):
            return False
        return 0 < self.tracked_quantity <= LOW_STOCK_THRESHOLD

    @property
    def lowest_price(self) -> int | None:
        prices = [v.price_cents for v in self.variations if v.price_cents is not None]
        return min(prices) if prices else None

    @property
    def formatted_price(self) -> str:
        cents = self.lowest_price
        if cents is None:
            return "Market Price"
        if len(self.variations) > 1:
            return f"From ${cents / 100:.2f}"
        return f"${cents / 100:.2f}"
