"""Notification preferences and favorite sales."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from storefront.db.kv import KeyValueStore
from storefront.remote.models import CutType

PREFERENCES_KEY = "notification_preferences"
FAVORITES_KEY = "favorite_sale_ids"


@dataclass(slots=True)
class NotificationPreferences:
    flash_sales_enabled: bool = True
    price_drops_enabled: bool = True
    new_arrivals_enabled: bool = False
    weekly_deals_enabled: bool = True
    preferred_cuts: set[CutType] = field(default_factory=lambda: set(CutType))

    def wants(self, cut_type: CutType) -> bool:
        return self.flash_sales_enabled and cut_type in self.preferred_cuts

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["preferred_cuts"] = sorted(cut.value for cut in self.preferred_cuts)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> NotificationPreferences:
        defaults = cls()
        cuts = data.get("preferred_cuts")
        return cls(
            flash_sales_enabled=bool(data.get("flash_sales_enabled", defaults.flash_sales_enabled)),
            price_drops_enabled=bool(data.get("price_drops_enabled", defaults.price_drops_enabled)),
            new_arrivals_enabled=bool(data.get("new_arrivals_enabled", defaults.new_arrivals_enabled)),
            weekly_deals_enabled=bool(data.get("weekly_deals_enabled", defaults.weekly_deals_enabled)),
            preferred_cuts=(
                {CutType.parse(c) for c in cuts} if isinstance(cuts, list) else defaults.preferred_cuts
            ),
        )


class PreferenceStore:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._favorites = store.get_set(FAVORITES_KEY)
        data = store.get_json(PREFERENCES_KEY)
        self.preferences = (
            NotificationPreferences.from_dict(data) if isinstance(data, dict) else NotificationPreferences()
        )

    def save(self, preferences: NotificationPreferences | None = None) -> None:
        if preferences is not None:
            self.preferences = preferences
        self.store.set_json(PREFERENCES_KEY, self.preferences.to_dict())

    def is_favorite(self, sale_id: str) -> bool:
        return sale_id in self._favorites

    def toggle_favorite(self, sale_id: str) -> bool:
        if sale_id in self._favorites:
            self._favorites.discard(sale_id)
        else:
            self._favorites.add(sale_id)
        self.store.set_set(FAVORITES_KEY, self._favorites)
        return sale_id in self._favorites

    @property
    def favorites(self) -> frozenset[str]:
        return frozenset(self._favorites)
