"""Persisted notification inbox with dedup against previously seen items."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storefront.db.kv import KeyValueStore
from storefront.logic.sales import sale_key
from storefront.remote.models import Announcement, FlashSale
from storefront.sync.preferences import NotificationPreferences
from storefront.utils.dates import format_timestamp, now_utc, parse_timestamp

logger = logging.getLogger(__name__)

INBOX_KEY = "inbox_items"
DISMISSED_KEY = "dismissed_home_ids"
SEEN_ANNOUNCEMENTS_KEY = "seen_announcement_keys"
SEEN_SALES_KEY = "seen_sale_keys"


@dataclass(slots=True)
class InboxItem:
    title: str
    body: str
    received_at: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    is_read: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "received_at": format_timestamp(self.received_at),
            "is_read": self.is_read,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InboxItem:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            body=data.get("body", ""),
            received_at=parse_timestamp(data.get("received_at")) or now_utc(),
            is_read=bool(data.get("is_read", False)),
        )


class NotificationInbox:
    """Newest-first list of notifications, persisted after every mutation.

    Announcements and sales are recorded by dedup key so an item already
    delivered (by poll or by push) is never inserted twice. Nothing here
    delivers a platform notification.
    """

    def __init__(self, store: KeyValueStore, *, clock: Callable[[], datetime] = now_utc) -> None:
        self.store = store
        self.clock = clock
        self.items = self._load_items()
        self.dismissed = store.get_set(DISMISSED_KEY)
        self.seen_announcements = store.get_set(SEEN_ANNOUNCEMENTS_KEY)
        self.seen_sales = store.get_set(SEEN_SALES_KEY)

    def _load_items(self) -> list[InboxItem]:
        items = []
        for raw in self.store.get_json(INBOX_KEY, []):
            try:
                items.append(InboxItem.from_dict(raw))
            except (KeyError, TypeError) as exc:
                logger.warning("Dropping unreadable inbox item: %s", exc)
        return items

    @property
    def home_notifications(self) -> list[InboxItem]:
        return [item for item in self.items if item.id not in self.dismissed]

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self.items if not item.is_read)

    def sync_announcements(self, announcements: Iterable[Announcement]) -> list[InboxItem]:
        added = []
        for announcement in announcements:
            if not announcement.is_active:
                continue
            key = announcement.dedup_key
            if key in self.seen_announcements:
                continue
            added.append(self._prepend(announcement.title, announcement.message))
            self.seen_announcements.add(key)
        if added:
            logger.info("Inbox gained %s announcement(s)", len(added))
            self._persist(SEEN_ANNOUNCEMENTS_KEY)
        return added

    def sync_sales(
        self,
        sales: Iterable[FlashSale],
        *,
        now: datetime | None = None,
        preferences: NotificationPreferences | None = None,
    ) -> list[InboxItem]:
        """Record newly seen active sales.

        Returns the items the user asked to be alerted about; keys are
        recorded for every new sale either way so a later change of
        preferences does not replay old sales.
        """
        now = now or self.clock()
        wanted = []
        changed = False
        for sale in sales:
            if not sale.is_active_now(now):
                continue
            key = sale_key(sale)
            if key in self.seen_sales:
                continue
            self.seen_sales.add(key)
            changed = True
            if preferences is not None and not preferences.wants(sale.cut_type):
                continue
            body = f"{sale.title}: save {sale.discount_percent}%, {sale.time_remaining(now)}"
            wanted.append(self._prepend("Flash Sale!", body))
        if changed:
            self._persist(SEEN_SALES_KEY)
        return wanted

    def add_item(self, title: str, body: str) -> InboxItem:
        item = self._prepend(title, body)
        self._persist()
        return item

    def mark_read(self, item_id: str) -> None:
        for item in self.items:
            if item.id == item_id and not item.is_read:
                item.is_read = True
                self._persist()
                return

    def mark_all_read(self) -> None:
        for item in self.items:
            item.is_read = True
        self._persist()

    def remove(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]
        self.dismissed.discard(item_id)
        self._persist(DISMISSED_KEY)

    def clear(self) -> None:
        self.items = []
        self.dismissed.clear()
        self._persist(DISMISSED_KEY)

    def dismiss_from_home(self, item_id: str) -> None:
        self.dismissed.add(item_id)
        self.store.set_set(DISMISSED_KEY, self.dismissed)

    def _prepend(self, title: str, body: str) -> InboxItem:
        item = InboxItem(title=title, body=body, received_at=self.clock())
        self.items.insert(0, item)
        return item

    def _persist(self, *keys: str) -> None:
        values: dict[str, Any] = {INBOX_KEY: [item.to_dict() for item in self.items]}
        for key in keys:
            values[key] = {
                SEEN_ANNOUNCEMENTS_KEY: self.seen_announcements,
                SEEN_SALES_KEY: self.seen_sales,
                DISMISSED_KEY: self.dismissed,
            }[key]
        self.store.set_many(values)
