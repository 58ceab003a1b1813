from conftest import make_announcement, make_sale

from storefront.remote.models import CutType
from storefront.sync.inbox import (
    DISMISSED_KEY,
    INBOX_KEY,
    SEEN_ANNOUNCEMENTS_KEY,
    SEEN_SALES_KEY,
    NotificationInbox,
)
from storefront.sync.preferences import NotificationPreferences


def test_same_announcement_synced_twice_adds_one_item(kv):
    inbox = NotificationInbox(kv)
    inbox.sync_announcements([make_announcement("1")])
    inbox.sync_announcements([make_announcement("1")])
    assert len(inbox.items) == 1
    assert inbox.items[0].title == "Announcement 1"
    assert inbox.items[0].body == "Market this Saturday"


def test_recreated_announcement_is_a_new_item(kv):
    inbox = NotificationInbox(kv)
    inbox.sync_announcements([make_announcement("1", created_at="2026-10-18T10:00:00Z")])
    inbox.sync_announcements([make_announcement("1", created_at="2026-10-18T11:00:00Z")])
    assert len(inbox.items) == 2


def test_missing_created_at_uses_empty_suffix(kv):
    inbox = NotificationInbox(kv)
    inbox.sync_announcements([make_announcement("9", created_at=None)])
    assert inbox.seen_announcements == {"announcement-9-"}


def test_inactive_announcements_ignored(kv):
    inbox = NotificationInbox(kv)
    assert inbox.sync_announcements([make_announcement("1", active=False)]) == []
    assert inbox.items == []
    assert kv.get_json(SEEN_ANNOUNCEMENTS_KEY) is None


def test_newest_first_and_persisted_together(kv):
    inbox = NotificationInbox(kv)
    inbox.sync_announcements([make_announcement("1")])
    inbox.sync_announcements([make_announcement("2")])
    assert [item.title for item in inbox.items] == ["Announcement 2", "Announcement 1"]

    assert len(kv.get_json(INBOX_KEY)) == 2
    assert len(kv.get_json(SEEN_ANNOUNCEMENTS_KEY)) == 2

    reloaded = NotificationInbox(kv)
    assert [item.id for item in reloaded.items] == [item.id for item in inbox.items]
    reloaded.sync_announcements([make_announcement("1"), make_announcement("2")])
    assert len(reloaded.items) == 2


def test_add_item_prepends(kv):
    inbox = NotificationInbox(kv)
    inbox.sync_announcements([make_announcement("1")])
    pushed = inbox.add_item("Flash Sale!", "Ribeye 30% off")
    assert inbox.items[0] is pushed
    assert NotificationInbox(kv).items[0].body == "Ribeye 30% off"


def test_read_state_and_removal(kv):
    inbox = NotificationInbox(kv)
    first = inbox.add_item("a", "1")
    second = inbox.add_item("b", "2")
    assert inbox.unread_count == 2

    inbox.mark_read(first.id)
    assert inbox.unread_count == 1
    assert NotificationInbox(kv).unread_count == 1

    inbox.remove(second.id)
    assert [item.id for item in inbox.items] == [first.id]

    inbox.add_item("c", "3")
    inbox.mark_all_read()
    assert inbox.unread_count == 0

    inbox.clear()
    assert inbox.items == []
    assert NotificationInbox(kv).items == []


def test_dismiss_from_home_is_not_read_or_removed(kv):
    inbox = NotificationInbox(kv)
    keep = inbox.add_item("keep", "")
    hide = inbox.add_item("hide", "")
    inbox.dismiss_from_home(hide.id)

    assert [item.id for item in inbox.home_notifications] == [keep.id]
    assert len(inbox.items) == 2
    assert inbox.unread_count == 2
    assert [item.id for item in NotificationInbox(kv).home_notifications] == [keep.id]


def test_removed_and_cleared_items_leave_no_dismissed_ids(kv):
    inbox = NotificationInbox(kv)
    first = inbox.add_item("first", "")
    second = inbox.add_item("second", "")
    inbox.dismiss_from_home(first.id)
    inbox.dismiss_from_home(second.id)

    inbox.remove(first.id)
    assert kv.get_json(DISMISSED_KEY) == [second.id]
    assert NotificationInbox(kv).dismissed == {second.id}

    inbox.clear()
    assert kv.get_json(DISMISSED_KEY) == []
    assert NotificationInbox(kv).home_notifications == []


def test_sync_sales_alerts_once(kv, now):
    inbox = NotificationInbox(kv, clock=lambda: now)
    live = make_sale("live", now=now, expires_in=3600)
    gone = make_sale("gone", now=now, expires_in=-60)
    off = make_sale("off", now=now, active=False)

    alerts = inbox.sync_sales([live, gone, off], now=now)
    assert len(alerts) == 1
    assert "Sale live" in alerts[0].body
    assert "1h 0m left" in alerts[0].body
    assert inbox.sync_sales([live], now=now) == []
    assert kv.get_json(SEEN_SALES_KEY) == ["sale-live"]


def test_sync_sales_respects_preferences(kv, now):
    inbox = NotificationInbox(kv, clock=lambda: now)
    prefs = NotificationPreferences(preferred_cuts={CutType.BRISKET})
    ribeye = make_sale("ribeye", now=now, cut=CutType.RIBEYE)
    brisket = make_sale("brisket", now=now, cut=CutType.BRISKET)

    alerts = inbox.sync_sales([ribeye, brisket], now=now, preferences=prefs)
    assert [a.body.split(":")[0] for a in alerts] == ["Sale brisket"]
    assert inbox.seen_sales == {"sale-ribeye", "sale-brisket"}

    muted = NotificationPreferences(flash_sales_enabled=False)
    later = make_sale("later", now=now)
    assert inbox.sync_sales([later], now=now, preferences=muted) == []
