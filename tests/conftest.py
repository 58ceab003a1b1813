import pendulum
import pytest
from sqlalchemy import create_engine

from storefront.db.kv import KeyValueStore, ensure_schema
from storefront.remote.models import Announcement, CutType, FlashSale


@pytest.fixture()
def engine():
    engine = create_engine("sqlite:///:memory:", future=True)
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def kv(engine):
    return KeyValueStore(engine)


@pytest.fixture()
def now():
    return pendulum.datetime(2026, 10, 18, 12, 0, tz="UTC")


def make_sale(sale_id="sale-1", *, now=None, expires_in=3600, active=True, original=54.99, price=38.99, cut=CutType.RIBEYE):
    now = now or pendulum.now("UTC")
    return FlashSale(
        id=sale_id,
        title=f"Sale {sale_id}",
        description="Dry-aged 21 days",
        cut_type=cut,
        original_price=original,
        sale_price=price,
        weight_lbs=2.0,
        starts_at=now.subtract(hours=1),
        expires_at=now.add(seconds=expires_in),
        image_system_name="flame.fill",
        is_active=active,
    )


def make_announcement(announcement_id="1", *, created_at="2026-10-18T10:00:00Z", active=True):
    return Announcement(
        id=announcement_id,
        title=f"Announcement {announcement_id}",
        message="Market this Saturday",
        created_at=created_at,
        is_active=active,
    )
