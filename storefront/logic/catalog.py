"""Normalization of catalog provider payloads into CatalogItem records."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from storefront.remote.models import CatalogItem, CatalogVariation


def normalize_catalog_objects(objects: Iterable[Mapping[str, Any]]) -> list[CatalogItem]:
    """Flatten provider ``ITEM`` objects into items with their variations.

    Objects without ``item_data`` and variations without
    ``item_variation_data`` are skipped. Provider order is preserved.
    """
    items: list[CatalogItem] = []
    for obj in objects:
        item_data = obj.get("item_data")
        if not item_data:
            continue
        variations = []
        for variation in item_data.get("variations") or []:
            data = variation.get("item_variation_data")
            if not data:
                continue
            money = data.get("price_money") or {}
            variations.append(
                CatalogVariation(
                    id=str(variation["id"]),
                    name=data.get("name") or "",
                    price_cents=money.get("amount"),
                )
            )
        items.append(
            CatalogItem(
                id=str(obj["id"]),
                name=item_data.get("name") or "",
                description=item_data.get("description"),
                category=item_data.get("category_id"),
                variations=variations,
            )
        )
    return items


def variation_ids(items: Iterable[CatalogItem]) -> list[str]:
    return [v.id for item in items for v in item.variations]


def sum_inventory_counts(counts: Iterable[Mapping[str, Any]]) -> dict[str, float]:
    """Total the per-location counts for each catalog object id."""
    totals: dict[str, float] = defaultdict(float)
    for count in counts:
        object_id = count.get("catalog_object_id")
        if not object_id:
            continue
        totals[object_id] += _to_quantity(count.get("quantity"))
    return dict(totals)


def merge_inventory(items: Iterable[CatalogItem], counts: Mapping[str, float]) -> list[CatalogItem]:
    """Attach quantities by variation id. Missing ids stay untracked."""
    merged = []
    for item in items:
        variations = [
            replace(v, quantity=counts[v.id]) if v.id in counts else replace(v, quantity=None)
            for v in item.variations
        ]
        merged.append(replace(item, variations=variations))
    return merged


def group_catalog_rows(rows: Iterable[Mapping[str, Any]]) -> list[CatalogItem]:
    """Group flat item/variation rows into items, in first-seen order."""
    grouped: dict[str, CatalogItem] = {}
    for row in rows:
        item_id = str(row["id"])
        variation = CatalogVariation(
            id=str(row["variation_id"]),
            name=row.get("variation_name") or "",
            price_cents=_price_to_cents(row.get("price")),
        )
        existing = grouped.get(item_id)
        if existing is None:
            grouped[item_id] = CatalogItem(
                id=item_id,
                name=row.get("name") or "",
                description=row.get("description"),
                category=row.get("category"),
                variations=[variation],
            )
        else:
            existing.variations.append(variation)
    return list(grouped.values())


def _to_quantity(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _price_to_cents(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return round(float(value) * 100)
    except (TypeError, ValueError):
        return None
