"""Square catalog and inventory client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from storefront.db.secrets import SecretStore
from storefront.logic.catalog import (
    merge_inventory,
    normalize_catalog_objects,
    sum_inventory_counts,
    variation_ids,
)
from storefront.remote.backend import REQUEST_TIMEOUT, RESOURCE_TIMEOUT
from storefront.remote.errors import DecodeError, NotConfigured, ServerError
from storefront.remote.models import CatalogItem

logger = logging.getLogger(__name__)

SQUARE_BASE_URL = "https://connect.squareup.com/v2"
SQUARE_API_VERSION = "2024-01-18"
TOKEN_KEY = "square_access_token"
INVENTORY_BATCH_SIZE = 100


class SquareClient:
    def __init__(
        self,
        secrets: SecretStore,
        *,
        base_url: str = SQUARE_BASE_URL,
        api_version: str = SQUARE_API_VERSION,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.secrets = secrets
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.session = session or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

    async def close(self) -> None:
        await self.session.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.secrets.get(TOKEN_KEY))

    async def fetch_catalog(self) -> list[CatalogItem]:
        token = self.secrets.get(TOKEN_KEY)
        if not token:
            raise NotConfigured("Square access token missing")
        items = await self._list_items(token)
        ids = variation_ids(items)
        logger.info("Square catalog fetched: %s items, %s variations", len(items), len(ids))
        counts = await self._inventory_counts(token, ids)
        return merge_inventory(items, counts)

    async def _list_items(self, token: str) -> list[CatalogItem]:
        items: list[CatalogItem] = []
        cursor: str | None = None
        while True:
            params = {"types": "ITEM"}
            if cursor:
                params["cursor"] = cursor
            data = await self._request_json("GET", "/catalog/list", token, params=params)
            try:
                items.extend(normalize_catalog_objects(data.get("objects") or []))
            except (KeyError, TypeError, AttributeError) as exc:
                raise DecodeError(f"Unexpected catalog payload: {exc}") from exc
            cursor = data.get("cursor")
            if not cursor:
                return items

    async def _inventory_counts(self, token: str, ids: list[str]) -> dict[str, float]:
        counts: dict[str, float] = {}
        for start in range(0, len(ids), INVENTORY_BATCH_SIZE):
            batch = ids[start:start + INVENTORY_BATCH_SIZE]
            try:
                data = await self._request_json(
                    "POST",
                    "/inventory/counts/batch-retrieve",
                    token,
                    json={"catalog_object_ids": batch},
                )
            except ServerError as exc:
                logger.warning("Inventory batch at %s skipped: %s", start, exc)
                continue
            for object_id, quantity in sum_inventory_counts(data.get("counts") or []).items():
                counts[object_id] = counts.get(object_id, 0.0) + quantity
        logger.info("Square inventory fetched: %s variations with counts", len(counts))
        return counts

    async def _request_json(self, method: str, path: str, token: str, **kwargs: Any) -> dict[str, Any]:
        headers = {
            "Square-Version": self.api_version,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        url = f"{self.base_url}{path}"
        try:
            response = await asyncio.wait_for(
                self.session.request(method, url, headers=headers, **kwargs),
                timeout=RESOURCE_TIMEOUT,
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            raise ServerError(f"{method} {url} failed: {exc}") from exc
        if response.status_code != 200:
            logger.debug("Square error %s: %s", response.status_code, response.text)
            raise ServerError(f"{method} {url} returned {response.status_code}", status_code=response.status_code)
        try:
            data = response.json()
        except ValueError as exc:
            raise DecodeError(f"Invalid JSON from {url}") from exc
        if not isinstance(data, dict):
            raise DecodeError(f"Unexpected payload from {url}")
        return data
