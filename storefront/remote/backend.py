"""Dashboard backend client."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

import httpx

from storefront.logic.catalog import group_catalog_rows
from storefront.remote.errors import DecodeError, NotConfigured, ServerError
from storefront.remote.models import (
    Announcement,
    CatalogItem,
    CutType,
    Event,
    FlashSale,
    PopUpMarket,
)
from storefront.utils.dates import now_utc, parse_timestamp

logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUEST_TIMEOUT = 15.0
RESOURCE_TIMEOUT = 30.0

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_case(name: str) -> str:
    return _CAMEL_RE.sub(r"_\1", name).lower()


def normalize_keys(value: Any) -> Any:
    """Recursively rewrite camelCase mapping keys to snake_case."""
    if isinstance(value, dict):
        return {snake_case(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(v) for v in value]
    return value


class BackendClient:
    def __init__(
        self,
        base_url: str,
        *,
        prefix: str = "/api/public",
        session: httpx.AsyncClient | None = None,
        resource_timeout: float = RESOURCE_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.prefix = prefix.rstrip("/")
        self.session = session or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        self.resource_timeout = resource_timeout

    async def close(self) -> None:
        await self.session.aclose()

    def url(self, path: str) -> str:
        return f"{self.base_url}{self.prefix}/{path.lstrip('/')}"

    async def fetch_resource(self, path: str, decode: Callable[[Any], T]) -> T:
        response = await self._request("GET", self.url(path))
        payload = _json_body(response)
        try:
            return decode(normalize_keys(payload))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DecodeError(f"Unexpected payload from {path}: {exc}") from exc

    async def fetch_sales(self) -> list[FlashSale]:
        return await self.fetch_resource("flash-sales", _decode_list(decode_sale))

    async def fetch_markets(self) -> list[PopUpMarket]:
        return await self.fetch_resource("pop-up-markets", _decode_list(decode_market))

    async def fetch_announcements(self) -> list[Announcement]:
        return await self.fetch_resource("announcements", _decode_list(decode_announcement))

    async def fetch_events(self) -> list[Event]:
        return await self.fetch_resource("events", _decode_list(decode_event))

    async def fetch_catalog(self) -> list[CatalogItem]:
        return await self.fetch_resource("catalog", decode_catalog)

    async def register_device(self, payload: dict[str, Any]) -> None:
        await self._request("POST", self.url("register-device"), json=payload)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                self.session.request(method, url, **kwargs), timeout=self.resource_timeout
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            raise ServerError(f"{method} {url} failed: {exc}") from exc
        if response.status_code != 200:
            logger.debug("%s %s returned %s", method, url, response.status_code)
            raise ServerError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Invalid JSON from {response.request.url}") from exc


def _decode_list(decode: Callable[[dict[str, Any]], T]) -> Callable[[Any], list[T]]:
    def decoder(payload: Any) -> list[T]:
        if not isinstance(payload, list):
            raise TypeError(f"expected a list, got {type(payload).__name__}")
        return [decode(item) for item in payload]

    return decoder


def decode_sale(data: dict[str, Any]) -> FlashSale:
    now = now_utc()
    return FlashSale(
        id=str(data["id"]),
        title=data["title"],
        description=data.get("description") or "",
        cut_type=CutType.parse(data.get("cut_type")),
        original_price=float(data["original_price"]),
        sale_price=float(data["sale_price"]),
        weight_lbs=float(data["weight_lbs"]),
        starts_at=parse_timestamp(data.get("starts_at")) or now,
        expires_at=parse_timestamp(data.get("expires_at")) or now + timedelta(days=1),
        image_system_name=data.get("image_system_name") or "flame.fill",
        is_active=bool(data.get("is_active", True)),
    )


def decode_market(data: dict[str, Any]) -> PopUpMarket:
    return PopUpMarket(
        id=str(data["id"]),
        title=data["title"],
        description=data.get("description"),
        address=data.get("address"),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        starts_at=parse_timestamp(data.get("starts_at")),
        ends_at=parse_timestamp(data.get("ends_at")),
        is_active=bool(data.get("is_active", True)),
    )


def decode_event(data: dict[str, Any]) -> Event:
    return Event(
        id=str(data["id"]),
        title=data["title"],
        description=data.get("description"),
        location=data.get("location"),
        starts_at=parse_timestamp(data.get("starts_at")),
        ends_at=parse_timestamp(data.get("ends_at")),
        is_active=bool(data.get("is_active", True)),
    )


def decode_announcement(data: dict[str, Any]) -> Announcement:
    created_at = data.get("created_at")
    return Announcement(
        id=str(data["id"]),
        title=data["title"],
        message=data.get("message") or "",
        created_at=str(created_at) if created_at is not None else None,
        is_active=bool(data.get("is_active", True)),
    )


def decode_catalog(payload: Any) -> list[CatalogItem]:
    # The dashboard answers {"error": "..."} when the provider is not set up.
    if isinstance(payload, dict) and payload.get("error"):
        raise NotConfigured(payload["error"])
    return group_catalog_rows(payload["items"])
