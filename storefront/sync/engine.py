"""Refresh orchestration for sales, markets, announcements and events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storefront.remote.backend import BackendClient
from storefront.remote.errors import FetchError
from storefront.remote.square import SquareClient
from storefront.sync.inbox import NotificationInbox
from storefront.sync.state import ANNOUNCEMENTS, CATALOG, EVENTS, MARKETS, SALES, StoreState
from storefront.utils.dates import now_utc

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncResult:
    updated: list[str] = field(default_factory=list)
    errors: dict[str, FetchError] = field(default_factory=dict)
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors


class SyncEngine:
    def __init__(
        self,
        client: BackendClient,
        state: StoreState,
        inbox: NotificationInbox,
        *,
        square: SquareClient | None = None,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.client = client
        self.state = state
        self.inbox = inbox
        self.square = square
        self.clock = clock
        self._loading = 0

    def _fetchers(self) -> dict[str, Callable[[], Awaitable[list[Any]]]]:
        return {
            SALES: self.client.fetch_sales,
            MARKETS: self.client.fetch_markets,
            ANNOUNCEMENTS: self.client.fetch_announcements,
            EVENTS: self.client.fetch_events,
        }

    async def refresh(self) -> SyncResult:
        # Only a refresh that starts with no sales on screen shows the spinner;
        # it stays up until the last such refresh finishes.
        spinner = not self.state.sales
        if spinner:
            self._loading += 1
            self.state.is_loading = True
        try:
            result = await self._refresh()
        finally:
            if spinner:
                self._loading -= 1
                self.state.is_loading = self._loading > 0
        self.inbox.sync_announcements(self.state.announcements)
        return result

    async def _refresh(self) -> SyncResult:
        fetchers = self._fetchers()
        outcomes = await asyncio.gather(*(fetch() for fetch in fetchers.values()), return_exceptions=True)
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        if not failures:
            # One synchronous step: no partial refresh is observable.
            for resource, value in zip(fetchers, outcomes):
                self._apply(resource, value)
            self.state.last_refreshed_at = self.clock()
            return SyncResult(updated=list(fetchers))
        for failure in failures:
            if not isinstance(failure, FetchError):
                raise failure
        logger.info("Combined refresh failed (%s); fetching resources individually", failures[0])
        return await self._refresh_individually(fetchers)

    async def _refresh_individually(
        self, fetchers: dict[str, Callable[[], Awaitable[list[Any]]]]
    ) -> SyncResult:
        result = SyncResult(used_fallback=True)
        for resource, fetch in fetchers.items():
            try:
                value = await fetch()
            except FetchError as exc:
                logger.warning("Refresh of %s failed; keeping cached data: %s", resource, exc)
                self._record_error(resource, exc)
                result.errors[resource] = exc
                continue
            self._apply(resource, value)
            result.updated.append(resource)
        if result.updated:
            self.state.last_refreshed_at = self.clock()
        return result

    async def refresh_catalog(self) -> SyncResult:
        use_square = self.square is not None and self.square.is_configured
        fetch = self.square.fetch_catalog if use_square else self.client.fetch_catalog
        try:
            items = await fetch()
        except FetchError as exc:
            logger.warning("Catalog refresh failed; keeping cached menu: %s", exc)
            self._record_error(CATALOG, exc)
            return SyncResult(errors={CATALOG: exc})
        self._apply(CATALOG, items)
        return SyncResult(updated=[CATALOG])

    def _apply(self, resource: str, value: list[Any]) -> None:
        setattr(self.state, resource, value)
        self.state.errors.pop(resource, None)

    def _record_error(self, resource: str, exc: FetchError) -> None:
        if not self.state.has_data(resource):
            self.state.errors[resource] = exc.user_message

