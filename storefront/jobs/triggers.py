"""Wiring of the sync core and the lifecycle triggers that drive it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.engine import Engine

from storefront.config import Settings, load_settings
from storefront.db.kv import KeyValueStore, ensure_schema
from storefront.db.secrets import KeyValueSecretStore, SecretStore
from storefront.db.session import create_engine_from_env
from storefront.device.registrar import DeviceRegistrar
from storefront.remote.backend import BackendClient
from storefront.remote.square import TOKEN_KEY, SquareClient
from storefront.sync.engine import SyncEngine, SyncResult
from storefront.sync.inbox import InboxItem, NotificationInbox
from storefront.sync.preferences import PreferenceStore
from storefront.sync.state import StoreState
from storefront.utils.retry import RetryResult

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    client: BackendClient
    square: SquareClient
    store: KeyValueStore
    secrets: SecretStore
    state: StoreState = field(default_factory=StoreState)
    platform: str = "ios"

    def __post_init__(self) -> None:
        self.inbox = NotificationInbox(self.store)
        self.preferences = PreferenceStore(self.store)
        self.engine = SyncEngine(self.client, self.state, self.inbox, square=self.square)
        self.registrar = DeviceRegistrar(self.client, self.secrets, platform=self.platform)
        self.registration: asyncio.Task[RetryResult] | None = None

    def start_registration(self) -> asyncio.Task[RetryResult]:
        """Refresh the device registration without holding up the caller."""
        if self.registration is None or self.registration.done():
            self.registration = asyncio.create_task(self.registrar.refresh_registration())
        return self.registration

    async def close(self) -> None:
        if self.registration is not None:
            await self.registration
        await self.client.close()
        await self.square.close()

    async def on_launch(self) -> SyncResult:
        logger.info("App launch")
        self.start_registration()
        return await self.engine.refresh()

    async def on_foreground(self) -> SyncResult:
        logger.info("App foreground")
        self.start_registration()
        return await self.engine.refresh()

    async def on_permission_check(self, authorized: bool) -> None:
        if authorized:
            await self.registrar.refresh_registration()

    async def on_push_credential(self, token: str | bytes) -> None:
        await self.registrar.receive_push_credential(token)

    async def on_push_received(self, payload: dict[str, Any]) -> SyncResult:
        title, body = push_alert(payload)
        if title or body:
            self.inbox.add_item(title, body)
        return await self.engine.refresh()

    async def on_background_wake(self) -> list[InboxItem]:
        """Poll for sales and announcements while the app is not in front.

        Returns the sale alerts the caller should deliver locally.
        """
        await self.engine.refresh()
        return self.inbox.sync_sales(self.state.sales, preferences=self.preferences.preferences)


def push_alert(payload: dict[str, Any]) -> tuple[str, str]:
    """Title and body of an APNs-style payload."""
    alert = (payload.get("aps") or {}).get("alert", payload.get("alert"))
    if isinstance(alert, str):
        return "", alert
    if isinstance(alert, dict):
        return alert.get("title") or "", alert.get("body") or ""
    return payload.get("title") or "", payload.get("body") or ""


def build_runtime(settings: Settings | None = None, *, engine: Engine | None = None) -> Runtime:
    settings = settings or load_settings()
    engine = engine or create_engine_from_env(settings.database_url)
    ensure_schema(engine)
    store = KeyValueStore(engine)
    secrets = KeyValueSecretStore(engine)
    if settings.square_access_token and not secrets.get(TOKEN_KEY):
        secrets.set(TOKEN_KEY, settings.square_access_token)
    client = BackendClient(settings.api_base_url, prefix=settings.api_prefix)
    square = SquareClient(
        secrets, base_url=settings.square_base_url, api_version=settings.square_api_version
    )
    return Runtime(client=client, square=square, store=store, secrets=secrets, platform=settings.platform)


async def run_refresh() -> SyncResult:
    runtime = build_runtime()
    try:
        result = await runtime.on_foreground()
        await runtime.engine.refresh_catalog()
        return result
    finally:
        await runtime.close()


async def run_background_check() -> list[InboxItem]:
    runtime = build_runtime()
    try:
        return await runtime.on_background_wake()
    finally:
        await runtime.close()


if __name__ == "__main__":
    asyncio.run(run_refresh())
