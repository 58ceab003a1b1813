"""Device identity and backend registration."""

from __future__ import annotations

import asyncio
import enum
import logging
import platform as _platform
import uuid
from typing import Any

from storefront.db.secrets import SecretStore
from storefront.remote.backend import BackendClient
from storefront.remote.errors import FetchError
from storefront.utils.retry import RetryResult, Sleep, linear_backoff, retry_async

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "device_id"
PUSH_TOKEN_KEY = "push_token"
MAX_ATTEMPTS = 3
BACKOFF_STEP = 2.0
APNS_ENVIRONMENT = "production"


class IdentityState(enum.Enum):
    NO_IDENTITY = "none"
    WEAK = "weak"
    STRONG = "strong"


class DeviceRegistrar:
    """Keeps the backend's record of this device current.

    The weak identity is a uuid generated once and kept in the secret store.
    A push credential, once received, is the strong identity. It is kept in
    the same store so a later launch still registers it, and a weak
    registration is never sent after that.
    """

    def __init__(
        self,
        client: BackendClient,
        secrets: SecretStore,
        *,
        platform: str = "ios",
        device_name: str | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.client = client
        self.secrets = secrets
        self.platform = platform
        self.device_name = device_name or _platform.node() or "unknown"
        self.sleep = sleep

    @property
    def push_token(self) -> str | None:
        return self.secrets.get(PUSH_TOKEN_KEY)

    @property
    def state(self) -> IdentityState:
        if self.push_token:
            return IdentityState.STRONG
        if self.secrets.get(DEVICE_ID_KEY):
            return IdentityState.WEAK
        return IdentityState.NO_IDENTITY

    def device_id(self) -> str:
        device_id = self.secrets.get(DEVICE_ID_KEY)
        if not device_id:
            device_id = str(uuid.uuid4())
            self.secrets.set(DEVICE_ID_KEY, device_id)
            logger.info("Generated device id %s", device_id)
        return device_id

    def strongest_identity(self) -> str:
        return self.push_token or self.device_id()

    def payload(self, token: str) -> dict[str, Any]:
        return {
            "token": token,
            "platform": self.platform,
            "device_id": self.device_id(),
            "device_name": self.device_name,
            "apns_environment": APNS_ENVIRONMENT,
        }

    def _superseded(self, identity: str) -> bool:
        push_token = self.push_token
        return bool(push_token) and identity != push_token

    async def register(self, identity: str) -> RetryResult:
        if self._superseded(identity):
            logger.info("Skipping weak registration; push credential already registered")
            return RetryResult(success=True, attempts=0, skipped=True)
        body = self.payload(identity)

        async def attempt() -> None:
            # a credential may arrive while a weak registration is backing off
            if self._superseded(identity):
                logger.info("Push credential arrived; dropping pending weak registration")
                return
            await self.client.register_device(body)

        result = await retry_async(
            attempt,
            attempts=MAX_ATTEMPTS,
            retry_on=(FetchError,),
            backoff=linear_backoff(BACKOFF_STEP),
            sleep=self.sleep,
        )
        if result.success:
            logger.info("Device registered after %s attempt(s)", result.attempts)
        else:
            logger.warning("Device registration gave up after %s attempts: %s", result.attempts, result.error)
        return result

    async def receive_push_credential(self, token: str | bytes) -> RetryResult:
        if isinstance(token, (bytes, bytearray)):
            token = token.hex()
        if token != self.push_token:
            self.secrets.set(PUSH_TOKEN_KEY, token)
        return await self.register(token)

    async def refresh_registration(self) -> RetryResult:
        return await self.register(self.strongest_identity())
