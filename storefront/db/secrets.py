"""Secure string storage capability."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.engine import Engine

from storefront.db.kv import KeyValueStore


class SecretStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemorySecretStore:
    def __init__(self, values: dict[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class KeyValueSecretStore:
    """Secrets kept in the local key-value table under their own namespace.

    Stand-in for a platform keychain; swap for the target platform's
    secure storage.
    """

    def __init__(self, engine: Engine) -> None:
        self._store = KeyValueStore(engine, namespace="secret:")

    def get(self, key: str) -> str | None:
        value = self._store.get_json(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._store.set_json(key, value)

    def delete(self, key: str) -> None:
        self._store.delete(key)
