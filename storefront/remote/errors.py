"""Typed errors raised by the remote clients."""

from __future__ import annotations


class FetchError(RuntimeError):
    user_message = "Something went wrong. Please try again."


class ServerError(FetchError):
    user_message = "Unable to reach the server. Please try again."

    def __init__(self, message: str = "server error", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(FetchError):
    user_message = "Unexpected response from server."


class NotConfigured(FetchError):
    user_message = "Menu is being set up. Check back soon!"
