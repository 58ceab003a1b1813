"""Datetime helpers."""

from __future__ import annotations

import os
from datetime import datetime

import pendulum

DEFAULT_TZ = "America/New_York"


def timezone_name() -> str:
    return os.environ.get("TIMEZONE", DEFAULT_TZ)


def now_utc() -> pendulum.DateTime:
    return pendulum.now("UTC")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, with or without fractional seconds."""
    if not value:
        return None
    try:
        parsed = pendulum.parse(value)
    except ValueError:
        return None
    if not isinstance(parsed, datetime):
        return None
    return parsed


def format_timestamp(value: datetime) -> str:
    return pendulum.instance(value).in_timezone("UTC").to_iso8601_string()
