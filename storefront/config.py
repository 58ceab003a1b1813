"""Runtime settings: packaged defaults, then .env, then the environment."""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, fields

import yaml
from dotenv import load_dotenv

SETTINGS_PATH = pathlib.Path(__file__).with_name("settings.yml")

ENV_VARS = {
    "api_base_url": "STOREFRONT_API_BASE_URL",
    "api_prefix": "STOREFRONT_API_PREFIX",
    "square_base_url": "SQUARE_BASE_URL",
    "square_api_version": "SQUARE_API_VERSION",
    "square_access_token": "SQUARE_ACCESS_TOKEN",
    "database_url": "DATABASE_URL",
    "redis_url": "REDIS_URL",
    "refresh_interval_minutes": "REFRESH_INTERVAL_MINUTES",
    "platform": "STOREFRONT_PLATFORM",
}


@dataclass(slots=True)
class Settings:
    api_base_url: str
    api_prefix: str
    square_base_url: str
    square_api_version: str
    database_url: str
    redis_url: str
    refresh_interval_minutes: int
    platform: str
    square_access_token: str | None = None


def load_settings(path: pathlib.Path = SETTINGS_PATH) -> Settings:
    load_dotenv()
    data = yaml.safe_load(path.read_text()) or {}
    for name, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            data[name] = value
    known = {f.name for f in fields(Settings)}
    settings = Settings(**{k: v for k, v in data.items() if k in known})
    settings.refresh_interval_minutes = int(settings.refresh_interval_minutes)
    return settings
