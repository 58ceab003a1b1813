"""Celery configuration for scheduled refreshes."""

from __future__ import annotations

from celery import Celery

from storefront.config import load_settings
from storefront.utils.dates import timezone_name

settings = load_settings()

celery_app = Celery("storefront", broker=settings.redis_url, backend=settings.redis_url)
celery_app.conf.timezone = timezone_name()
celery_app.conf.beat_schedule = {
    "refresh": {
        "task": "storefront.jobs.triggers.run_refresh",
        "schedule": settings.refresh_interval_minutes * 60.0,
    },
    "background-check": {
        "task": "storefront.jobs.triggers.run_background_check",
        "schedule": settings.refresh_interval_minutes * 60.0,
    },
}


@celery_app.task(name="storefront.jobs.triggers.run_refresh")
def run_refresh_task():  # pragma: no cover - executed by worker
    import asyncio

    from storefront.jobs.triggers import run_refresh

    result = asyncio.run(run_refresh())
    return {"updated": result.updated, "errors": sorted(result.errors)}


@celery_app.task(name="storefront.jobs.triggers.run_background_check")
def run_background_check_task():  # pragma: no cover - executed by worker
    import asyncio

    from storefront.jobs.triggers import run_background_check

    items = asyncio.run(run_background_check())
    return [item.to_dict() for item in items]
