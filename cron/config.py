"""Cron config from environment."""

import os


def _int(val: str | None, default: int) -> int:
    if val is None or val.strip() == "":
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


class Config:
    """Cron configuration from env vars."""

    AUDIT_RETENTION_DAYS: int = _int(os.getenv("AUDIT_RETENTION_DAYS"), 90)
    PURGE_RENDER_CACHE: bool = os.getenv("PURGE_RENDER_CACHE", "1").strip().lower() in ("1", "true", "yes")


config = Config()
