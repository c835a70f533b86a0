"""API config from environment."""

import os


def _int(val: str | None, default: int) -> int:
    if val is None or val.strip() == "":
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


def _list(val: str | None, default: list[str] | None = None) -> list[str]:
    if val is None or val.strip() == "":
        return list(default or [])
    return [s.strip().lower() for s in val.split(",") if s.strip()]


class Config:
    """Site builder configuration from env vars. Read at attribute access so tests can monkeypatch env."""

    @property
    def APP_DOMAIN(self) -> str:
        return (os.getenv("APP_DOMAIN") or "sitebuilder.local").strip().lower()

    @property
    def APP_SUBDOMAIN(self) -> str:
        return (os.getenv("APP_SUBDOMAIN") or "app").strip().lower()

    @property
    def RESERVED_SUBDOMAINS(self) -> list[str]:
        return _list(os.getenv("RESERVED_SUBDOMAINS"), ["app", "www", "api", "admin"])

    @property
    def RENDER_CACHE_TTL_SECONDS(self) -> int:
        return _int(os.getenv("RENDER_CACHE_TTL_SECONDS"), 300)

    @property
    def AUDIT_RETENTION_DAYS(self) -> int:
        return _int(os.getenv("AUDIT_RETENTION_DAYS"), 90)

    @property
    def ADMIN_TENANTS(self) -> list[str]:
        return _list(os.getenv("ADMIN_TENANTS"))


config = Config()
