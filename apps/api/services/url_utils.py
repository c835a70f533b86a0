"""Hostname, domain and slug normalization for site addressing."""

import re
from urllib.parse import urlparse

from apps.api.config import config
from apps.api.services.errors import ValidationError

SUBDOMAIN_MIN_LEN = 3
SUBDOMAIN_MAX_LEN = 63

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
CUSTOM_DOMAIN_PATTERN = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,}$")
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

LOCAL_HOSTS = ("localhost", "127.0.0.1")


def normalize_subdomain(subdomain: str) -> str:
    """
    Lowercase and validate a subdomain. Returns the stored form.

    Rules:
    - 3 to 63 characters
    - lowercase letters, digits and hyphens, no leading/trailing hyphen
    - not a reserved platform name (app, www, ...)
    """
    value = (subdomain or "").strip().lower()
    if len(value) < SUBDOMAIN_MIN_LEN:
        raise ValidationError("subdomain", f"Subdomain must be at least {SUBDOMAIN_MIN_LEN} characters")
    if len(value) > SUBDOMAIN_MAX_LEN:
        raise ValidationError("subdomain", f"Subdomain must be at most {SUBDOMAIN_MAX_LEN} characters")
    if not SUBDOMAIN_PATTERN.match(value):
        raise ValidationError("subdomain", "Subdomain must be alphanumeric and can contain hyphens")
    if value in config.RESERVED_SUBDOMAINS:
        raise ValidationError("subdomain", f"Subdomain '{value}' is reserved")
    return value


def normalize_custom_domain(custom_domain: str | None) -> str | None:
    """
    Normalize and validate a custom domain. Empty input clears the domain (returns None).

    "https://www.Example.com/" -> "example.com": scheme, www., path and trailing slash
    are stripped; the result is lowercased.
    """
    if custom_domain is None:
        return None
    value = custom_domain.strip().lower()
    if not value:
        return None
    value = re.sub(r"^[a-z][a-z0-9+.-]*://", "", value)
    value = value.split("/", 1)[0]
    value = value.split(":", 1)[0]
    if value.startswith("www."):
        value = value[len("www."):]
    value = value.rstrip(".")
    if not CUSTOM_DOMAIN_PATTERN.match(value):
        raise ValidationError("custom_domain", "Invalid domain format")
    app_domain = config.APP_DOMAIN
    if value == app_domain or value.endswith(f".{app_domain}"):
        raise ValidationError("custom_domain", "Custom domain cannot be a platform domain")
    return value


def validate_slug(slug: str | None) -> str:
    """Return the stored slug. "" and "/" mean the root page; otherwise [a-z0-9-]+."""
    value = (slug or "").strip()
    if value in ("", "/"):
        return ""
    if not SLUG_PATTERN.match(value):
        raise ValidationError("slug", "Invalid slug. Use only lowercase letters, numbers, and hyphens.")
    return value


def path_to_slug(path: str | None) -> str:
    """Request path -> slug used for exact page matching. "/" and "" -> "" (root)."""
    return (path or "").strip().strip("/")


def normalize_hostname(hostname: str) -> str:
    """Lowercase, drop port and leading www."""
    host = (hostname or "").strip().lower()
    if "://" in host:
        host = urlparse(host).netloc or host
    host = host.split(":", 1)[0].rstrip(".")
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def site_lookup_key(hostname: str) -> str | None:
    """
    Map an inbound hostname to the key matched against Site.subdomain / Site.custom_domain.

    Returns None for platform hosts (APP_DOMAIN, the dashboard subdomain, bare localhost).
    """
    host = normalize_hostname(hostname)
    if not host:
        return None
    app_domain = config.APP_DOMAIN
    if host in (app_domain, f"{config.APP_SUBDOMAIN}.{app_domain}") or host in LOCAL_HOSTS:
        return None
    if host.endswith(f".{app_domain}"):
        return host[: -len(app_domain) - 1]
    for local in LOCAL_HOSTS:
        if host.endswith(f".{local}"):
            return host[: -len(local) - 1]
    return host


def site_public_url(subdomain: str, custom_domain: str | None) -> str:
    """Live URL of a site: custom domain when set, else the platform subdomain."""
    if custom_domain:
        return f"https://{custom_domain}"
    return f"https://{subdomain}.{config.APP_DOMAIN}"
