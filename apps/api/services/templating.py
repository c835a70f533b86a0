"""Jinja2 environment for block and page templates (apps/api/templates)."""

import re
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

SAFE_URL = re.compile(r"^(?:#|/|https?://|mailto:|tel:|data:image/)", re.IGNORECASE)


def _safe_url(value: Any, fallback: str = "#") -> str:
    """Pass through relative/http(s)/mailto/tel URLs; anything else becomes fallback."""
    if not isinstance(value, str) or not value.strip():
        return fallback
    value = value.strip()
    return value if SAFE_URL.match(value) else fallback


def _video_embed(value: Any) -> str:
    """YouTube/Vimeo page URL -> embeddable player URL. Other http(s) URLs pass through."""
    url = _safe_url(value, "")
    if not url:
        return ""
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower().removeprefix("www.")
    if host in ("youtube.com", "m.youtube.com"):
        video_id = parse_qs(parsed.query).get("v", [""])[0]
        if video_id:
            return f"https://www.youtube.com/embed/{video_id}"
    if host == "youtu.be" and parsed.path.strip("/"):
        return f"https://www.youtube.com/embed/{parsed.path.strip('/')}"
    if host == "vimeo.com" and parsed.path.strip("/").isdigit():
        return f"https://player.vimeo.com/video/{parsed.path.strip('/')}"
    return url


def _price(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value or "")
    if float(value).is_integer():
        return f"{int(value)}"
    return f"{value:.2f}"


def _split_link(value: Any) -> tuple[str, str]:
    """Footer link entries are stored as 'Label|href'."""
    text = str(value or "")
    label, _, href = text.partition("|")
    return label.strip(), _safe_url(href.strip() or "#")


def create_jinja_env(templates_dir: Path | None = None) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["safe_url"] = _safe_url
    env.filters["video_embed"] = _video_embed
    env.filters["price"] = _price
    env.filters["split_link"] = _split_link
    return env


_env: Environment | None = None


def get_jinja_env() -> Environment:
    """Shared environment (lazy singleton)."""
    global _env
    if _env is None:
        _env = create_jinja_env()
    return _env


def render_template(template_name: str, **context: Any) -> str:
    return get_jinja_env().get_template(template_name).render(**context)
