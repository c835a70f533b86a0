"""Block and page rendering. Pure with respect to stored content: inputs are never mutated."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from markupsafe import Markup

from apps.api.services.navigation import build_navigation
from apps.api.services.registry import BlockRegistry, prepare_block_data
from apps.api.services.templating import get_jinja_env, render_template
from apps.api.services.theme import build_theme

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedBlock:
    id: str
    type: str
    html: str


def render_blocks(
    content: Iterable[Any] | None,
    registry: BlockRegistry,
    *,
    site_id: str,
    site_name: str,
) -> list[RenderedBlock]:
    """
    Render an ordered block array. Output order equals storage order.

    Skipped (with a warning): non-object entries, unregistered types, visible == false,
    and blocks whose template fails to render.
    """
    env = get_jinja_env()
    rendered: list[RenderedBlock] = []
    for index, block in enumerate(content or []):
        if not isinstance(block, dict):
            logger.warning("Skipping malformed block index=%d site_id=%s", index, site_id)
            continue
        if block.get("visible") is False:
            continue
        block_type = block.get("type")
        definition = registry.resolve(block_type)
        if definition is None:
            logger.warning("Unknown block type=%r index=%d site_id=%s; skipping", block_type, index, site_id)
            continue

        block_id = block.get("id") if isinstance(block.get("id"), str) else f"block-{index}"
        props = prepare_block_data(definition, block.get("data"))
        props["siteId"] = site_id
        props["siteName"] = site_name
        try:
            html = env.get_template(definition.template).render(data=props, block_id=block_id)
        except Exception:
            logger.exception("Block render failed type=%s id=%s site_id=%s", definition.type, block_id, site_id)
            continue
        rendered.append(RenderedBlock(id=block_id, type=definition.type, html=html))
    return rendered


def _site_chrome(site: dict[str, Any] | None) -> dict[str, Any]:
    """Theme and header context shared by content and status pages."""
    site = site or {}
    theme = build_theme(site.get("styles"))
    return {
        "site_id": site.get("id"),
        "site_name": site.get("name") or "",
        "theme_css": theme.to_css(),
        "font_url": theme.font_stylesheet_url(),
    }


def render_page_html(
    site: dict[str, Any],
    page: dict[str, Any],
    content: list[Any] | None,
    registry: BlockRegistry,
    *,
    preview: bool = False,
) -> str:
    """Full HTML document for one page: theme, navigation, blocks and custom code."""
    blocks = render_blocks(content, registry, site_id=site["id"], site_name=site["name"])
    context = _site_chrome(site)
    context.update(
        {
            "page_title": page.get("seo_title") or f"{page.get('name') or 'Home'} | {site['name']}",
            "seo_description": page.get("seo_description") or site.get("description"),
            "seo_keywords": page.get("seo_keywords"),
            "seo_image": page.get("seo_image"),
            "path": page.get("path") or "/",
            "nav_links": build_navigation(site.get("navigation")),
            "logo_url": site.get("logo_url"),
            "nav_color": site.get("nav_color"),
            "custom_head_code": Markup(site.get("custom_head_code") or ""),
            "custom_body_code": Markup(site.get("custom_body_code") or ""),
            "blocks": blocks,
            "preview": preview,
        }
    )
    return render_template("page.html", **context)


def render_coming_soon(site: dict[str, Any]) -> str:
    return render_template("coming_soon.html", **_site_chrome(site))


def render_not_found(site: dict[str, Any] | None = None, message: str | None = None) -> str:
    return render_template("not_found.html", message=message, **_site_chrome(site))


def render_suspended() -> str:
    # No tenant branding on the suspension page.
    return render_template("suspended.html", **_site_chrome(None))
