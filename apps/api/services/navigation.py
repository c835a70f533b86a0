"""Site navigation: stored JSON array -> ordered NavLink list for the rendered page header."""

import logging
from dataclasses import dataclass
from typing import Any, Literal

logger = logging.getLogger(__name__)

LinkType = Literal["page", "external"]
EXTERNAL_PREFIXES = ("http://", "https://", "//")
UNSAFE_SCHEMES = ("javascript:", "data:", "vbscript:")


@dataclass(frozen=True)
class NavLink:
    label: str
    href: str
    type: LinkType
    target: str | None = None
    rel: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"label": self.label, "href": self.href, "type": self.type}
        if self.target:
            out["target"] = self.target
        if self.rel:
            out["rel"] = self.rel
        return out


def infer_link_type(href: str) -> LinkType:
    return "external" if href.lower().startswith(EXTERNAL_PREFIXES) else "page"


def _page_href(href: str) -> str:
    if href.startswith(("/", "#", "mailto:", "tel:")):
        return href
    return "/" + href


def build_navigation(raw: Any) -> list[NavLink]:
    """
    Ordered navigation links from stored site navigation.

    Malformed entries (non-objects, missing label/href, unsafe schemes) are skipped with a
    warning; a non-list value yields no links.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Ignoring non-array site navigation type=%s", type(raw).__name__)
        return []

    links: list[NavLink] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            logger.warning("Skipping navigation entry index=%d reason=not_object", index)
            continue
        label = entry.get("label")
        href = entry.get("href")
        if not isinstance(label, str) or not label.strip() or not isinstance(href, str) or not href.strip():
            logger.warning("Skipping navigation entry index=%d reason=missing_label_or_href", index)
            continue
        href = href.strip()
        if href.lower().startswith(UNSAFE_SCHEMES):
            logger.warning("Skipping navigation entry index=%d reason=unsafe_href", index)
            continue

        link_type = entry.get("type")
        if link_type not in ("page", "external"):
            link_type = infer_link_type(href)

        if link_type == "external":
            links.append(
                NavLink(label=label.strip(), href=href, type="external", target="_blank", rel="noopener noreferrer")
            )
        else:
            links.append(NavLink(label=label.strip(), href=_page_href(href), type="page"))
    return links
