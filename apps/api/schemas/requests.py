"""Request schemas for API endpoints. tenant_id is never accepted in payload."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SiteCreateRequest(BaseModel):
    """Request body for POST /sites."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    subdomain: str = Field(..., description="3-63 chars, lowercase letters, digits, hyphens")
    description: str | None = None
    custom_domain: str | None = None


class SiteUpdateRequest(BaseModel):
    """Request body for PATCH /sites/{site_id}. Only fields present are updated."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None


class SiteDomainRequest(BaseModel):
    """Request body for PATCH /sites/{site_id}/domain. custom_domain "" or null removes it."""

    model_config = ConfigDict(extra="forbid")

    subdomain: str | None = None
    custom_domain: str | None = None


class SiteStylesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    styles: dict[str, Any]


class NavLinkIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: str
    href: str
    type: str | None = Field(None, description="page | external; inferred from href when omitted")


class SiteNavigationRequest(BaseModel):
    """Request body for PATCH /sites/{site_id}/navigation."""

    model_config = ConfigDict(extra="forbid")

    navigation: list[NavLinkIn] | None = None
    logo_url: str | None = None
    nav_color: str | None = None


class SiteCodeRequest(BaseModel):
    """Request body for PATCH /sites/{site_id}/code-injection."""

    model_config = ConfigDict(extra="forbid")

    custom_head_code: str | None = None
    custom_body_code: str | None = None


class SiteTemplateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_template: bool | None = None
    template_category: str | None = None
    template_description: str | None = None
    thumbnail_url: str | None = None


class PageCreateRequest(BaseModel):
    """Request body for POST /sites/{site_id}/pages."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field("", description='"" for the root page, else [a-z0-9-]+')
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    seo_image: str | None = None


class PageUpdateRequest(BaseModel):
    """Request body for PATCH /pages/{page_id}. Content is saved via PUT /pages/{page_id}/draft."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    seo_image: str | None = None


class DraftSaveRequest(BaseModel):
    """Request body for PUT /pages/{page_id}/draft. Shape is checked by the publish service."""

    model_config = ConfigDict(extra="forbid")

    content: Any


class BlockValidateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class TemplateCloneRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    subdomain: str


class BanRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(..., min_length=1, max_length=512)


class TrackViewRequest(BaseModel):
    """Request body for POST /analytics (public, sent by rendered sites)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    site_id: str | None = Field(None, alias="siteId")
    path: str | None = None
