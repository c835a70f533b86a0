"""Response schemas for API endpoints. Contract-frozen: extra fields forbidden."""

from datetime import date as date_type
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordModel(BaseModel):
    """Response model built from a repo record dict; keys outside the contract are dropped."""

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        return cls(**{k: v for k, v in record.items() if k in cls.model_fields})


class SiteOut(RecordModel):
    """A site as returned to its owner."""

    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    description: str | None = None
    subdomain: str
    custom_domain: str | None = None
    url: str
    styles: dict[str, Any] = Field(default_factory=dict)
    navigation: list[Any] = Field(default_factory=list)
    logo_url: str | None = None
    nav_color: str | None = None
    custom_head_code: str | None = None
    custom_body_code: str | None = None
    is_template: bool = False
    template_category: str | None = None
    template_description: str | None = None
    thumbnail_url: str | None = None
    is_banned: bool = False
    ban_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class PageSummaryOut(RecordModel):
    """Page metadata without content (list views)."""

    model_config = ConfigDict(extra="forbid")

    id: str
    site_id: str
    name: str
    slug: str
    path: str
    is_home_page: bool
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    seo_image: str | None = None
    last_published_at: datetime | None = None
    is_published: bool
    has_unpublished_changes: bool
    created_at: datetime
    updated_at: datetime


class PageOut(PageSummaryOut):
    """Page with draft and published block arrays."""

    draft_content: list[Any] | None = None
    published_content: list[Any] | None = None


class PageChangesOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    page_id: str
    has_unpublished_changes: bool


class PublishResponse(BaseModel):
    """Outcome of POST /sites/{site_id}/publish. Failures are reported here, not as 5xx."""

    model_config = ConfigDict(extra="forbid")

    success: bool
    message: str
    site_url: str | None = None
    pages_published: int = 0
    pages_skipped: int = 0
    error: str | None = None


class UnpublishResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool
    pages_unpublished: int


class DeletedResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    deleted: bool = True


class BlockDefinitionOut(BaseModel):
    """One palette entry for the editor."""

    model_config = ConfigDict(extra="forbid")

    type: str
    name: str
    description: str
    category: str
    toolbar_label: str
    default_data: dict[str, Any]
    fields: dict[str, Any]


class BlockInstanceOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    type: str
    data: dict[str, Any]
    visible: bool = True


class BlockValidationOut(BaseModel):
    """Result of POST /blocks/validate. missing_component=true when the type is not registered."""

    model_config = ConfigDict(extra="forbid")

    type: str
    valid: bool
    missing_component: bool = False
    toolbar_label: str
    data: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)


class ThemeOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    variables: dict[str, str]
    css: str
    font_url: str
    navigation: list[dict[str, Any]]


class AuditLogOut(RecordModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    action: str
    entity_type: str
    entity_id: str
    actor_id: str
    site_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class DailyViewsOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: date_type
    views: int


class PathViewsOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    views: int


class SiteAnalyticsOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    site_id: str
    days: int
    since: date_type
    total_views: int
    daily: list[DailyViewsOut]
    top_paths: list[PathViewsOut]


class TrackViewResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: bool = True


class TemplateOut(RecordModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    description: str | None = None
    category: str | None = None
    thumbnail_url: str | None = None
