"""Error taxonomy for the site builder core. Routes map these to HTTP responses in main.py."""


class SiteBuilderError(Exception):
    """Base exception for site builder errors."""

    pass


class NotFoundError(SiteBuilderError):
    """Raised when a site, page or template is missing (or owned by another tenant)."""

    def __init__(self, resource: str, identifier: str | None = None):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(message)


class ValidationError(SiteBuilderError):
    """Field-level validation failure. Raised before any write."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ConflictError(SiteBuilderError):
    """Unique value already taken (subdomain, custom domain, page slug)."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ForbiddenError(SiteBuilderError):
    """Caller may not perform this operation (e.g. deleting the home page, non-admin moderation)."""

    pass
