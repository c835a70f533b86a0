"""Lint-like test: every public tenant-scoped repo function takes tenant_id as first parameter."""

import inspect

from apps.api.services import repo

# Hostname-addressed public reads and platform jobs (moderation, retention, view counters)
PLATFORM_FUNCTIONS = {
    "find_site_by_lookup_key",
    "find_page_for_path",
    "get_cached_render",
    "store_cached_render",
    "invalidate_render_cache",
    "record_page_view",
    "set_site_ban",
    "insert_audit_logs",
    "purge_audit_logs",
}


def test_repo_public_functions_start_with_tenant_id() -> None:
    """All public functions defined in repo.py have tenant_id as first parameter."""
    for name, obj in inspect.getmembers(repo, inspect.isfunction):
        if name.startswith("_") or name in PLATFORM_FUNCTIONS:
            continue
        if getattr(obj, "__module__", "") != repo.__name__:
            continue  # skip imports (e.g. get_db)
        params = list(inspect.signature(obj).parameters)
        assert len(params) >= 1, f"repo.{name} has no parameters"
        assert params[0] == "tenant_id", f"repo.{name} first param must be 'tenant_id', got {params[0]!r}"


def test_platform_functions_exist() -> None:
    """Allowlist stays in sync with repo.py."""
    for name in PLATFORM_FUNCTIONS:
        assert callable(getattr(repo, name, None)), f"repo.{name} is allowlisted but missing"
