#!/usr/bin/env python3
"""Audit retention purge: delete audit_log rows older than AUDIT_RETENTION_DAYS (default 90).

Also drops expired render_cache rows (PURGE_RENDER_CACHE=0 to skip).
Run daily from the scheduler; exits non-zero on failure.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from apps.api.services import audit, render_cache
from cron.config import config
from cron.db import get_session
from cron.logging import get_logger

logger = get_logger("audit_purge")


def run(retention_days: int, purge_cache: bool) -> dict[str, int]:
    """Purge expired rows. Returns counts per table."""
    removed = {"audit_log": audit.purge_expired(retention_days), "render_cache": 0}
    if purge_cache:
        with get_session() as session:
            removed["render_cache"] = render_cache.purge_expired(session)
    return removed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--days", type=int, default=config.AUDIT_RETENTION_DAYS, help="Retention window in days")
    parser.add_argument("--no-cache", action="store_true", help="Skip the render_cache purge")
    args = parser.parse_args(argv)

    if args.days < 1:
        logger.error("Refusing to purge with retention days=%s (must be >= 1)", args.days)
        return 2

    try:
        removed = run(args.days, config.PURGE_RENDER_CACHE and not args.no_cache)
    except Exception:
        logger.exception("audit_purge failed days=%d", args.days)
        return 1

    logger.info(
        "audit_purge done days=%d audit_log_removed=%d render_cache_removed=%d",
        args.days,
        removed["audit_log"],
        removed["render_cache"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
