"""Cron DB session on top of apps.api.db."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

from apps.api.db import get_db


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Transactional session for jobs that touch tables outside the repo (render_cache)."""
    with get_db() as session:
        yield session
