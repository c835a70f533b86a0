"""Stable content hashing for block arrays. Key order never affects the hash."""

import hashlib
import json
from typing import Any


def canonical_json(content: Any) -> str:
    """Serialize JSON with object keys sorted at every depth and compact separators."""
    return json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def generate_content_hash(content: Any) -> str:
    """SHA256 hex of canonical JSON. None (absent content) hashes to the empty string."""
    if content is None:
        return ""
    return hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()


def has_content_changed(draft_content: Any, published_content: Any) -> bool:
    """
    True when the draft differs from what is published.

    A missing draft has nothing to publish, so it never counts as a change. A draft on a
    never-published page (even an empty list) always does.
    """
    if draft_content is None:
        return False
    return generate_content_hash(draft_content) != generate_content_hash(published_content)
