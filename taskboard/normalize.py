"""
Field normalization shared by the create and update paths of every service.

Each rule lives here once so a field is sanitized the same way no matter
which operation touches it.
"""
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Set

MAX_LINKS = 20
LINK_LABEL_MAX = 120
LINK_URL_MAX = 500

_WHITESPACE = re.compile(r"\s+")


def utc_now() -> str:
    """ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_text(value: Any) -> str:
    """Trimmed string, or "" for anything that is not a string."""
    return value.strip() if isinstance(value, str) else ""


def truncate(value: Any, limit: int) -> str:
    """Trim and silently cut a text field to its maximum length."""
    return normalize_text(value)[:limit]


def slugify_status(value: Any) -> str:
    """Status slug: trimmed, whitespace runs joined with "_", lowercased."""
    return _WHITESPACE.sub("_", normalize_text(value)).lower()


def coerce_position(value: Any) -> Optional[int]:
    """Return an integer position, or None when value is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def coerce_order(value: Any, fallback: int) -> float:
    """Column order as supplied when numeric, else its index in the list."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    return value


def unique_ids(ids: Any, valid: Set[str]) -> List[str]:
    """Keep ids that exist in `valid`, first occurrence wins, order preserved."""
    if not isinstance(ids, (list, tuple)):
        return []
    seen = set()
    result = []
    for item in ids:
        if isinstance(item, str) and item in valid and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def sanitize_links(links: Any) -> List[dict]:
    """
    Normalize a list of {id, label, url} links.

    Entries with neither a url nor a label are dropped, labels default to
    "Link", and at most MAX_LINKS entries are kept.
    """
    if not isinstance(links, (list, tuple)):
        return []
    result = []
    for link in links:
        if not isinstance(link, dict) or not (link.get("url") or link.get("label")):
            continue
        result.append({
            "id": link.get("id") or new_id(),
            "label": truncate(link.get("label"), LINK_LABEL_MAX) or "Link",
            "url": truncate(link.get("url"), LINK_URL_MAX),
        })
    return result[:MAX_LINKS]


def name_taken(name: str, existing: Iterable[Any], exclude_id: Optional[str] = None) -> bool:
    """True when another record already uses `name`, compared case-insensitively."""
    wanted = name.lower()
    return any(
        item.name.lower() == wanted and item.id != exclude_id
        for item in existing
    )
