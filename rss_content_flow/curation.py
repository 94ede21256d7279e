from __future__ import annotations

from datetime import datetime, timezone

from .config import DEFAULT_MAX_ITEMS
from .models import FeedItem


# Undated items sort as the oldest possible entry.
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _recency_key(item: FeedItem) -> datetime:
    return item.published_at or _OLDEST


def select_recent(items: list[FeedItem], limit: int = DEFAULT_MAX_ITEMS) -> list[FeedItem]:
    if limit <= 0:
        return []
    # sorted() is stable: equal timestamps keep collection order.
    ordered = sorted(items, key=_recency_key, reverse=True)
    return ordered[:limit]
