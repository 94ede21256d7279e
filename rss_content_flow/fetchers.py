##########################################################################################
#
# Script name: fetchers.py
#
# Description: Fetches configured RSS feeds and normalizes their entries into FeedItems.
#
##########################################################################################

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import feedparser
import requests
from dateutil import parser as date_parser

from .config import DEFAULT_TIMEOUT
from .errors import SourceFetchError
from .models import FeedItem
from .utils import normalize_whitespace, strip_html


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
USER_AGENT = 'rss-content-flow/1.0 (+https://github.com/)'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def parse_published(entry: dict) -> datetime | None:
    candidates = [
        entry.get('published'),
        entry.get('updated'),
        entry.get('created'),
    ]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = date_parser.parse(candidate)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
        except (ValueError, TypeError, OverflowError):
            continue
    return None


def parse_feed_document(url: str, document: bytes | str) -> list[FeedItem]:
    parsed = feedparser.parse(document)
    entries = parsed.entries
    if getattr(parsed, 'bozo', False):
        if not entries:
            reason = getattr(parsed, 'bozo_exception', None) or 'not a syndication document'
            raise SourceFetchError(url, str(reason))
        log.warning('RSS parse warning for %s', url)

    source_name = normalize_whitespace(parsed.feed.get('title', '')) or url
    items: list[FeedItem] = []
    for entry in entries:
        title = strip_html(entry.get('title', ''))
        link = (entry.get('link') or '').strip()
        if not title and not link:
            continue
        summary = entry.get('summary') or entry.get('description') or ''
        items.append(
            FeedItem(
                title=title,
                link=link,
                published_at=parse_published(entry),
                summary=strip_html(summary),
                source_name=source_name,
            )
        )
    log.info("Feed '%s' (%s) parsed. Found %d item(s).", source_name, url, len(items))
    return items


def fetch_feed(url: str, session=None, timeout: float = DEFAULT_TIMEOUT) -> list[FeedItem]:
    http = session or requests
    try:
        response = http.get(url, headers={'User-Agent': USER_AGENT}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise SourceFetchError(url, str(exc)) from exc
    return parse_feed_document(url, response.content)


def _fetch_one(fetch, url: str) -> list[FeedItem]:
    try:
        return fetch(url)
    except SourceFetchError as exc:
        log.warning('Skipping feed %s: %s', url, exc.reason)
    except Exception as exc:  # noqa: BLE001
        log.warning('Skipping feed %s: %s', url, exc)
    return []


def collect_feed_items(urls: list[str], fetch=fetch_feed, max_workers: int = 1) -> list[FeedItem]:
    '''
    Fetch every configured feed and merge their items.

    Input:
        urls: feed URLs, in configured order.
        fetch: callable taking a URL and returning FeedItems. Raising marks
            that feed as failed; remaining feeds are still collected.
        max_workers: fan out over a thread pool when greater than one.

    Output:
        FeedItems of all feeds that succeeded, grouped in configured feed order.
    '''
    log.info('Reading %d feed(s)...', len(urls))
    if max_workers > 1 and len(urls) > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(urls))) as pool:
            batches = list(pool.map(lambda url: _fetch_one(fetch, url), urls))
    else:
        batches = [_fetch_one(fetch, url) for url in urls]

    items = [item for batch in batches for item in batch]
    failed = sum(1 for batch in batches if not batch)
    log.info('Collected %d item(s) from %d feed(s); %d feed(s) empty or failed.', len(items), len(urls), failed)
    return items
