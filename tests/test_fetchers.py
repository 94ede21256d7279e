##########################################################################################
#
# Script name: test_fetchers.py
#
# Description: Tests feed parsing and partial-failure tolerance of feed collection.
#
##########################################################################################

from datetime import datetime, timezone

import pytest
import requests

from rss_content_flow.errors import SourceFetchError
from rss_content_flow.fetchers import collect_feed_items, fetch_feed, parse_feed_document, parse_published
from rss_content_flow.models import FeedItem


RSS_DOCUMENT = b'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <link>https://news.example.com/</link>
    <item>
      <title>Central bank holds rates</title>
      <link>https://news.example.com/rates</link>
      <pubDate>Tue, 03 Mar 2026 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;The board voted &lt;b&gt;unanimously&lt;/b&gt;.&lt;/p&gt;</description>
    </item>
    <item>
      <title>Undated bulletin</title>
      <link>https://news.example.com/bulletin</link>
    </item>
  </channel>
</rss>
'''


class FakeResponse:
    def __init__(self, content: bytes = b'', status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} Server Error')


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({'url': url, 'headers': headers, 'timeout': timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _item(title: str, source: str) -> FeedItem:
    return FeedItem(
        title=title,
        link=f'https://{source}.example/{title}',
        published_at=None,
        summary='',
        source_name=source,
    )


def test_parse_feed_document_normalizes_entries() -> None:
    items = parse_feed_document('https://news.example.com/rss', RSS_DOCUMENT)

    assert [item.title for item in items] == ['Central bank holds rates', 'Undated bulletin']
    first, second = items
    assert first.link == 'https://news.example.com/rates'
    assert first.summary == 'The board voted unanimously .'
    assert first.source_name == 'Example News'
    assert first.published_at == datetime(2026, 3, 3, 10, 0, tzinfo=timezone.utc)
    assert second.published_at is None
    assert second.summary == ''


def test_parse_feed_document_rejects_non_feed_content() -> None:
    with pytest.raises(SourceFetchError):
        parse_feed_document('https://broken.example/rss', b'this is not a feed')


def test_parse_published_falls_back_and_tolerates_garbage() -> None:
    assert parse_published({'published': 'not a date'}) is None
    assert parse_published({}) is None
    parsed = parse_published({'published': '', 'updated': '2026-03-01T08:00:00+02:00'})
    assert parsed == datetime(2026, 3, 1, 6, 0, tzinfo=timezone.utc)


def test_fetch_feed_uses_timeout_and_parses_body() -> None:
    session = FakeSession(response=FakeResponse(RSS_DOCUMENT))

    items = fetch_feed('https://news.example.com/rss', session=session, timeout=12)

    assert len(items) == 2
    assert session.calls[0]['timeout'] == 12
    assert 'User-Agent' in session.calls[0]['headers']


def test_fetch_feed_wraps_network_and_http_errors() -> None:
    offline = FakeSession(error=requests.ConnectionError('connection refused'))
    with pytest.raises(SourceFetchError) as excinfo:
        fetch_feed('https://down.example/rss', session=offline)
    assert 'connection refused' in excinfo.value.reason

    not_found = FakeSession(response=FakeResponse(status_code=404))
    with pytest.raises(SourceFetchError):
        fetch_feed('https://missing.example/rss', session=not_found)


def test_collect_feed_items_skips_failed_sources() -> None:
    feeds = {
        'https://a.example/rss': [_item('a1', 'a'), _item('a2', 'a'), _item('a3', 'a')],
        'https://b.example/rss': None,
        'https://c.example/rss': [_item('c1', 'c'), _item('c2', 'c')],
        'https://d.example/rss': None,
    }

    def fetch(url):
        if feeds[url] is None:
            raise SourceFetchError(url, 'network unreachable')
        return feeds[url]

    items = collect_feed_items(list(feeds), fetch=fetch)

    assert [item.title for item in items] == ['a1', 'a2', 'a3', 'c1', 'c2']
    assert {item.source_name for item in items} == {'a', 'c'}


def test_collect_feed_items_treats_unexpected_errors_and_empty_feeds_as_non_fatal() -> None:
    def fetch(url):
        if 'boom' in url:
            raise ValueError('unexpected parser state')
        if 'empty' in url:
            return []
        return [_item('ok', 'ok')]

    items = collect_feed_items(['https://boom.example', 'https://empty.example', 'https://ok.example'], fetch=fetch)

    assert [item.title for item in items] == ['ok']


def test_collect_feed_items_parallel_keeps_feed_order() -> None:
    urls = [f'https://feed{idx}.example/rss' for idx in range(6)]

    def fetch(url):
        name = url.split('//', 1)[1].split('.', 1)[0]
        return [_item(f'{name}-1', name), _item(f'{name}-2', name)]

    sequential = collect_feed_items(urls, fetch=fetch)
    parallel = collect_feed_items(urls, fetch=fetch, max_workers=4)

    assert parallel == sequential
    assert parallel[0].title == 'feed0-1'
    assert parallel[-1].title == 'feed5-2'
