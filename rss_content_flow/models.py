from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


GENERATION_OK = 'ok'
GENERATION_FAILED = 'failed'
GENERATION_NOT_ATTEMPTED = 'not_attempted'

PUBLISH_SUCCESS = 'success'
PUBLISH_FAILED = 'failed'
PUBLISH_SKIPPED = 'skipped'


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    published_at: datetime | None
    summary: str
    source_name: str


@dataclass(frozen=True)
class Generation:
    status: str
    text: str = ''
    reason: str = ''

    @classmethod
    def success(cls, text: str) -> Generation:
        return cls(status=GENERATION_OK, text=text)

    @classmethod
    def failed(cls, reason: str) -> Generation:
        return cls(status=GENERATION_FAILED, reason=reason)

    @classmethod
    def not_attempted(cls, reason: str) -> Generation:
        return cls(status=GENERATION_NOT_ATTEMPTED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == GENERATION_OK

    def to_dict(self) -> dict[str, str]:
        if self.ok:
            return {'status': self.status, 'text': self.text}
        return {'status': self.status, 'reason': self.reason}


@dataclass(frozen=True)
class GeneratedContent:
    item: FeedItem
    article: Generation
    social_copy: Generation


@dataclass(frozen=True)
class PublishResult:
    status: str
    external_id: str = ''
    external_link: str = ''
    error: str = ''
    reason: str = ''

    @classmethod
    def success(cls, external_id: str, external_link: str = '') -> PublishResult:
        return cls(status=PUBLISH_SUCCESS, external_id=external_id, external_link=external_link)

    @classmethod
    def failed(cls, error: str) -> PublishResult:
        return cls(status=PUBLISH_FAILED, error=error)

    @classmethod
    def skipped(cls, reason: str) -> PublishResult:
        return cls(status=PUBLISH_SKIPPED, reason=reason)

    def to_dict(self) -> dict[str, str]:
        if self.status == PUBLISH_SUCCESS:
            payload = {'status': self.status, 'externalId': self.external_id}
            if self.external_link:
                payload['externalLink'] = self.external_link
            return payload
        if self.status == PUBLISH_FAILED:
            return {'status': self.status, 'error': self.error}
        return {'status': self.status, 'reason': self.reason}


@dataclass(frozen=True)
class ItemResult:
    content: GeneratedContent
    publication: PublishResult

    def to_dict(self) -> dict[str, Any]:
        item = self.content.item
        return {
            'title': item.title,
            'originalLink': item.link,
            'source': item.source_name,
            'publishedAt': item.published_at.isoformat() if item.published_at else None,
            'article': self.content.article.to_dict(),
            'socialMediaCopy': self.content.social_copy.to_dict(),
            'publication': self.publication.to_dict(),
        }


@dataclass(frozen=True)
class RunSummary:
    total_news_found: int
    articles_generated: int
    copies_generated: int
    posts_published: int

    @classmethod
    def from_results(cls, total_news_found: int, results: list[ItemResult]) -> RunSummary:
        return cls(
            total_news_found=total_news_found,
            articles_generated=sum(1 for result in results if result.content.article.ok),
            copies_generated=sum(1 for result in results if result.content.social_copy.ok),
            posts_published=sum(1 for result in results if result.publication.status == PUBLISH_SUCCESS),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            'totalNewsFound': self.total_news_found,
            'newsArticlesGenerated': self.articles_generated,
            'socialMediaCopiesGenerated': self.copies_generated,
            'postsPublished': self.posts_published,
        }


@dataclass
class RunResult:
    success: bool
    message: str
    summary: RunSummary | None = None
    results: list[ItemResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {'success': self.success, 'message': self.message}
        if self.summary is not None:
            payload['summary'] = self.summary.to_dict()
            payload['results'] = [result.to_dict() for result in self.results]
        return payload
