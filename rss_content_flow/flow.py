##########################################################################################
#
# Script name: flow.py
#
# Description: Orchestrates one run: collect feeds, select news, generate content, publish.
#
##########################################################################################

import logging
from functools import partial

from .config import Settings, Stage
from .credentials import SecretStore
from .curation import select_recent
from .errors import ConfigurationError
from .fetchers import collect_feed_items, fetch_feed
from .generator import ContentGenerator, TextGenerator
from .models import GeneratedContent, ItemResult, PublishResult, RunResult, RunSummary
from .publishers import Publisher, build_publisher


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

SKIP_ARTICLE_FAILED = 'article generation failed; publishing not attempted'
SKIP_PUBLISH_DISABLED = 'publishing disabled for this flow variant'


# ****************************************************************************************
# Classes
# ****************************************************************************************


class ContentFlow:
    '''
    One configurable pipeline for every flow variant.

    Collaborators are injected so a run can be exercised with fakes:
        collect: callable(urls) -> list[FeedItem]
        generator: ContentGenerator
        publisher_factory: callable() -> Publisher | None, raising
            ConfigurationError when credentials cannot be resolved.

    Runs are stateless; nothing is remembered between invocations, so items
    still served by a feed are generated and published again on the next run.
    '''

    def __init__(self, settings: Settings, collect, generator: ContentGenerator, publisher_factory):
        self.settings = settings
        self.collect = collect
        self.generator = generator
        self.publisher_factory = publisher_factory

    def _publish(self, publisher: Publisher | None, content: GeneratedContent) -> PublishResult:
        if publisher is None:
            return PublishResult.skipped(SKIP_PUBLISH_DISABLED)
        if not content.article.ok:
            log.warning('Not publishing "%s": %s', content.item.title, content.article.reason)
            return PublishResult.skipped(SKIP_ARTICLE_FAILED)
        return publisher.publish(content)

    def run(self) -> RunResult:
        variant = self.settings.flow_variant
        log.info('Starting %s flow: %s', variant.name, variant.description)

        try:
            publisher = self.publisher_factory()
        except ConfigurationError as exc:
            log.error('Fatal configuration error: %s', exc)
            return RunResult(success=False, message=f'Configuration error: {exc}')

        items = self.collect(self.settings.feeds)
        selected = select_recent(items, self.settings.max_items)
        log.info('Selected %d of %d item(s) for processing.', len(selected), len(items))
        if not selected:
            log.info('No news selected for processing.')

        results: list[ItemResult] = []
        for index, item in enumerate(selected, start=1):
            log.info('Processing item %d/%d: "%s"', index, len(selected), item.title)
            content = self.generator.generate(item)
            results.append(ItemResult(content=content, publication=self._publish(publisher, content)))

        summary = RunSummary.from_results(len(items), results)
        log.info('Finished %s flow: %s', variant.name, summary.to_dict())
        return RunResult(
            success=True,
            message=f'Flow {variant.name} completed: {len(results)} item(s) processed.',
            summary=summary,
            results=results,
        )


# ****************************************************************************************
# Functions
# ****************************************************************************************


def build_flow(settings: Settings, text_generator: TextGenerator, secret_store: SecretStore,
               session) -> ContentFlow:
    '''
    Wire one run. `session` is the process-wide HTTP session shared by feed
    fetches and publishing; the caller owns it.
    '''
    fetch = partial(fetch_feed, session=session, timeout=settings.request_timeout)
    collect = partial(collect_feed_items, fetch=fetch, max_workers=settings.fetch_workers)
    generator = ContentGenerator(
        text_generator,
        temperature=settings.temperature,
        generate_copy=Stage.COPY in settings.stages,
        prompts_dir=settings.prompts_dir,
    )
    return ContentFlow(
        settings=settings,
        collect=collect,
        generator=generator,
        publisher_factory=partial(build_publisher, settings, secret_store, session),
    )
