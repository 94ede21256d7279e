##########################################################################################
#
# Script name: generator.py
#
# Description: Article and social-copy generation through a text-completion service.
#
##########################################################################################

import logging
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from openai import OpenAI

from .config import DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_TIMEOUT
from .errors import GenerationFailure
from .models import FeedItem, GeneratedContent, Generation
from .utils import preview


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

ARTICLE_PROMPT = '''Based on the following news item, write a complete and detailed news article in a professional and objective journalistic style. Include:

1. An informative and engaging headline.
2. A lead (first paragraph) summarizing the essentials (what, who, when, where, why).
3. A body with additional details, context and, where the information allows, statements or implications.
4. A closing paragraph or conclusion.
5. A length suited to a short article (roughly 3-5 paragraphs).

News title: "{title}"
Content/excerpt: "{summary}"
Original link: {link}'''

SOCIAL_COPY_PROMPT = '''Write a short, engaging social media copy (2 lines at most, with 1-2 emojis) based on the following news article. The goal is to catch attention and lead the reader to read more. Do not include hashtags or mentions.

News article:
"{article}"'''

ARTICLE_PROMPT_FILE = 'article.md'
SOCIAL_COPY_PROMPT_FILE = 'social_copy.md'
ARTICLE_FIELDS = ('title', 'summary', 'link')
SOCIAL_COPY_FIELDS = ('article',)

COPY_DISABLED = 'copy stage disabled'
COPY_BLOCKED = 'article generation failed; copy not attempted'


class TextGenerator(Protocol):
    def generate(self, prompt: str, temperature: float) -> str:
        ...


# ****************************************************************************************
# Functions
# ****************************************************************************************


@lru_cache(maxsize=8)
def load_prompt(prompts_dir: str, filename: str, default: str, fields: tuple = ()) -> str:
    if not prompts_dir:
        return default
    prompt_path = Path(prompts_dir) / filename
    if not prompt_path.exists():
        log.warning('Missing prompt file %s; using built-in template.', prompt_path)
        return default
    try:
        content = prompt_path.read_text(encoding='utf-8').strip()
    except OSError as exc:
        log.warning('Failed reading prompt file %s: %s', prompt_path, exc)
        return default
    if not content:
        return default
    try:
        content.format(**{name: '' for name in fields})
    except (KeyError, IndexError, ValueError) as exc:
        log.warning('Invalid placeholder in prompt file %s (%s); using built-in template.', prompt_path, exc)
        return default
    return content


def build_article_prompt(item: FeedItem, template: str = ARTICLE_PROMPT) -> str:
    return template.format(title=item.title, summary=item.summary, link=item.link)


def build_social_copy_prompt(article: str, template: str = SOCIAL_COPY_PROMPT) -> str:
    return template.format(article=article)


# ****************************************************************************************
# Classes
# ****************************************************************************************


class OpenAITextGenerator:
    '''
    TextGenerator backed by the OpenAI chat completions API.

    The client is a process-wide handle; it is safe to share across runs.
    '''

    def __init__(self, client=None, model: str = DEFAULT_MODEL, timeout: float = DEFAULT_TIMEOUT):
        self.client = client or OpenAI()
        self.model = model
        self.timeout = timeout

    def generate(self, prompt: str, temperature: float) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            messages=[{'role': 'user', 'content': prompt}],
            timeout=self.timeout,
        )
        if not response.choices:
            raise GenerationFailure('completion returned no choices')
        content = (response.choices[0].message.content or '').strip()
        if not content:
            raise GenerationFailure('completion returned empty text')
        return content


class ContentGenerator:
    '''
    Turns a FeedItem into an article and, optionally, a social teaser.

    Each stage is a single attempt. Failures become Generation.failed values so
    sibling items keep processing; the copy stage is only attempted after a
    successful article.
    '''

    def __init__(
        self,
        text_generator: TextGenerator,
        temperature: float = DEFAULT_TEMPERATURE,
        generate_copy: bool = True,
        prompts_dir: str = '',
    ):
        self.text_generator = text_generator
        self.temperature = temperature
        self.generate_copy = generate_copy
        self.article_template = load_prompt(prompts_dir, ARTICLE_PROMPT_FILE, ARTICLE_PROMPT, ARTICLE_FIELDS)
        self.copy_template = load_prompt(prompts_dir, SOCIAL_COPY_PROMPT_FILE, SOCIAL_COPY_PROMPT, SOCIAL_COPY_FIELDS)

    def _attempt(self, build_prompt, stage: str, title: str) -> Generation:
        try:
            text = self.text_generator.generate(build_prompt(), self.temperature)
        except Exception as exc:  # noqa: BLE001
            log.error('Failed to generate %s for "%s": %s', stage, title, exc)
            return Generation.failed(str(exc) or exc.__class__.__name__)
        if not text or not text.strip():
            log.error('Empty %s generated for "%s"', stage, title)
            return Generation.failed(f'empty {stage}')
        log.info('Generated %s for "%s": %s', stage, title, preview(text))
        return Generation.success(text.strip())

    def generate_article(self, item: FeedItem) -> Generation:
        return self._attempt(lambda: build_article_prompt(item, self.article_template), 'article', item.title)

    def generate_social_copy(self, item: FeedItem, article: Generation) -> Generation:
        if not self.generate_copy:
            return Generation.not_attempted(COPY_DISABLED)
        if not article.ok:
            return Generation.not_attempted(COPY_BLOCKED)
        return self._attempt(
            lambda: build_social_copy_prompt(article.text, self.copy_template), 'social copy', item.title
        )

    def generate(self, item: FeedItem) -> GeneratedContent:
        article = self.generate_article(item)
        social_copy = self.generate_social_copy(item, article)
        return GeneratedContent(item=item, article=article, social_copy=social_copy)

    def generate_all(self, items: list[FeedItem]) -> list[GeneratedContent]:
        return [self.generate(item) for item in items]
