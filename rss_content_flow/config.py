##########################################################################################
#
# Script name: config.py
#
# Description: Static configuration, flow variants, and runtime settings loading.
#
##########################################################################################

import logging
import os
from dataclasses import dataclass, field
from enum import Flag, auto

import yaml

from .errors import ConfigurationError


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


class Stage(Flag):
    ARTICLE = auto()
    COPY = auto()
    PUBLISH = auto()


@dataclass(frozen=True)
class Variant:
    name: str
    stages: Stage
    target: str
    description: str


VARIANTS = {
    'wordpress': Variant(
        name='wordpress',
        stages=Stage.ARTICLE | Stage.COPY | Stage.PUBLISH,
        target='wordpress',
        description='Generate article and social copy, publish the article to WordPress.',
    ),
    'article-only': Variant(
        name='article-only',
        stages=Stage.ARTICLE,
        target='none',
        description='Generate articles only, nothing is published.',
    ),
    'article-copy': Variant(
        name='article-copy',
        stages=Stage.ARTICLE | Stage.COPY,
        target='none',
        description='Generate article and social copy, nothing is published.',
    ),
    'facebook': Variant(
        name='facebook',
        stages=Stage.ARTICLE | Stage.COPY | Stage.PUBLISH,
        target='facebook',
        description='Generate article and social copy, post the copy to a Facebook page.',
    ),
}

TARGETS = {'wordpress', 'facebook', 'none'}
SECRET_BACKENDS = {'secret-manager', 'env'}

DEFAULT_FEEDS = [
    'https://www.excelsior.com.mx/rss.xml',
    'https://elpais.com/rss/feed.html?feedId=1022',
    'https://www.eleconomista.com.mx/rss.html',
    'https://www.jornada.com.mx/v7.0/cgi/rss.php',
]

DEFAULT_CONFIG_FILE = 'config/flow.yaml'
DEFAULT_VARIANT = 'wordpress'
DEFAULT_MAX_ITEMS = 5
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 30.0
DEFAULT_MODEL = 'gpt-4o-mini'

WORDPRESS_SECRET = 'wordpress-api-credentials'
FACEBOOK_SECRET = 'facebook-page-access-token'
FACEBOOK_API_VERSION = 'v19.0'

# Settings field -> environment variable
ENV_OVERRIDES = {
    'project': 'GCP_PROJECT',
    'region': 'GCP_REGION',
    'port': 'PORT',
    'variant': 'FLOW_VARIANT',
    'max_items': 'MAX_NEWS_ITEMS',
    'model': 'OPENAI_MODEL',
    'request_timeout': 'REQUEST_TIMEOUT',
    'fetch_workers': 'FEED_FETCH_WORKERS',
    'secret_backend': 'SECRET_BACKEND',
    'wordpress_secret': 'WORDPRESS_SECRET_NAME',
    'facebook_secret': 'FACEBOOK_SECRET_NAME',
    'facebook_page_id': 'FACEBOOK_PAGE_ID',
    'facebook_api_version': 'FACEBOOK_API_VERSION',
    'prompts_dir': 'PROMPTS_DIR',
}


@dataclass(frozen=True)
class Settings:
    project: str = ''
    region: str = 'us-central1'
    port: int = 8080
    feeds: list[str] = field(default_factory=lambda: list(DEFAULT_FEEDS))
    variant: str = DEFAULT_VARIANT
    max_items: int = DEFAULT_MAX_ITEMS
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    request_timeout: float = DEFAULT_TIMEOUT
    fetch_workers: int = 1
    secret_backend: str = 'secret-manager'
    wordpress_secret: str = WORDPRESS_SECRET
    facebook_secret: str = FACEBOOK_SECRET
    facebook_page_id: str = ''
    facebook_api_version: str = FACEBOOK_API_VERSION
    prompts_dir: str = ''

    @property
    def flow_variant(self) -> Variant:
        return VARIANTS[self.variant]

    @property
    def stages(self) -> Stage:
        return self.flow_variant.stages

    @property
    def target(self) -> str:
        if Stage.PUBLISH not in self.stages:
            return 'none'
        return self.flow_variant.target


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _coerce(name: str, value, kind: type):
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f'Invalid value for {name}: {value!r}') from exc


def _load_yaml(path: str) -> dict:
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            payload = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f'{path} is not valid YAML: {exc}') from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f'{path} must contain a mapping')
    return payload


def load_settings(config_path: str | None = None, environ: dict | None = None) -> Settings:
    '''
    Build Settings from defaults, an optional YAML file and the environment.

    Input:
        config_path: YAML file to read. When None, DEFAULT_CONFIG_FILE is used
            if it exists (or FLOW_CONFIG from the environment).
        environ: mapping used instead of os.environ.

    Output:
        Settings, validated for variant, secret backend and numeric fields.
        Target-specific values (page id, credentials) are checked at run start.
    '''
    environ = os.environ if environ is None else environ
    values: dict = {}

    path = config_path or environ.get('FLOW_CONFIG') or DEFAULT_CONFIG_FILE
    if config_path or os.path.exists(path):
        values.update(_load_yaml(path))
        log.debug('Loaded flow configuration from %s', path)

    for field_name, env_key in ENV_OVERRIDES.items():
        env_value = environ.get(env_key)
        if env_value:
            values[field_name] = env_value

    known = set(Settings.__dataclass_fields__)
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f'Unknown configuration keys: {", ".join(unknown)}')

    feeds = values.get('feeds', DEFAULT_FEEDS)
    if isinstance(feeds, str):
        feeds = [feed.strip() for feed in feeds.split(',') if feed.strip()]
    if not isinstance(feeds, list):
        raise ConfigurationError('feeds must be a list of URLs')
    values['feeds'] = [str(feed) for feed in feeds]

    for name, kind in (('port', int), ('max_items', int), ('fetch_workers', int),
                       ('temperature', float), ('request_timeout', float)):
        if name in values:
            values[name] = _coerce(name, values[name], kind)

    settings = Settings(**values)
    if settings.variant not in VARIANTS:
        raise ConfigurationError(
            f'Unknown flow variant {settings.variant!r}; expected one of {", ".join(sorted(VARIANTS))}'
        )
    if settings.secret_backend not in SECRET_BACKENDS:
        raise ConfigurationError(f'Unknown secret backend {settings.secret_backend!r}')
    if settings.max_items < 0:
        raise ConfigurationError('max_items must not be negative')
    if settings.request_timeout <= 0:
        raise ConfigurationError('request_timeout must be positive')
    return settings
