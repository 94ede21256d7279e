##########################################################################################
#
# Script name: test_config.py
#
# Description: Tests settings loading from YAML and environment overrides.
#
##########################################################################################

import textwrap
from pathlib import Path

import pytest

from rss_content_flow.config import DEFAULT_FEEDS, Stage, load_settings
from rss_content_flow.credentials import EnvSecretStore, SecretManagerStore, build_secret_store
from rss_content_flow.errors import ConfigurationError


def _write_file(path: Path, content: str) -> None:
    path.write_text(textwrap.dedent(content).strip() + '\n', encoding='utf-8')


def test_defaults_without_config_file(tmp_path: Path) -> None:
    settings = load_settings(environ={'FLOW_CONFIG': str(tmp_path / 'missing.yaml')})

    assert settings.feeds == DEFAULT_FEEDS
    assert settings.max_items == 5
    assert settings.temperature == 0.7
    assert settings.variant == 'wordpress'
    assert settings.target == 'wordpress'
    assert settings.stages == Stage.ARTICLE | Stage.COPY | Stage.PUBLISH


def test_yaml_values_and_environment_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / 'flow.yaml'
    _write_file(
        config_path,
        '''
        variant: article-copy
        max_items: 3
        request_timeout: 12
        feeds:
          - https://one.example/rss
          - https://two.example/rss
        ''',
    )

    settings = load_settings(str(config_path), environ={'MAX_NEWS_ITEMS': '8', 'PORT': '9090'})

    assert settings.feeds == ['https://one.example/rss', 'https://two.example/rss']
    assert settings.max_items == 8
    assert settings.port == 9090
    assert settings.request_timeout == 12.0
    assert settings.target == 'none'
    assert Stage.COPY in settings.stages
    assert Stage.PUBLISH not in settings.stages


def test_facebook_variant_from_environment(tmp_path: Path) -> None:
    settings = load_settings(environ={
        'FLOW_CONFIG': str(tmp_path / 'missing.yaml'),
        'FLOW_VARIANT': 'facebook',
        'FACEBOOK_PAGE_ID': '123',
    })

    assert settings.target == 'facebook'
    assert settings.facebook_page_id == '123'


def test_invalid_values_raise_configuration_error(tmp_path: Path) -> None:
    missing = str(tmp_path / 'missing.yaml')
    with pytest.raises(ConfigurationError, match='flow variant'):
        load_settings(environ={'FLOW_CONFIG': missing, 'FLOW_VARIANT': 'telegram'})
    with pytest.raises(ConfigurationError, match='max_items'):
        load_settings(environ={'FLOW_CONFIG': missing, 'MAX_NEWS_ITEMS': 'five'})

    config_path = tmp_path / 'flow.yaml'
    _write_file(config_path, 'unexpected_key: 1')
    with pytest.raises(ConfigurationError, match='unexpected_key'):
        load_settings(str(config_path), environ={})


def test_secret_store_selection_and_env_lookup(tmp_path: Path) -> None:
    missing = str(tmp_path / 'missing.yaml')
    env_settings = load_settings(environ={'FLOW_CONFIG': missing, 'SECRET_BACKEND': 'env'})
    store = build_secret_store(env_settings, environ={'FACEBOOK_PAGE_ACCESS_TOKEN': 'token'})

    assert isinstance(store, EnvSecretStore)
    assert store.get('facebook-page-access-token') == 'token'
    with pytest.raises(ConfigurationError, match='WORDPRESS_API_CREDENTIALS'):
        store.get('wordpress-api-credentials')

    gcp_settings = load_settings(environ={'FLOW_CONFIG': missing, 'GCP_PROJECT': 'demo'})
    assert isinstance(build_secret_store(gcp_settings), SecretManagerStore)


class _Payload:
    data = b'secret-value'


class _FakeSecretClient:
    def __init__(self, error=None):
        self.error = error
        self.requests = []

    def access_secret_version(self, request, timeout=None):
        self.requests.append(request)
        if self.error:
            raise self.error
        return type('Response', (), {'payload': _Payload()})()


def test_secret_manager_store_reads_latest_version() -> None:
    client = _FakeSecretClient()
    store = SecretManagerStore('demo', client=client)

    assert store.get('wordpress-api-credentials') == 'secret-value'
    assert client.requests == [{'name': 'projects/demo/secrets/wordpress-api-credentials/versions/latest'}]


def test_secret_manager_store_failures_are_configuration_errors() -> None:
    with pytest.raises(ConfigurationError, match='wordpress-api-credentials'):
        SecretManagerStore('demo', client=_FakeSecretClient(RuntimeError('permission denied'))).get(
            'wordpress-api-credentials'
        )
    with pytest.raises(ConfigurationError, match='GCP_PROJECT'):
        SecretManagerStore('', client=_FakeSecretClient()).get('anything')


def test_malformed_yaml_raises_configuration_error(tmp_path: Path) -> None:
    config_path = tmp_path / 'flow.yaml'
    config_path.write_text('variant: wordpress\n  max_items: [3\n', encoding='utf-8')

    with pytest.raises(ConfigurationError, match='not valid YAML'):
        load_settings(str(config_path), environ={})
