##########################################################################################
#
# Script name: publishers.py
#
# Description: Publishing targets (WordPress REST API, Facebook page feed) and factory.
#
##########################################################################################

import logging
from html import escape

import requests

from .config import DEFAULT_TIMEOUT, FACEBOOK_API_VERSION, TARGETS
from .credentials import SecretStore, get_json_secret
from .errors import ConfigurationError, PublishFailure
from .models import GeneratedContent, PublishResult
from .utils import paragraphs


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

WORDPRESS_FIELDS = ['wordpressApiUrl', 'wordpressUsername', 'wordpressApplicationPassword']
GRAPH_API_URL = 'https://graph.facebook.com'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _error_snippet(response) -> str:
    try:
        payload = response.json() or {}
    except ValueError:
        payload = {}
    error = payload.get('error') if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get('message'):
        return str(error['message'])
    if isinstance(payload, dict) and payload.get('message'):
        return str(payload['message'])
    body_text = response.text or ''
    return body_text.strip().replace('\n', ' ')[:240]


def _check_response(response) -> dict:
    if response.status_code >= 300:
        raise PublishFailure(f'HTTP {response.status_code}: {_error_snippet(response)}')
    try:
        payload = response.json()
    except ValueError as exc:
        raise PublishFailure('response body is not JSON') from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise PublishFailure('response body is not a JSON object')
    return payload


def render_wordpress_body(content: GeneratedContent) -> str:
    blocks = [f'<p>{escape(block)}</p>' for block in paragraphs(content.article.text)]
    link = escape(content.item.link, quote=True)
    blocks.append(f'<p><strong>Original link:</strong> <a href="{link}">{link}</a></p>')
    if content.social_copy.ok:
        blocks.append(f'<p><strong>Social media copy:</strong> {escape(content.social_copy.text)}</p>')
    return '\n'.join(blocks)


def facebook_message(content: GeneratedContent) -> str:
    if content.social_copy.ok:
        return content.social_copy.text
    return content.article.text


# ****************************************************************************************
# Classes
# ****************************************************************************************


class Publisher:
    '''
    Publishes one generated item to an external target.

    Subclasses implement _post; publish() turns network and HTTP errors into
    failed PublishResults and never raises them.
    '''

    name = 'publisher'

    def __init__(self, session=None, timeout: float = DEFAULT_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, content: GeneratedContent) -> PublishResult:
        raise NotImplementedError

    def publish(self, content: GeneratedContent) -> PublishResult:
        title = content.item.title
        log.info('Publishing "%s" to %s', title, self.name)
        try:
            result = self._post(content)
        except (requests.RequestException, PublishFailure) as exc:
            log.error('Failed to publish "%s" to %s: %s', title, self.name, exc)
            return PublishResult.failed(str(exc))
        log.info('Published "%s" to %s. Post id: %s', title, self.name, result.external_id)
        return result


class WordPressPublisher(Publisher):
    name = 'wordpress'

    def __init__(self, api_url: str, username: str, application_password: str, session=None,
                 timeout: float = DEFAULT_TIMEOUT):
        super().__init__(session=session, timeout=timeout)
        self.api_url = api_url
        self.auth = (username, application_password)

    def _post(self, content: GeneratedContent) -> PublishResult:
        data = {
            'title': content.item.title,
            'content': render_wordpress_body(content),
            'status': 'publish',
        }
        response = self.session.post(self.api_url, json=data, auth=self.auth, timeout=self.timeout)
        payload = _check_response(response)
        post_id = payload.get('id')
        if post_id is None:
            raise PublishFailure('response did not include a post id')
        return PublishResult.success(str(post_id), str(payload.get('link') or ''))


class FacebookPagePublisher(Publisher):
    name = 'facebook'

    def __init__(self, page_id: str, access_token: str, api_version: str = FACEBOOK_API_VERSION,
                 session=None, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(session=session, timeout=timeout)
        self.page_id = page_id
        self.access_token = access_token
        self.endpoint = f'{GRAPH_API_URL}/{api_version}/{page_id}/feed'

    def _post(self, content: GeneratedContent) -> PublishResult:
        data = {
            'message': facebook_message(content),
            'link': content.item.link,
            'access_token': self.access_token,
        }
        response = self.session.post(self.endpoint, data=data, timeout=self.timeout)
        payload = _check_response(response)
        post_id = payload.get('id')
        if not post_id:
            raise PublishFailure('response did not include a post id')
        return PublishResult.success(str(post_id))


def build_publisher(settings, store: SecretStore, session=None) -> Publisher | None:
    '''
    Resolve credentials for the configured target and build its Publisher.

    Raises ConfigurationError when the target is unknown or any required value
    is missing, so the run can fail before fetching feeds.
    '''
    target = settings.target
    if target not in TARGETS:
        raise ConfigurationError(f'Unknown publishing target {target!r}')
    if target == 'none':
        return None

    if target == 'wordpress':
        creds = get_json_secret(store, settings.wordpress_secret, WORDPRESS_FIELDS)
        log.info('WordPress credentials resolved.')
        return WordPressPublisher(
            api_url=creds['wordpressApiUrl'],
            username=creds['wordpressUsername'],
            application_password=creds['wordpressApplicationPassword'],
            session=session,
            timeout=settings.request_timeout,
        )

    if not settings.facebook_page_id:
        raise ConfigurationError('FACEBOOK_PAGE_ID is not set.')
    access_token = store.get(settings.facebook_secret).strip()
    if not access_token:
        raise ConfigurationError(f'Secret {settings.facebook_secret} is empty')
    log.info('Facebook page credentials resolved.')
    return FacebookPagePublisher(
        page_id=settings.facebook_page_id,
        access_token=access_token,
        api_version=settings.facebook_api_version,
        session=session,
        timeout=settings.request_timeout,
    )
