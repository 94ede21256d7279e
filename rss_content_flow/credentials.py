##########################################################################################
#
# Script name: credentials.py
#
# Description: Resolves named secrets from Secret Manager or the process environment.
#
##########################################################################################

import json
import logging
import os
from typing import Protocol

from google.cloud import secretmanager

from .config import DEFAULT_TIMEOUT
from .errors import ConfigurationError
from .utils import env_name


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


class SecretStore(Protocol):
    def get(self, name: str) -> str:
        ...


# ****************************************************************************************
# Classes
# ****************************************************************************************


class SecretManagerStore:
    def __init__(self, project: str, client=None, timeout: float = DEFAULT_TIMEOUT):
        self.project = project
        self._client = client
        self.timeout = timeout

    @property
    def client(self):
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get(self, name: str, version: str = 'latest') -> str:
        if not self.project:
            raise ConfigurationError('GCP_PROJECT is required to read secrets from Secret Manager.')
        path = f'projects/{self.project}/secrets/{name}/versions/{version}'
        try:
            response = self.client.access_secret_version(request={'name': path}, timeout=self.timeout)
        except Exception as exc:  # noqa: BLE001
            log.error("Error accessing secret '%s': %s", name, exc)
            raise ConfigurationError(f'Could not access required secret: {name}') from exc
        return response.payload.data.decode('utf-8')


class EnvSecretStore:
    '''
    Reads secrets from environment variables, `wordpress-api-credentials`
    becoming WORDPRESS_API_CREDENTIALS. Used for local runs.
    '''

    def __init__(self, environ=None):
        self.environ = os.environ if environ is None else environ

    def get(self, name: str) -> str:
        key = env_name(name)
        value = self.environ.get(key)
        if not value:
            raise ConfigurationError(f'Could not access required secret: {name} (set {key})')
        return value


# ****************************************************************************************
# Functions
# ****************************************************************************************


def build_secret_store(settings, environ=None) -> SecretStore:
    if settings.secret_backend == 'env':
        return EnvSecretStore(environ)
    return SecretManagerStore(settings.project, timeout=settings.request_timeout)


def get_json_secret(store: SecretStore, name: str, required: list[str]) -> dict:
    raw = store.get(name)
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError(f'Secret {name} is not valid JSON') from exc
    if not isinstance(payload, dict):
        raise ConfigurationError(f'Secret {name} must be a JSON object')
    missing = [key for key in required if not payload.get(key)]
    if missing:
        raise ConfigurationError(f'Secret {name} is incomplete; missing {", ".join(missing)}')
    return payload
