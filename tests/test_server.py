##########################################################################################
#
# Script name: test_server.py
#
# Description: Tests the HTTP trigger status mapping.
#
##########################################################################################

from fastapi.testclient import TestClient

from rss_content_flow.models import RunResult, RunSummary
from rss_content_flow.server import create_app


def test_successful_run_returns_200_json() -> None:
    calls = []

    def run_flow():
        calls.append(1)
        return RunResult(success=True, message='done', summary=RunSummary(3, 2, 2, 1))

    client = TestClient(create_app(run_flow))
    response = client.post('/', json={'ignored': True})

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['summary']['totalNewsFound'] == 3
    assert body['results'] == []
    assert calls == [1]


def test_unsuccessful_run_returns_500_json() -> None:
    client = TestClient(create_app(lambda: RunResult(success=False, message='Configuration error: missing')))

    response = client.post('/')

    assert response.status_code == 500
    assert response.json() == {'success': False, 'message': 'Configuration error: missing'}


def test_uncaught_exception_returns_500_plain_text() -> None:
    def run_flow():
        raise RuntimeError('disk on fire')

    client = TestClient(create_app(run_flow))
    response = client.post('/')

    assert response.status_code == 500
    assert response.headers['content-type'].startswith('text/plain')
    assert response.text == 'Internal server error: disk on fire'


def test_each_request_triggers_one_run() -> None:
    calls = []

    def run_flow():
        calls.append(1)
        return RunResult(success=True, message='done', summary=RunSummary(0, 0, 0, 0))

    client = TestClient(create_app(run_flow))
    client.post('/')
    client.post('/')

    assert len(calls) == 2
    assert client.get('/healthz').text == 'ok'
