"""Tests for the share server HTTP client."""

import json
from datetime import timedelta

import httpx
import pytest

from common.exceptions import NotFoundError, RateLimitedError, UpstreamFailureError
from cli.server_client import ShareServerClient


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr('cli.server_client.time.sleep', lambda seconds: None)


def make_client(temp_config, handler):
    return ShareServerClient(temp_config, transport=httpx.MockTransport(handler))


def upload_body(file_id='ab12'):
    return {
        'id': file_id,
        'filename': f'{file_id}.txt',
        'originalName': 'test.txt',
        'size': 26,
        'type': 'text/plain',
        'url': f'http://localhost:8000/files/{file_id}.txt',
        'uploadedAt': '2025-03-14T12:00:00.000Z',
        'expiresAt': '2025-03-14T12:05:00.000Z',
        'downloadCount': 0,
        'userId': 'session-a',
        'securityMode': False,
        'shareUrl': f'http://localhost:8000/share/{file_id}',
    }


def test_upload_sends_multipart_with_session(temp_config, sample_file):
    seen = {}

    def handler(request):
        seen['path'] = request.url.path
        seen['body'] = request.content
        seen['request_id'] = request.headers.get('X-Request-ID')
        return httpx.Response(200, json=upload_body())

    client = make_client(temp_config, handler)
    result = client.upload_file(sample_file, 'session-a', security_mode=True)

    assert result['id'] == 'ab12'
    assert seen['path'] == '/upload'
    assert b'name="userId"' in seen['body']
    assert b'session-a' in seen['body']
    assert b'Sample content for testing' in seen['body']
    assert seen['request_id']


def test_upload_rate_limited(temp_config, sample_file):
    def handler(request):
        return httpx.Response(
            429,
            json={'detail': 'Too many uploads, try again later', 'code': 'RATE_LIMITED'},
            headers={'Retry-After': '12'},
        )

    with pytest.raises(RateLimitedError) as exc_info:
        make_client(temp_config, handler).upload_file(sample_file, 'session-a')

    assert exc_info.value.retry_after == timedelta(seconds=12)


def test_upload_server_error_not_retried(temp_config, sample_file):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={'detail': 'Upload failed', 'code': 'UPSTREAM_FAILURE'})

    with pytest.raises(UpstreamFailureError, match='Upload failed'):
        make_client(temp_config, handler).upload_file(sample_file, 'session-a')

    assert len(calls) == 1


def test_get_retries_server_errors(temp_config):
    responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, content=b'data')])

    client = make_client(temp_config, lambda request: next(responses))
    response = client._request_with_retry('GET', '/files/ab12.txt')

    assert response.status_code == 200


def test_connection_failure_raises_upstream_error(temp_config):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError('refused', request=request)

    with pytest.raises(UpstreamFailureError, match='Cannot connect'):
        make_client(temp_config, handler)._request_with_retry('GET', '/')

    assert len(calls) == temp_config.get_retry_config()['max_retries'] + 1


def test_download_writes_original_name(temp_config, tmp_path, make_record):
    record = make_record('ab12', original_name='notes.txt')

    def handler(request):
        assert str(request.url) == record.url
        return httpx.Response(200, content=b'hello')

    written = make_client(temp_config, handler).download(record, tmp_path / 'out')

    assert written == tmp_path / 'out' / 'notes.txt'
    assert written.read_bytes() == b'hello'


def test_download_missing_blob(temp_config, tmp_path, make_record):
    client = make_client(temp_config, lambda request: httpx.Response(404, text='File not found'))

    with pytest.raises(NotFoundError):
        client.download(make_record('ab12'), tmp_path)


def test_delete_remote(temp_config):
    def handler(request):
        assert request.method == 'DELETE'
        assert request.url.path == '/files/ab12'
        if request.headers['X-Session-ID'] == 'session-a':
            return httpx.Response(200, json={'deleted': True})
        return httpx.Response(403, json={'deleted': False, 'code': 'NOT_OWNER'})

    client = make_client(temp_config, handler)

    assert client.delete_remote('ab12', 'session-a') is True
    assert client.delete_remote('ab12', 'session-b') is False


def test_share_url(temp_config):
    client = make_client(temp_config, lambda request: httpx.Response(200))
    assert client.share_url('ab12') == 'http://localhost:8000/share/ab12'


def test_error_detail_falls_back_to_text():
    response = httpx.Response(500, text='boom')
    assert ShareServerClient._error_detail(response) == 'boom'
    assert ShareServerClient._error_detail(httpx.Response(400, content=json.dumps({'error': 'x'}).encode())) == 'x'
