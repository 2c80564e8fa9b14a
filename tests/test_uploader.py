"""Tests for the CLI upload workflow."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from common.exceptions import RateLimitedError, UpstreamFailureError
from common.utils import format_timestamp
from lifecycle.rate_limiter import RateLimiter
from lifecycle.session import SessionManager
from lifecycle.settings import UserSettings
from cli.uploader import Uploader


@pytest.fixture
def session(storage):
    return SessionManager(storage)


@pytest.fixture
def user_settings(storage):
    return UserSettings(storage)


@pytest.fixture
def fake_client(clock):
    client = MagicMock()
    counter = iter(range(1000))

    def upload_file(path, user_id, security_mode=False):
        file_id = f"f{next(counter):03d}"
        return {
            'id': file_id,
            'filename': f'{file_id}.txt',
            'originalName': path.name,
            'size': path.stat().st_size,
            'type': 'text/plain',
            'url': f'http://localhost:8000/files/{file_id}.txt',
            'uploadedAt': format_timestamp(clock()),
            'expiresAt': format_timestamp(clock() + timedelta(minutes=5)),
            'downloadCount': 0,
            'userId': user_id,
            'securityMode': security_mode,
            'shareUrl': f'http://localhost:8000/share/{file_id}',
        }

    client.upload_file.side_effect = upload_file
    return client


@pytest.fixture
def uploader(store, storage, session, user_settings, fake_client, clock):
    limiter = RateLimiter(storage, max_uploads=2, clock=clock)
    return Uploader(store, limiter, session, user_settings, fake_client, clock=clock)


def test_upload_records_files_in_store(uploader, store, session, multiple_sample_files):
    progress = uploader.upload_files(multiple_sample_files)

    assert progress.total == 3
    assert progress.completed == 3
    assert progress.failed == 0
    assert {r.id for r in store.get_stored_files()} == {'f000', 'f001', 'f002'}
    assert all(r.user_id == session.get_user_session_id() for r in progress.uploaded)


def test_local_expiry_follows_auto_delete_setting(uploader, user_settings, sample_file, clock):
    user_settings.set_auto_delete_minutes(15)

    record = uploader.upload_files([sample_file]).uploaded[0]

    assert record.expires_at == clock() + timedelta(minutes=15)


def test_security_mode_sent_from_settings(uploader, user_settings, fake_client, sample_file):
    user_settings.update_security_settings(encryption_enabled=True)

    record = uploader.upload_files([sample_file]).uploaded[0]

    assert fake_client.upload_file.call_args.args[2] is True
    assert record.security_mode is True


def test_failed_file_tallied_and_batch_continues(uploader, fake_client, multiple_sample_files, tmp_path):
    original = fake_client.upload_file.side_effect

    def flaky(path, user_id, security_mode=False):
        if path.name == 'test1.txt':
            raise UpstreamFailureError('Upload failed: storage offline')
        return original(path, user_id, security_mode)

    fake_client.upload_file.side_effect = flaky
    paths = multiple_sample_files + [tmp_path / 'missing.txt']

    progress = uploader.upload_files(paths)

    assert progress.completed == 2
    assert progress.failed == 2
    assert any('storage offline' in e for e in progress.errors)
    assert any('missing.txt' in e for e in progress.errors)


def test_progress_callback_called_per_file(uploader, multiple_sample_files):
    seen = []

    uploader.upload_files(multiple_sample_files, on_progress=lambda p: seen.append((p.current_file, p.completed)))

    assert seen == [('test0.txt', 1), ('test1.txt', 2), ('test2.txt', 3)]


def test_rate_limit_checked_once_per_batch(uploader, fake_client, sample_file, clock):
    uploader.upload_files([sample_file])
    uploader.upload_files([sample_file])

    with pytest.raises(RateLimitedError) as exc_info:
        uploader.upload_files([sample_file])

    assert exc_info.value.retry_after == timedelta(seconds=60)
    assert fake_client.upload_file.call_count == 2

    clock.advance(seconds=61)
    assert uploader.upload_files([sample_file]).completed == 1
