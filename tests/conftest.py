"""Shared pytest fixtures for all tests."""

from datetime import datetime, timedelta, timezone

import pytest

from common.types import FileRecord
from lifecycle.local_storage import InMemoryStorage
from lifecycle.metadata_store import MetadataStore
from cli.config import Config

T0 = datetime(2025, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock; call it to read the current time."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage, clock):
    """
    Metadata store over in-memory storage with a fake clock.

    Returns:
        MetadataStore with a 5 minute default lifetime
    """
    return MetadataStore(storage, default_ttl=timedelta(minutes=5), clock=clock)


@pytest.fixture
def make_record(clock):
    """
    Factory for FileRecords uploaded at the clock's current time.

    Returns:
        Callable taking the ID plus any FileRecord field overrides
    """
    def factory(file_id: str = "ab12", **overrides) -> FileRecord:
        uploaded_at = overrides.pop("uploaded_at", clock())
        ttl = overrides.pop("ttl", timedelta(minutes=5))
        fields = {
            "id": file_id,
            "filename": f"{file_id}.txt",
            "original_name": "notes.txt",
            "size": 100,
            "url": f"http://localhost:8000/files/{file_id}.txt",
            "uploaded_at": uploaded_at,
            "expires_at": uploaded_at + ttl,
            "user_id": "session-a",
            "content_type": "text/plain",
        }
        fields.update(overrides)
        return FileRecord(**fields)

    return factory


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .filelink directory
    """
    config_dir = tmp_path / '.filelink'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def multiple_sample_files(tmp_path):
    """
    Create multiple sample files for testing bulk operations.

    Returns:
        List of Paths to sample files
    """
    files = []
    for i in range(3):
        file_path = tmp_path / f'test{i}.txt'
        file_path.write_text(f'Sample content {i}')
        files.append(file_path)
    return files
