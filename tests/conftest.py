"""Shared fixtures for the bucket mirror tests."""

import io
import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest
import structlog

from bucketmirror.api_clients.base import BaseStoreClient, ListPage, RemoteObject
from bucketmirror.config import MirrorConfig
from bucketmirror.exceptions import ObjectNotFound, RepositoryUnavailable, TransportError
from bucketmirror.utils.logging import setup_logging


class TrackingBytesIO(io.BytesIO):
    """BytesIO that remembers whether it was closed."""

    def close(self):
        self.was_closed = True
        super().close()


class FailingStream(TrackingBytesIO):
    """Stream that fails after the first read."""

    def __init__(self, data: bytes, error: Exception):
        super().__init__(data)
        self.error = error
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads > 1:
            raise self.error
        return super().read(size)


class FakeStoreClient(BaseStoreClient):
    """In-memory store with marker-based pagination."""

    def __init__(self, page_size: int = 1000, bucket: str = "test-bucket"):
        super().__init__()
        self.page_size = page_size
        self.bucket = bucket
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.missing_bucket = False
        self.list_error: Optional[Exception] = None
        self.list_calls: List[Tuple[str, str, str]] = []
        self.get_calls: List[str] = []
        self.opened: List[io.BytesIO] = []
        self.stream_factory = None

    def put(self, key: str, data: bytes, last_modified: str = "2020-01-01T00:00:00.000Z"):
        self.objects[key] = (data, last_modified)

    def list_objects(self, bucket: str, prefix: str, marker: str) -> ListPage:
        self.list_calls.append((bucket, prefix, marker))

        if self.list_error is not None:
            raise self.list_error
        if self.missing_bucket or bucket != self.bucket:
            raise RepositoryUnavailable(f"Bucket not found: {bucket}", bucket=bucket, prefix=prefix)

        keys = sorted(key for key in self.objects if key.startswith(prefix) and key > marker)
        page_keys = keys[:self.page_size]

        return ListPage(
            objects=[
                RemoteObject(key=key, last_modified=self.objects[key][1], size=str(len(self.objects[key][0])))
                for key in page_keys
            ],
            is_truncated=len(keys) > self.page_size
        )

    def get_object(self, bucket: str, key: str):
        self.get_calls.append(key)

        if key not in self.objects:
            raise ObjectNotFound(f"Object not found: {key}", key=key)

        if self.stream_factory is not None:
            stream = self.stream_factory(self.objects[key][0])
        else:
            stream = TrackingBytesIO(self.objects[key][0])
        self.opened.append(stream)
        return stream


@pytest.fixture
def store():
    """Empty in-memory store."""
    return FakeStoreClient()


@pytest.fixture
def work_dir(tmp_path):
    """Working directory for the local mirror."""
    path = tmp_path / "work"
    path.mkdir()
    return str(path)


@pytest.fixture
def mirror_config(work_dir):
    """Mirror configuration pointing at the test bucket and working directory."""
    return MirrorConfig(
        access_key_id="AKIATEST",
        secret_access_key="secret",
        bucket="test-bucket",
        working_directory=work_dir,
        auto_get_source=True
    )


@pytest.fixture
def log_events(tmp_path, caplog):
    """Log as JSON at DEBUG; calling the fixture value returns the structlog events seen so far."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level

    setup_logging(log_level="DEBUG", log_format="json", log_file=str(tmp_path / "logs" / "mirror.log"))

    def events() -> List[dict]:
        messages = [record.getMessage() for record in caplog.records]
        return [json.loads(message) for message in messages if message.startswith("{")]

    yield events

    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def write_file(root: str, relative_path: str, data: bytes = b"data", modified: Optional[datetime] = None) -> str:
    """Create a file under ``root`` with an optional UTC modification time."""
    path = os.path.join(root, *relative_path.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    if modified is not None:
        timestamp = modified.replace(tzinfo=modified.tzinfo or timezone.utc).timestamp()
        os.utime(path, (timestamp, timestamp))
    return path
