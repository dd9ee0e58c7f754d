"""Shared fixtures for seed-sync tests."""

import itertools
import os
from pathlib import Path
from typing import BinaryIO, Dict, List, Set, Tuple
from unittest.mock import Mock, patch

import pytest

from seed_sync.config import ENV_OVERRIDES
from seed_sync.errors import DeleteFailed, DownloadFailed, StoreUnavailable, UploadFailed
from seed_sync.file_sync.object_store import ObjectStore


class FakeObjectStore(ObjectStore):
    """In-memory store that, like GridFS, keeps duplicate names."""

    def __init__(self, names=()):
        self._ids = itertools.count(1)
        self.objects: List[Tuple[int, str, bytes]] = []
        self.fail_uploads: Set[str] = set()
        self.fail_deletes: Set[str] = set()
        self.unavailable = False
        self.calls: List[Tuple[str, str]] = []
        for name in names:
            self.objects.append((next(self._ids), name, b""))

    @property
    def reserved_collections(self) -> Set[str]:
        return {"upload.files", "upload.chunks"}

    def names(self) -> List[str]:
        return sorted(name for _, name, _ in self.objects)

    def content(self, name: str) -> bytes:
        return [data for _, n, data in self.objects if n == name][-1]

    def list_names(self) -> Set[str]:
        if self.unavailable:
            raise StoreUnavailable("connection refused")
        return {name for _, name, _ in self.objects}

    def upload(self, name: str, stream: BinaryIO) -> None:
        self.calls.append(("upload", name))
        if name in self.fail_uploads:
            raise UploadFailed(name, ConnectionError("connection reset"))
        self.objects.append((next(self._ids), name, stream.read()))

    def delete(self, name: str) -> int:
        self.calls.append(("delete", name))
        if name in self.fail_deletes:
            raise DeleteFailed(name, ConnectionError("connection reset"))
        before = len(self.objects)
        self.objects = [obj for obj in self.objects if obj[1] != name]
        return before - len(self.objects)

    def download(self, name: str, stream: BinaryIO) -> None:
        matches = [data for _, n, data in self.objects if n == name]
        if not matches:
            raise DownloadFailed(name, FileNotFoundError(name))
        stream.write(matches[-1])


@pytest.fixture(autouse=True)
def clean_env():
    """Isolate tests from SEED_* variables, including ones loaded from .env files."""
    with patch.dict(os.environ):
        for name in list(ENV_OVERRIDES) + ["SEED_VERBOSE", "SEED_ENV"]:
            os.environ.pop(name, None)
        yield


@pytest.fixture
def fake_store():
    return FakeObjectStore()


@pytest.fixture
def quiet_console():
    return Mock()


@pytest.fixture
def make_upload_dir(tmp_path):
    """Create an upload directory holding the given file names."""

    def _make(*names: str, content: Dict[str, bytes] = None) -> Path:
        upload_dir = tmp_path / "uploadFiles"
        upload_dir.mkdir(exist_ok=True)
        for name in names:
            data = (content or {}).get(name, f"data of {name}".encode())
            (upload_dir / name).write_bytes(data)
        return upload_dir

    return _make
