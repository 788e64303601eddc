"""
Shared fixtures and fakes for the ibs3 tests.
"""
from collections import Counter, defaultdict
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from ibs3.archive.builder import ArchiveBuilder
from ibs3.archive.state import SnapshotStateStore
from ibs3.archive.tar import ArchiveError
from ibs3.storage.backends.base import ObjectStore
from ibs3.storage.backends.disk import DiskStore

RUN_DATE = date(2024, 3, 5)


class FakeArchiver:
    """
    Stands in for tar. The snapshot file accumulates one line per level,
    so tests can see which state a build was seeded from.
    """

    def __init__(self, fail_on_level: Optional[int] = None):
        self.fail_on_level = fail_on_level
        self.calls = []

    def create(self, source: Path, snapshot: Path, level: int, archive: Path) -> Path:
        self.calls.append((Path(source), level, Path(archive).name))
        previous = Path(snapshot).read_text() if Path(snapshot).exists() else ''
        Path(archive).write_bytes(f'archive of {source} at level {level}'.encode())
        if level == self.fail_on_level:
            raise ArchiveError(f'tar failed at level {level}')
        Path(snapshot).write_text(previous + f'{level}\n')
        return Path(archive)


class FlakyStore(ObjectStore):
    """
    Wraps a store. Counts calls and raises OSError for the first
    failures[operation] calls of an operation.
    """

    def __init__(self, store: ObjectStore, failures: Optional[Dict[str, int]] = None):
        self.store = store
        self.failures = Counter(failures or {})
        self.calls = Counter()
        self.log: List[tuple] = []
        self.manifests = defaultdict(list)

    def __str__(self):
        return f'flaky {self.store}'

    def _call(self, name, *args):
        self.calls[name] += 1
        self.log.append((name,) + args)
        if self.failures[name] > 0:
            self.failures[name] -= 1
            raise OSError(f'{name} failed')
        return getattr(self.store, name)(*args)

    def put_object(self, key, path):
        return self._call('put_object', key, path)

    def create_multipart_upload(self, key, metadata=None):
        return self._call('create_multipart_upload', key, metadata)

    def upload_part(self, key, upload_id, part_number, path, content_md5):
        return self._call('upload_part', key, upload_id, part_number, path, content_md5)

    def list_parts(self, key, upload_id):
        return self._call('list_parts', key, upload_id)

    def complete_multipart_upload(self, key, upload_id, parts):
        self.manifests[key].append(parts)
        return self._call('complete_multipart_upload', key, upload_id, parts)

    def abort_multipart_upload(self, key, upload_id):
        return self._call('abort_multipart_upload', key, upload_id)

    def exists(self, key):
        return self._call('exists', key)

    def list_keys(self):
        return self._call('list_keys')


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / 'work'
    path.mkdir()
    return path


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / 'photos'
    path.mkdir()
    (path / 'a.jpg').write_bytes(b'a' * 100)
    (path / 'b.jpg').write_bytes(b'b' * 200)
    return path


@pytest.fixture
def bucket_dir(tmp_path):
    path = tmp_path / 'bucket'
    path.mkdir()
    return path


@pytest.fixture
def disk_store(bucket_dir):
    return DiskStore(bucket_dir)


@pytest.fixture
def state_store(work_dir):
    return SnapshotStateStore(work_dir)


@pytest.fixture
def archiver():
    return FakeArchiver()


@pytest.fixture
def builder(archiver, state_store):
    return ArchiveBuilder(archiver, state_store)
