"""
Unit tests for the disk object store.
"""
import pytest

from ibs3.storage.backends.disk import DiskStore
from ibs3.utils.converters import md5_digest


def _part(tmp_path, name, data):
    path = tmp_path / name
    path.write_bytes(data)
    return path, md5_digest(path)


class TestDiskStore:
    """Tests for DiskStore."""

    def test_requires_existing_dir(self, tmp_path):
        with pytest.raises(ValueError):
            DiskStore(None)
        with pytest.raises(FileNotFoundError):
            DiskStore(tmp_path / 'missing')

    def test_put_and_list(self, tmp_path, disk_store):
        path, _ = _part(tmp_path, 'daily_photos_2024-03-05.snar', b'state')

        disk_store.put_object(path.name, path)

        assert disk_store.list_keys() == ['daily_photos_2024-03-05.snar']

    def test_multipart(self, tmp_path, disk_store, bucket_dir):
        one, md5_one = _part(tmp_path, 'p1', b'hello ')
        two, md5_two = _part(tmp_path, 'p2', b'world')
        whole, md5_whole = _part(tmp_path, 'whole', b'hello world')

        upload_id = disk_store.create_multipart_upload('obj', {'md5': md5_whole})
        disk_store.upload_part('obj', upload_id, 1, one, md5_one)
        disk_store.upload_part('obj', upload_id, 2, two, md5_two)
        parts = disk_store.list_parts('obj', upload_id)

        assert [x['PartNumber'] for x in parts] == [1, 2]
        assert {'Size', 'LastModified'} <= set(parts[0])

        disk_store.complete_multipart_upload(
            'obj', upload_id, [{'PartNumber': x['PartNumber'], 'ETag': x['ETag']} for x in parts])

        assert (bucket_dir / 'obj').read_bytes() == b'hello world'
        assert disk_store.list_keys() == ['obj']

    def test_bad_part_digest(self, tmp_path, disk_store):
        one, _ = _part(tmp_path, 'p1', b'hello')
        upload_id = disk_store.create_multipart_upload('obj')

        with pytest.raises(ValueError):
            disk_store.upload_part('obj', upload_id, 1, one, 'bm90IGFuIG1kNQ==')

    def test_gapped_manifest_rejected(self, tmp_path, disk_store):
        one, md5_one = _part(tmp_path, 'p1', b'a')
        upload_id = disk_store.create_multipart_upload('obj')
        etag = disk_store.upload_part('obj', upload_id, 1, one, md5_one)
        disk_store.upload_part('obj', upload_id, 3, one, md5_one)

        with pytest.raises(ValueError):
            disk_store.complete_multipart_upload(
                'obj', upload_id, [{'PartNumber': 1, 'ETag': etag}, {'PartNumber': 3, 'ETag': etag}])

    def test_out_of_order_manifest_rejected(self, tmp_path, disk_store):
        one, md5_one = _part(tmp_path, 'p1', b'a')
        upload_id = disk_store.create_multipart_upload('obj')
        etag = disk_store.upload_part('obj', upload_id, 1, one, md5_one)
        disk_store.upload_part('obj', upload_id, 2, one, md5_one)

        with pytest.raises(ValueError):
            disk_store.complete_multipart_upload(
                'obj', upload_id, [{'PartNumber': 2, 'ETag': etag}, {'PartNumber': 1, 'ETag': etag}])

    def test_abort(self, tmp_path, disk_store, bucket_dir):
        one, md5_one = _part(tmp_path, 'p1', b'a')
        upload_id = disk_store.create_multipart_upload('obj')
        disk_store.upload_part('obj', upload_id, 1, one, md5_one)

        disk_store.abort_multipart_upload('obj', upload_id)

        with pytest.raises(FileNotFoundError):
            disk_store.list_parts('obj', upload_id)
        assert disk_store.list_keys() == []

    def test_exists(self, tmp_path, disk_store):
        path, _ = _part(tmp_path, 'base_photos_2024-03-05.tar.gz', b'archive')
        disk_store.put_object(path.name, path)

        assert disk_store.exists('base_photos_2024-03-05.tar.gz')
        assert not disk_store.exists('daily_photos_2024-03-05.tar.gz')
