"""
Uploads backup files to an object store.
Small files are uploaded with a single request, large ones in parts.
"""
import os
from pathlib import Path
from typing import Dict, Iterable, List

from loguru import logger

from ibs3.storage.backends.base import ObjectStore
from ibs3.utils.converters import MIB, md5_digest
from ibs3.utils.datatypes import UploadJob
from ibs3.utils.retry import MAX_ATTEMPTS, retry

DEFAULT_PART_SIZE = 100 * MIB
DEFAULT_MULTIPART_THRESHOLD = 100 * MIB


def split_file(path: Path, part_size: int) -> List[Path]:
    """
    Split a file into chunks of part_size bytes. The last one may be smaller.
    Chunks are written next to the file: {file}.part.00001, ...
    :param path: file to split
    :param part_size: chunk size in bytes
    :return: chunk files in order
    """
    if part_size < 1:
        raise ValueError('part_size must be positive')
    path = Path(path)
    chunks = []
    with open(path, 'rb') as f:
        while True:
            data = f.read(part_size)
            if not data:
                break
            chunk = path.with_name(f'{path.name}.part.{len(chunks) + 1:05d}')
            with open(chunk, 'wb') as out:
                out.write(data)
            chunks.append(chunk)
    return chunks


def completion_manifest(parts: List[Dict]) -> List[Dict]:
    """
    Reduce listed parts to the fields needed for completing the upload.
    :param parts: output of list_parts
    :return: [{'PartNumber': n, 'ETag': '...'}, ...] sorted by part number
    """
    return sorted(
        ({'PartNumber': x['PartNumber'], 'ETag': x['ETag']} for x in parts),
        key=lambda x: x['PartNumber']
    )


class Uploader:
    """
    Routes files to a single-shot or a multipart upload.
    Every store operation is retried. Exhausted retries abort the run.
    """

    def __init__(self, store: ObjectStore,
                 part_size: int = DEFAULT_PART_SIZE,
                 multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD,
                 max_attempts: int = MAX_ATTEMPTS):
        """
        :param store: object store
        :param part_size: size of a part in bytes
        :param multipart_threshold: files larger than this (bytes) are uploaded in parts
        :param max_attempts: attempts per store operation
        """
        if part_size < 1:
            raise ValueError('part_size must be positive')
        self.store = store
        self.part_size = part_size
        self.multipart_threshold = multipart_threshold
        self.max_attempts = max_attempts

    def _retry(self, operation, *args, description: str, **kwargs):
        return retry(operation, *args, max_attempts=self.max_attempts,
                     description=description, **kwargs)

    def is_multipart(self, job: UploadJob) -> bool:
        return job.size > self.multipart_threshold

    def upload(self, path: Path) -> UploadJob:
        """
        Upload a file under its name.
        :param path: file to upload
        :return: the finished job
        """
        job = UploadJob(path)
        if self.is_multipart(job):
            self.multipart(job)
        else:
            self.put(job)
        return job

    def upload_all(self, paths: Iterable[Path]) -> List[UploadJob]:
        return [self.upload(x) for x in paths]

    def exists(self, key: str) -> bool:
        return self._retry(self.store.exists, key, description=f'Checking for {key}')

    def put(self, job: UploadJob) -> None:
        logger.info(f'Uploading {job} to {self.store}...')
        self._retry(self.store.put_object, job.key, job.path,
                    description=f'Upload of {job.key}')

    def multipart(self, job: UploadJob) -> None:
        """
        Multipart upload: initiate, split, upload parts, list parts, complete.
        On failure the upload is aborted and the chunks are removed (best effort).
        """
        logger.info(f'Uploading {job} to {self.store} using multipart upload...')
        upload_id = self._retry(
            self.store.create_multipart_upload, job.key, {'md5': md5_digest(job.path)},
            description=f'Creating the multipart upload of {job.key}')
        chunks = []
        try:
            chunks = split_file(job.path, self.part_size)
            for number, chunk in enumerate(chunks, start=1):
                logger.info(f'Uploading part {number}/{len(chunks)} of {job.key}...')
                self._retry(self.store.upload_part, job.key, upload_id, number, chunk,
                            md5_digest(chunk),
                            description=f'Upload of part {number} of {job.key}')

            parts = self._retry(self.store.list_parts, job.key, upload_id,
                                description=f'Listing the parts of {job.key}')
            logger.info(f'Completing multipart upload of {job.key}...')
            self._retry(self.store.complete_multipart_upload, job.key, upload_id,
                        completion_manifest(parts),
                        description=f'Completing the multipart upload of {job.key}')
        except Exception:
            self._abort(job, upload_id)
            raise
        finally:
            for chunk in chunks:
                if chunk.exists():
                    os.remove(chunk)

    def _abort(self, job: UploadJob, upload_id: str) -> None:
        try:
            self.store.abort_multipart_upload(job.key, upload_id)
        except Exception as e:
            logger.error(f'Could not abort multipart upload {upload_id} of {job.key}: {e}')
