from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class BackupTarget(Enum):
    """
    Represents supported backup targets.
    """
    S3 = 'S3'
    DISK = 'Disk'


class ObjectStore(ABC):
    """
    ABC for object store implementations.
    Implements single and multipart uploads of backup files.
    Every failing operation raises an exception.
    """

    @abstractmethod
    def put_object(self, key: str, path: Path) -> None:
        """
        Upload a whole file in one request.
        :param key: object key
        :param path: file to upload
        """

    @abstractmethod
    def create_multipart_upload(self, key: str, metadata: Optional[Dict[str, str]] = None) -> str:
        """
        Start a multipart upload.
        :param key: object key
        :param metadata: user metadata of the object. e.g. the md5 of the whole file
        :return: upload id
        """

    @abstractmethod
    def upload_part(self, key: str, upload_id: str, part_number: int, path: Path,
                    content_md5: str) -> str:
        """
        Upload one part of a multipart upload.
        :param key: object key
        :param upload_id: id returned by create_multipart_upload
        :param part_number: 1..n
        :param path: file containing the part
        :param content_md5: base64 md5 of the part. Verified by the store.
        :return: ETag of the part
        """

    @abstractmethod
    def list_parts(self, key: str, upload_id: str) -> List[Dict]:
        """
        List the parts recorded for an upload.
        :return: list of dicts with (at least) PartNumber and ETag.
        """

    @abstractmethod
    def complete_multipart_upload(self, key: str, upload_id: str, parts: List[Dict]) -> None:
        """
        Assemble the parts into the final object.
        :param parts: manifest. [{'PartNumber': 1, 'ETag': '...'}, ...]
        """

    @abstractmethod
    def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        """
        Drop an unfinished upload and its parts.
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if an object is stored under key.
        """

    @abstractmethod
    def list_keys(self) -> List[str]:
        """
        Returns a list of all stored objects.
        """
