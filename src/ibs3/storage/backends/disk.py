import base64
import json
import os
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from ibs3.storage.backends.base import ObjectStore
from ibs3.utils.converters import md5_digest

UPLOADS_DIR = '.multipart'


class DiskStore(ObjectStore):
    """
    Disk backend for storing backups in a local folder. e.g. a mounted NAS share.
    Multipart uploads are staged in {backup_dir}/.multipart/{upload_id}.
    """

    def __init__(self, backup_dir: Path):
        """
        :param backup_dir: main dir for backups
        """
        if not backup_dir:
            raise ValueError('backup_dir must be provided when using Disk backup target')
        if not os.path.isdir(backup_dir):
            raise FileNotFoundError(f'backup_dir {backup_dir} does not exist!')
        self.backup_dir = Path(backup_dir)

    def __str__(self):
        return str(self.backup_dir)

    def _upload_dir(self, upload_id: str) -> Path:
        path = self.backup_dir / UPLOADS_DIR / upload_id
        if not path.is_dir():
            raise FileNotFoundError(f'No such multipart upload: {upload_id}')
        return path

    @staticmethod
    def _etag(path: Path) -> str:
        return '"' + base64.b64decode(md5_digest(path)).hex() + '"'

    def put_object(self, key: str, path: Path) -> None:
        shutil.copyfile(path, self.backup_dir / key)

    def create_multipart_upload(self, key: str, metadata: Optional[Dict[str, str]] = None) -> str:
        upload_id = uuid.uuid4().hex
        path = self.backup_dir / UPLOADS_DIR / upload_id
        path.mkdir(parents=True)
        with open(path / 'upload.json', 'w', encoding='utf-8') as f:
            json.dump({'key': key, 'metadata': metadata or {}}, f)
        return upload_id

    def upload_part(self, key: str, upload_id: str, part_number: int, path: Path,
                    content_md5: str) -> str:
        if part_number < 1:
            raise ValueError(f'Invalid part number: {part_number}')
        if md5_digest(path) != content_md5:
            raise ValueError(f'Content-MD5 mismatch for part {part_number} of {key}')
        target = self._upload_dir(upload_id) / f'{part_number:05d}.part'
        shutil.copyfile(path, target)
        return self._etag(target)

    def list_parts(self, key: str, upload_id: str) -> List[Dict]:
        parts = []
        for part in sorted(self._upload_dir(upload_id).glob('*.part')):
            stat = part.stat()
            parts.append({
                'PartNumber': int(part.stem),
                'ETag': self._etag(part),
                'Size': stat.st_size,
                'LastModified': datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            })
        return parts

    def complete_multipart_upload(self, key: str, upload_id: str, parts: List[Dict]) -> None:
        upload_dir = self._upload_dir(upload_id)
        numbers = [x['PartNumber'] for x in parts]
        if numbers != list(range(1, len(parts) + 1)):
            raise ValueError(f'Invalid part order for {key}: {numbers}')
        stored = {x['PartNumber']: x['ETag'] for x in self.list_parts(key, upload_id)}
        for part in parts:
            if stored.get(part['PartNumber']) != part['ETag']:
                raise ValueError(f'Part {part["PartNumber"]} of {key} does not match!')

        with open(upload_dir / 'upload.json', encoding='utf-8') as f:
            metadata = json.load(f)['metadata']
        target = self.backup_dir / key
        with open(target, 'wb') as out:
            for number in numbers:
                with open(upload_dir / f'{number:05d}.part', 'rb') as f:
                    shutil.copyfileobj(f, out)
        if 'md5' in metadata and md5_digest(target) != metadata['md5']:
            os.remove(target)
            raise ValueError(f'MD5 of the assembled object {key} does not match!')
        shutil.rmtree(upload_dir)

    def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        logger.info(f'Aborting multipart upload {upload_id} of {key}')
        shutil.rmtree(self._upload_dir(upload_id))

    def exists(self, key: str) -> bool:
        return (self.backup_dir / key).is_file()

    def list_keys(self) -> List[str]:
        return sorted(x.name for x in self.backup_dir.iterdir() if x.is_file())
