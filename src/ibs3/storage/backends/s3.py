from pathlib import Path
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import ClientError
from loguru import logger

from ibs3.storage.backends.base import ObjectStore

# the only fields of list_parts needed by complete_multipart_upload
MANIFEST_FIELDS = ('PartNumber', 'ETag')
NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')


class S3Store(ObjectStore):
    """
    S3 backend. Uploads backups to a bucket.
    """

    def __init__(self, bucket: str, endpoint: Optional[str] = None,
                 region: Optional[str] = None,
                 access_key_id: Optional[str] = None,
                 secret_access_key: Optional[str] = None):
        """
        Credentials and region fall back to the boto3 defaults if not given.
        :param bucket: target bucket
        :param endpoint: custom endpoint url. e.g. for minio
        :param region: region name
        :param access_key_id:
        :param secret_access_key:
        """
        if not bucket:
            raise ValueError('bucket must be provided when using S3 backup target')
        self.bucket = bucket
        self._endpoint = endpoint

        self.client = boto3.client(
            's3',
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def __str__(self):
        return f's3://{self.bucket}' + (f' @ {self._endpoint}' if self._endpoint else '')

    def put_object(self, key: str, path: Path) -> None:
        with open(path, 'rb') as f:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=f)

    def create_multipart_upload(self, key: str, metadata: Optional[Dict[str, str]] = None) -> str:
        response = self.client.create_multipart_upload(
            Bucket=self.bucket, Key=key, Metadata=metadata or {})
        logger.debug(f'Created multipart upload {response["UploadId"]} for {key}')
        return response['UploadId']

    def upload_part(self, key: str, upload_id: str, part_number: int, path: Path,
                    content_md5: str) -> str:
        with open(path, 'rb') as f:
            response = self.client.upload_part(
                Bucket=self.bucket,
                Key=key,
                UploadId=upload_id,
                PartNumber=part_number,
                Body=f,
                ContentMD5=content_md5,
            )
        return response['ETag']

    def list_parts(self, key: str, upload_id: str) -> List[Dict]:
        parts = []
        paginator = self.client.get_paginator('list_parts')
        for page in paginator.paginate(Bucket=self.bucket, Key=key, UploadId=upload_id):
            for part in page.get('Parts', []):
                # drop Size, LastModified, checksums -> not accepted by complete
                parts.append({x: part[x] for x in MANIFEST_FIELDS})
        return parts

    def complete_multipart_upload(self, key: str, upload_id: str, parts: List[Dict]) -> None:
        self.client.complete_multipart_upload(
            Bucket=self.bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={'Parts': parts},
        )

    def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        logger.info(f'Aborting multipart upload {upload_id} of {key}')
        self.client.abort_multipart_upload(Bucket=self.bucket, Key=key, UploadId=upload_id)

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in NOT_FOUND_CODES:
                return False
            raise
        return True

    def list_keys(self) -> List[str]:
        logger.info(f'Listing all objects in {self}. This might take a while...')
        keys = []
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket):
            keys.extend(x['Key'] for x in page.get('Contents', []))
        return keys
