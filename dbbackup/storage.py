"""S3 upload of finished backup archives."""
from __future__ import annotations

import logging
from pathlib import Path

import boto3
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from .config import S3Config

LOGGER = logging.getLogger(__name__)


class UploadError(Exception):
    """Raised when uploading the archive to object storage fails."""


def backup_key(timestamp: str) -> str:
    """Object key for a run started at *timestamp*."""

    return f"sql_backup_at_{timestamp}.tar.gz"


class S3Uploader:
    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: S3Config) -> "S3Uploader":
        """Build an uploader authenticated with the static credentials from *config*."""

        try:
            session = boto3.session.Session(
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.access_secret,
                region_name=config.region,
            )
            client = session.client("s3", endpoint_url=config.endpoint_url)
        except (BotoCoreError, ValueError) as exc:
            raise UploadError(f"Error creating S3 session: {exc}") from exc
        return cls(client, config.bucket)

    def upload(self, file_path: Path, key: str) -> None:
        file_path = Path(file_path)
        try:
            handle = file_path.open("rb")
        except OSError as exc:
            raise UploadError(f"Error opening file {file_path}: {exc}") from exc
        LOGGER.info("Uploading '%s' to s3://%s/%s", file_path, self.bucket, key)
        with handle:
            try:
                self.client.upload_fileobj(handle, self.bucket, key)
            except (Boto3Error, BotoCoreError, ClientError) as exc:
                raise UploadError(f"Error uploading file to S3: {exc}") from exc
        LOGGER.info("Successfully uploaded backup to S3")


__all__ = ["S3Uploader", "UploadError", "backup_key"]
