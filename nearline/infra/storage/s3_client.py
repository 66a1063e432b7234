"""S3-compatible object store client implementation.

This module provides the nearline object store client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import os
from typing import Any, BinaryIO

from nearline.common.config import BackendConfig
from nearline.infra.storage.client import (
    KIND_AUTHENTICATION,
    KIND_CONNECTIVITY,
    KIND_MALFORMED_RESPONSE,
    KIND_NOT_FOUND,
    KIND_UNKNOWN,
    BackendError,
)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
AUTH_ERROR_CODES = {
    "403",
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "InvalidToken",
}
BUCKET_ALREADY_PRESENT_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def _error_code(exc: BaseException) -> str | None:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    code = response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


def classify_error(exc: BaseException) -> str:
    """Map a boto3/botocore exception to a backend error kind."""
    from botocore import exceptions as bce
    from botocore.parsers import ResponseParserError

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, bce.ClientError):
            code = _error_code(current)
            if code in NOT_FOUND_CODES:
                return KIND_NOT_FOUND
            if code in AUTH_ERROR_CODES:
                return KIND_AUTHENTICATION
            return KIND_UNKNOWN
        if isinstance(current, (bce.NoCredentialsError, bce.PartialCredentialsError)):
            return KIND_AUTHENTICATION
        if isinstance(current, (bce.ConnectionError, bce.HTTPClientError)):
            return KIND_CONNECTIVITY
        if isinstance(current, ResponseParserError):
            return KIND_MALFORMED_RESPONSE
        # boto3 re-raises transfer failures, keep looking at the original cause
        current = current.__cause__ or current.__context__
    return KIND_UNKNOWN


def _backend_error(message: str, exc: BaseException) -> BackendError:
    return BackendError(f"{message}: {exc}", kind=classify_error(exc))


class S3ObjectStoreClient:
    """S3-compatible nearline object store client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    def __init__(self, *, config: BackendConfig) -> None:
        """Initialize the S3 client from a resolved backend configuration.

        Args:
            config: Endpoint, credentials and transport options.

        Raises:
            BackendError: If boto3 is not installed or rejects the config.
        """
        self._config = config
        self._client = self._build_client(config)

    @property
    def config(self) -> BackendConfig:
        return self._config

    @staticmethod
    def _build_client(config: BackendConfig) -> Any:
        """Create a boto3 S3 client from a backend configuration."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise BackendError(
                "boto3 and botocore are required for the S3 nearline backend. "
                "Install with: pip install boto3"
            ) from exc

        options: dict[str, Any] = {"s3": {"addressing_style": config.addressing_style}}
        if config.timeout is not None:
            options["connect_timeout"] = config.timeout
            options["read_timeout"] = config.timeout

        try:
            return boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                region_name=config.region,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
                use_ssl=bool(config.use_ssl),
                config=Config(**options),
            )
        except Exception as exc:
            raise _backend_error("Failed to create S3 client", exc) from exc

    def bucket_exists(self, bucket: str) -> bool:
        """Check whether a bucket exists."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except Exception as exc:
            if _error_code(exc) in NOT_FOUND_CODES:
                return False
            raise _backend_error(f"Failed to check bucket {bucket}", exc) from exc
        return True

    def make_bucket(self, bucket: str) -> None:
        """Create a bucket, tolerating a concurrent creation of the same name."""
        params: dict[str, Any] = {"Bucket": bucket}
        if self._config.region and self._config.region != "us-east-1":
            params["CreateBucketConfiguration"] = {
                "LocationConstraint": self._config.region
            }
        try:
            self._client.create_bucket(**params)
        except Exception as exc:
            if _error_code(exc) in BUCKET_ALREADY_PRESENT_CODES:
                return
            raise _backend_error(f"Failed to create bucket {bucket}", exc) from exc

    def put_object(
        self, bucket: str, object_key: str, source_path: str, size: int
    ) -> None:
        """Upload a local file; the file must match the expected size."""
        actual = os.stat(source_path).st_size
        if size is not None and actual != size:
            raise OSError(
                f"Size of {source_path} is {actual} bytes, expected {size} bytes"
            )
        try:
            self._client.upload_file(source_path, bucket, object_key)
        except Exception as exc:
            raise _backend_error(
                f"Failed to upload {object_key} to {bucket}", exc
            ) from exc

    def get_object(self, bucket: str, object_key: str) -> BinaryIO:
        """Open an object body as a stream."""
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _backend_error(
                f"Failed to get object {object_key} from {bucket}", exc
            ) from exc

        body = response.get("Body")
        if body is None:
            raise BackendError(
                "S3 response missing Body", kind=KIND_MALFORMED_RESPONSE
            )
        return body

    def remove_object(self, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _backend_error(
                f"Failed to delete object {object_key} from {bucket}", exc
            ) from exc
