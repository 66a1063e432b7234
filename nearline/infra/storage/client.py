"""Object store client protocol and error type.

This module defines the narrow interface the connector needs from an
object storage backend: bucket existence and creation, object upload,
streamed download and deletion.
"""

from __future__ import annotations

from typing import BinaryIO, Final, Protocol

KIND_CONNECTIVITY: Final[str] = "connectivity"
KIND_AUTHENTICATION: Final[str] = "authentication"
KIND_NOT_FOUND: Final[str] = "not_found"
KIND_MALFORMED_RESPONSE: Final[str] = "malformed_response"
KIND_UNKNOWN: Final[str] = "unknown"

BACKEND_ERROR_KINDS: Final[frozenset[str]] = frozenset(
    {
        KIND_CONNECTIVITY,
        KIND_AUTHENTICATION,
        KIND_NOT_FOUND,
        KIND_MALFORMED_RESPONSE,
        KIND_UNKNOWN,
    }
)


class BackendError(RuntimeError):
    """Raised when object storage operations fail.

    ``kind`` tags the failure class so callers never have to enumerate the
    exception types of the underlying client library.
    """

    def __init__(self, message: str, *, kind: str = KIND_UNKNOWN) -> None:
        if kind not in BACKEND_ERROR_KINDS:
            raise ValueError(f"Unknown backend error kind: {kind}")
        super().__init__(message)
        self.kind = kind


class ObjectStoreClient(Protocol):
    """Protocol defining the interface for nearline object storage backends.

    Implementations must provide all methods defined here.
    Currently supports S3-compatible storage services.
    """

    def bucket_exists(self, bucket: str) -> bool:
        """Check whether a bucket exists.

        Args:
            bucket: Bucket name.

        Returns:
            True if the bucket exists and is accessible.

        Raises:
            BackendError: If the check itself fails.
        """
        ...

    def make_bucket(self, bucket: str) -> None:
        """Create a bucket.

        Args:
            bucket: Bucket name.

        Raises:
            BackendError: If the bucket cannot be created.
        """
        ...

    def put_object(
        self, bucket: str, object_key: str, source_path: str, size: int
    ) -> None:
        """Upload a local file as an object.

        Args:
            bucket: Target bucket name.
            object_key: Object key in the bucket.
            source_path: Local file to upload.
            size: Expected size of the file in bytes.

        Raises:
            BackendError: If the upload fails.
            OSError: If the local file cannot be read.
        """
        ...

    def get_object(self, bucket: str, object_key: str) -> BinaryIO:
        """Open an object for streamed reading.

        Args:
            bucket: Source bucket name.
            object_key: Object key in the bucket.

        Returns:
            A binary stream positioned at the start of the object. The
            caller closes it.

        Raises:
            BackendError: If the object doesn't exist or the request fails.
        """
        ...

    def remove_object(self, bucket: str, object_key: str) -> None:
        """Delete an object.

        Args:
            bucket: Bucket name.
            object_key: Object key to delete.

        Raises:
            BackendError: If the operation fails.
        """
        ...
