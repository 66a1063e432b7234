"""Object storage abstraction layer.

This module provides a protocol-based abstraction for the nearline object
store, with an S3 implementation that works against AWS S3, MinIO, and
other S3-compatible services.
"""

from .client import BackendError, ObjectStoreClient

__all__ = [
    "BackendError",
    "ObjectStoreClient",
]
