"""S3 nearline storage connector.

Moves pool files to and from an S3-compatible object store on behalf of a
storage-pool manager.
"""

from nearline.common.config import BackendConfig, ConfigurationError
from nearline.infra.storage.client import BackendError
from nearline.provider import S3NearlineStorageProvider
from nearline.services import (
    CancellationError,
    ConnectorError,
    ConnectorNotConfiguredError,
    ConnectorShutdownError,
    DuplicateRequestError,
    S3NearlineStorage,
)

__all__ = [
    "BackendConfig",
    "BackendError",
    "CancellationError",
    "ConfigurationError",
    "ConnectorError",
    "ConnectorNotConfiguredError",
    "ConnectorShutdownError",
    "DuplicateRequestError",
    "S3NearlineStorage",
    "S3NearlineStorageProvider",
]
