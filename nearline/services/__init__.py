from .base import (
    CancellationError,
    ConnectorError,
    ConnectorNotConfiguredError,
    ConnectorShutdownError,
    DuplicateRequestError,
)
from .connector import S3NearlineStorage
from .registry import TaskRegistry
from .tasks import FlushTask, NearlineTask, RemoveTask, StageTask, TaskState

__all__ = [
    "S3NearlineStorage",
    "TaskRegistry",
    "NearlineTask",
    "FlushTask",
    "StageTask",
    "RemoveTask",
    "TaskState",
    "ConnectorError",
    "ConnectorNotConfiguredError",
    "ConnectorShutdownError",
    "DuplicateRequestError",
    "CancellationError",
]
