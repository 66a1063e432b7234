"""Request contracts handed to the connector by the pool manager.

The request objects are owned by the caller. The connector only reads
their attributes and drives their lifecycle callbacks.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol
from uuid import UUID


class FileAttributes(Protocol):
    """Metadata of the replica a request refers to."""

    @property
    def file_id(self) -> str: ...

    @property
    def storage_class(self) -> str: ...

    @property
    def size(self) -> int: ...

    @property
    def checksums(self) -> Iterable[Any] | None:
        """Known checksums of the file, or ``None`` when none are recorded."""
        ...


class NearlineRequest(Protocol):
    """Lifecycle shared by flush, stage and remove requests.

    ``completed`` or ``failed`` is called exactly once per request, unless
    the request was cancelled before it was activated.
    """

    @property
    def id(self) -> UUID: ...

    def activate(self) -> None: ...

    def completed(self, result: Any) -> None: ...

    def failed(self, cause: BaseException) -> None: ...


class FlushRequest(NearlineRequest, Protocol):
    @property
    def file_attributes(self) -> FileAttributes: ...

    @property
    def replica_uri(self) -> str:
        """Local replica to read, as a ``file://`` URI or plain path."""
        ...


class StageRequest(NearlineRequest, Protocol):
    @property
    def file_attributes(self) -> FileAttributes: ...

    @property
    def replica_uri(self) -> str:
        """Local destination to write, as a ``file://`` URI or plain path."""
        ...

    def allocate(self) -> None:
        """Reserve space for the destination replica."""
        ...


class RemoveRequest(NearlineRequest, Protocol):
    @property
    def uri(self) -> str:
        """Location reference returned by a previous flush."""
        ...
