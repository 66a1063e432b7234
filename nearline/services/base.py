from __future__ import annotations

from concurrent.futures import CancelledError


class ConnectorError(Exception):
    """Base class for errors raised synchronously by the connector."""


class ConnectorNotConfiguredError(ConnectorError):
    """Raised when work is dispatched before a backend has been configured."""


class ConnectorShutdownError(ConnectorError):
    """Raised when work is dispatched after the connector was shut down."""


class DuplicateRequestError(ConnectorError):
    """Raised when a request id is already registered for an in-flight task."""


class CancellationError(CancelledError):
    """Reported through ``failed`` for requests stopped by ``cancel``."""
