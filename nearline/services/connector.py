"""S3 nearline storage connector.

Accepts batches of flush, stage and remove requests from the pool manager,
runs them on a fixed-size worker pool and tracks them by request id so
they can be cancelled.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Mapping

from nearline.common.config import (
    BackendConfig,
    ConfigurationError,
    Settings,
    get_settings,
    mask_properties,
    resolve_backend_config,
)
from nearline.domain.requests import FlushRequest, RemoveRequest, StageRequest
from nearline.infra.storage.client import ObjectStoreClient
from nearline.infra.storage.s3_client import S3ObjectStoreClient
from nearline.services.base import ConnectorNotConfiguredError, ConnectorShutdownError
from nearline.services.registry import TaskRegistry
from nearline.services.tasks import FlushTask, NearlineTask, RemoveTask, StageTask

logger = logging.getLogger(__name__)
lifecycle_logger = logging.getLogger("nearline.lifecycle")

ClientFactory = Callable[[BackendConfig], ObjectStoreClient]


def _default_client_factory(config: BackendConfig) -> ObjectStoreClient:
    return S3ObjectStoreClient(config=config)


class S3NearlineStorage:
    """Nearline storage backed by an S3-compatible object store.

    ``flush``, ``stage`` and ``remove`` only build and enqueue tasks; all
    object store and file I/O happens on the worker pool. Every request
    receives exactly one ``completed`` or ``failed`` call.
    """

    def __init__(
        self,
        hsm_type: str,
        hsm_name: str,
        *,
        max_workers: int | None = None,
        client_factory: ClientFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._type = hsm_type
        self._name = hsm_name
        self._settings = settings or get_settings()
        workers = (
            max_workers if max_workers is not None else self._settings.NEARLINE_WORKERS
        )
        if workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = workers
        self._client_factory = client_factory or _default_client_factory
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=f"nearline-{hsm_name}"
        )
        self._registry = TaskRegistry(
            metrics_enabled=self._settings.NEARLINE_ENABLE_METRICS
        )
        self._client: ObjectStoreClient | None = None
        self._config: BackendConfig | None = None
        self._client_lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()
        self._shutdown = False

    @property
    def type(self) -> str:
        return self._type

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def backend_config(self) -> BackendConfig | None:
        with self._client_lock:
            return self._config

    @property
    def is_shutdown(self) -> bool:
        with self._lifecycle_lock:
            return self._shutdown

    def pending_requests(self) -> list[str]:
        """Ids of requests that have been submitted and not yet reported."""
        return self._registry.request_ids()

    def flush(self, requests: Iterable[FlushRequest]) -> None:
        """Flush all files in ``requests`` to nearline storage."""
        self._dispatch(FlushTask, requests)

    def stage(self, requests: Iterable[StageRequest]) -> None:
        """Stage all files in ``requests`` from nearline storage."""
        self._dispatch(StageTask, requests)

    def remove(self, requests: Iterable[RemoveRequest]) -> None:
        """Remove all files in ``requests`` from nearline storage."""
        self._dispatch(RemoveTask, requests)

    def cancel(self, request_id: object) -> None:
        """Cancel any flush, stage or remove request with the given id.

        Never blocks. A cancelled request is failed with a
        ``CancellationError`` by its own task; a request that already
        reported its outcome is left alone.
        """
        if self._registry.cancel(request_id):
            logger.info(
                "Cancelling task with id %s",
                request_id,
                extra={"extra": {"request_id": str(request_id)}},
            )
        else:
            logger.debug("No in-flight task with id %s", request_id)

    def configure(self, properties: Mapping[str, str]) -> None:
        """Apply a new configuration.

        Raises:
            ConfigurationError: If the properties are invalid or no client
                can be created from them. The previous backend stays active.
        """
        lifecycle_logger.info(
            "Configuring nearline storage %s properties=%s",
            self._name,
            mask_properties(properties),
        )
        config = resolve_backend_config(properties, settings=self._settings)
        try:
            client = self._client_factory(config)
        except Exception as exc:
            lifecycle_logger.error("Exception creating object store client: %s", exc)
            raise ConfigurationError("Unable to create object store client") from exc

        with self._client_lock:
            self._client = client
            self._config = config
        lifecycle_logger.info(
            "Nearline storage %s using endpoint %s", self._name, config.endpoint_url
        )

    def shutdown(self) -> None:
        """Stop accepting requests.

        Tasks already submitted keep running; this does not wait for them.
        """
        with self._lifecycle_lock:
            if self._shutdown:
                return
            self._shutdown = True
            self._executor.shutdown(wait=False)
        lifecycle_logger.debug("Shutdown triggered")

    def _current_client(self) -> ObjectStoreClient:
        with self._client_lock:
            client = self._client
        if client is None:
            raise ConnectorNotConfiguredError(
                f"Nearline storage {self._name} has not been configured"
            )
        return client

    def _dispatch(
        self, task_cls: type[NearlineTask], requests: Iterable[object]
    ) -> None:
        # tasks keep the client of the moment they were submitted
        client = self._current_client()
        for request in requests:
            task = task_cls(
                request,
                client,
                hsm_type=self._type,
                hsm_name=self._name,
                on_finished=self._task_finished,
                metrics_enabled=self._settings.NEARLINE_ENABLE_METRICS,
            )
            self._submit(task)

    def _submit(self, task: NearlineTask) -> None:
        with self._lifecycle_lock:
            if self._shutdown:
                raise ConnectorShutdownError(
                    f"Nearline storage {self._name} has been shut down"
                )
            self._registry.register(task)
            try:
                self._executor.submit(task.run)
            except RuntimeError as exc:
                self._registry.discard(task.request_id, task)
                raise ConnectorShutdownError(str(exc)) from exc

    def _task_finished(self, task: NearlineTask) -> None:
        self._registry.discard(task.request_id, task)
