"""Units of work executed on the connector's worker pool.

Each task wraps one caller request and reports exactly one outcome to it.
Cancellation is cooperative: ``cancel`` only records the request and the
task observes it at its next checkpoint, so the caller never waits.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable

from nearline.domain import (
    OPERATION_FLUSH,
    OPERATION_REMOVE,
    OPERATION_STAGE,
    bucket_name_for,
    build_location,
    local_path,
    parse_location,
)
from nearline.domain.requests import (
    FlushRequest,
    NearlineRequest,
    RemoveRequest,
    StageRequest,
)
from nearline.infra.observability.metrics import LATENCY, REQUESTS
from nearline.infra.storage.client import ObjectStoreClient
from nearline.services.base import CancellationError

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


class TaskState(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"


class NearlineTask:
    """Base class for flush, stage and remove tasks.

    Subclasses implement :meth:`_execute`, which returns the value passed to
    ``completed`` and calls :meth:`_checkpoint` between blocking steps.
    """

    operation: str = ""

    def __init__(
        self,
        request: NearlineRequest,
        client: ObjectStoreClient,
        *,
        hsm_type: str,
        hsm_name: str,
        on_finished: Callable[["NearlineTask"], None] | None = None,
        metrics_enabled: bool = True,
    ) -> None:
        self._request = request
        self._client = client
        self._hsm_type = hsm_type
        self._hsm_name = hsm_name
        self._on_finished = on_finished
        self._metrics_enabled = metrics_enabled
        self._lock = threading.Lock()
        self._state = TaskState.PENDING
        self._cancel_requested = False
        self._outcome: str | None = None

    @property
    def request(self) -> NearlineRequest:
        return self._request

    @property
    def request_id(self) -> Any:
        return self._request.id

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    @property
    def outcome(self) -> str | None:
        """``completed``, ``failed`` or ``cancelled`` once reported."""
        with self._lock:
            return self._outcome

    @property
    def cancel_requested(self) -> bool:
        with self._lock:
            return self._cancel_requested

    def cancel(self) -> bool:
        """Ask the task to stop; returns False when it has already reported."""
        with self._lock:
            if self._state is TaskState.DONE:
                return False
            self._cancel_requested = True
            return True

    def _checkpoint(self) -> None:
        with self._lock:
            cancelled = self._cancel_requested
        if cancelled:
            raise CancellationError(f"Request {self.request_id} was cancelled")

    def _log_extra(self, **fields: Any) -> dict[str, Any]:
        payload = {"operation": self.operation, "request_id": str(self.request_id)}
        payload.update(fields)
        return {"extra": payload}

    def run(self) -> None:
        with self._lock:
            if self._state is not TaskState.PENDING:
                return
            self._state = TaskState.RUNNING
        start = time.perf_counter()

        try:
            # a request cancelled while queued is never activated
            self._checkpoint()
            result = self._execute()
        except (CancellationError, Exception) as exc:
            self._report(exc, start=start)
        else:
            self._report(None, result=result, start=start)

    def _execute(self) -> Any:
        raise NotImplementedError

    def _discard_result(self, result: Any) -> None:
        """Undo local side effects of a body whose success lost to a cancel."""

    def _report(
        self, error: BaseException | None, *, result: Any = None, start: float
    ) -> None:
        with self._lock:
            if self._state is TaskState.DONE:
                return
            self._state = TaskState.DONE
            discard_result = error is None and self._cancel_requested
            if discard_result:
                error = CancellationError(f"Request {self.request_id} was cancelled")
            if error is None:
                self._outcome = "completed"
            elif isinstance(error, CancellationError):
                self._outcome = "cancelled"
            else:
                self._outcome = "failed"
            outcome = self._outcome

        if discard_result:
            try:
                self._discard_result(result)
            except Exception:
                logger.exception(
                    "Unable to undo %s of request %s after cancellation",
                    self.operation,
                    self.request_id,
                    extra=self._log_extra(outcome=outcome),
                )

        if self._on_finished is not None:
            self._on_finished(self)

        duration_ms = round((time.perf_counter() - start) * 1000, 3)
        if outcome == "completed":
            logger.debug(
                "%s of request %s completed",
                self.operation,
                self.request_id,
                extra=self._log_extra(outcome=outcome, duration_ms=duration_ms),
            )
        elif outcome == "cancelled":
            logger.info(
                "Cancelled %s of request %s",
                self.operation,
                self.request_id,
                extra=self._log_extra(outcome=outcome, duration_ms=duration_ms),
            )
        else:
            logger.error(
                "%s of request %s failed: %s",
                self.operation.capitalize(),
                self.request_id,
                error,
                extra=self._log_extra(
                    outcome=outcome, duration_ms=duration_ms, exception=repr(error)
                ),
            )

        if self._metrics_enabled:
            REQUESTS.labels(self.operation, outcome).inc()
            LATENCY.labels(self.operation).observe(duration_ms / 1000)

        try:
            if error is None:
                self._request.completed(result)
            else:
                self._request.failed(error)
        except Exception:
            logger.exception(
                "Request %s raised from its %s callback",
                self.request_id,
                "completed" if error is None else "failed",
                extra=self._log_extra(outcome=outcome),
            )


class FlushTask(NearlineTask):
    """Upload a local replica into the bucket of its storage class."""

    operation = OPERATION_FLUSH
    _request: FlushRequest

    def _execute(self) -> set[str]:
        attributes = self._request.file_attributes
        bucket = bucket_name_for(attributes.storage_class)
        object_key = str(attributes.file_id)
        source = local_path(self._request.replica_uri)
        location = build_location(self._hsm_type, self._hsm_name, object_key, bucket)
        logger.info(
            "Flush file %s",
            source,
            extra=self._log_extra(bucket=bucket, object_key=object_key),
        )

        self._request.activate()
        self._checkpoint()
        if not self._client.bucket_exists(bucket):
            logger.info("Creating bucket %s", bucket, extra=self._log_extra(bucket=bucket))
            self._client.make_bucket(bucket)
        self._checkpoint()
        self._client.put_object(bucket, object_key, str(source), attributes.size)
        return {location}


class StageTask(NearlineTask):
    """Download an object into the request's local destination."""

    operation = OPERATION_STAGE
    _request: StageRequest
    _target: Path | None = None

    def _execute(self) -> Any:
        attributes = self._request.file_attributes
        bucket = bucket_name_for(attributes.storage_class)
        object_key = str(attributes.file_id)
        target = local_path(self._request.replica_uri)
        self._target = target
        logger.info(
            "Stage file %s",
            target,
            extra=self._log_extra(bucket=bucket, object_key=object_key),
        )

        self._request.activate()
        self._request.allocate()
        self._checkpoint()

        stream = self._client.get_object(bucket, object_key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as out:
                while True:
                    self._checkpoint()
                    chunk = stream.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        finally:
            stream.close()

        checksums = attributes.checksums
        return set(checksums) if checksums is not None else None

    def _discard_result(self, result: Any) -> None:
        if self._target is not None:
            self._target.unlink(missing_ok=True)


class RemoveTask(NearlineTask):
    """Delete the object a previous flush stored."""

    operation = OPERATION_REMOVE
    _request: RemoveRequest

    def _execute(self) -> None:
        location = parse_location(self._request.uri)
        logger.info(
            "Remove file %s",
            location.object_key,
            extra=self._log_extra(
                bucket=location.bucket, object_key=location.object_key
            ),
        )

        self._request.activate()
        self._checkpoint()
        self._client.remove_object(location.bucket, location.object_key)
        return None
