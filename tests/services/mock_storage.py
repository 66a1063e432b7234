"""Mock object store client for testing connector operations."""

from __future__ import annotations

import io
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nearline.infra.storage.client import BackendError

GATE_TIMEOUT = 5


@dataclass
class MockObjectStoreClient:
    """In-memory mock of ObjectStoreClient for testing.

    ``gates`` holds events a method waits on before doing its work, and
    ``entered`` is set as soon as a gated method is called, so tests can
    hold a task inside a backend call.
    """

    buckets: set[str] = field(default_factory=set)
    objects: dict[tuple[str, str], bytes] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    gates: dict[str, threading.Event] = field(default_factory=dict)
    entered: dict[str, threading.Event] = field(
        default_factory=lambda: defaultdict(threading.Event)
    )
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    active: int = 0
    max_active: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def _enter(self, method: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((method, args))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.entered[method].set()
            gate = self.gates.get(method)
            if gate is not None:
                gate.wait(GATE_TIMEOUT)
            failure = self.failures.get(method)
            if failure is not None:
                raise failure
        except BaseException:
            self._leave()
            raise

    def _leave(self) -> None:
        with self._lock:
            self.active -= 1

    def called(self, method: str) -> list[tuple[Any, ...]]:
        with self._lock:
            return [args for name, args in self.calls if name == method]

    def bucket_exists(self, bucket: str) -> bool:
        self._enter("bucket_exists", bucket)
        try:
            return bucket in self.buckets
        finally:
            self._leave()

    def make_bucket(self, bucket: str) -> None:
        self._enter("make_bucket", bucket)
        try:
            self.buckets.add(bucket)
        finally:
            self._leave()

    def put_object(
        self, bucket: str, object_key: str, source_path: str, size: int
    ) -> None:
        self._enter("put_object", bucket, object_key, source_path, size)
        try:
            if bucket not in self.buckets:
                raise BackendError(f"No such bucket {bucket}", kind="not_found")
            self.objects[(bucket, object_key)] = Path(source_path).read_bytes()
        finally:
            self._leave()

    def get_object(self, bucket: str, object_key: str) -> io.BytesIO:
        self._enter("get_object", bucket, object_key)
        try:
            if (bucket, object_key) not in self.objects:
                raise BackendError(f"No such key {object_key}", kind="not_found")
            return io.BytesIO(self.objects[(bucket, object_key)])
        finally:
            self._leave()

    def remove_object(self, bucket: str, object_key: str) -> None:
        self._enter("remove_object", bucket, object_key)
        try:
            self.objects.pop((bucket, object_key), None)
        finally:
            self._leave()
