from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Sequence

from ..analytics.models import Dataset, DatasetInfo

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Shared/exclusive lock. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def mint_dataset_id() -> str:
    """Millisecond timestamp id."""
    return str(time.time_ns() // 1_000_000)


class DatasetRegistry:
    """Process-lifetime in-memory store of datasets keyed by id.

    Reads share the lock; ``put``/``add``/``delete``/``clear`` hold it
    exclusively. Callers must finish decoding before calling in, so the
    exclusive section only ever covers the dict mutation.
    """

    def __init__(self) -> None:
        self._datasets: dict[str, Dataset] = {}
        self._lock = ReadWriteLock()

    def put(self, dataset_id: str, dataset: Dataset) -> None:
        with self._lock.exclusive():
            self._datasets[dataset_id] = dataset

    def add(self, dataset: Dataset) -> str:
        """Store under a fresh timestamp id, stepping past ids already taken."""
        candidate = int(mint_dataset_id())
        with self._lock.exclusive():
            while str(candidate) in self._datasets:
                candidate += 1
            dataset_id = str(candidate)
            self._datasets[dataset_id] = dataset
        return dataset_id

    def get(self, dataset_id: str) -> Dataset | None:
        with self._lock.shared():
            return self._datasets.get(dataset_id)

    def get_many(self, dataset_ids: Sequence[str]) -> list[tuple[str, Dataset]]:
        """Resolve ids in order under one shared section, dropping misses."""
        with self._lock.shared():
            found = [(i, self._datasets.get(i)) for i in dataset_ids]
        return [(i, d) for i, d in found if d is not None]

    def list_datasets(self) -> list[DatasetInfo]:
        with self._lock.shared():
            entries = list(self._datasets.items())
        return [
            DatasetInfo(
                id=dataset_id,
                file_name=d.file_name,
                upload_time=d.upload_time,
                row_count=d.row_count,
                headers=list(d.headers),
            )
            for dataset_id, d in entries
        ]

    def delete(self, dataset_id: str) -> bool:
        with self._lock.exclusive():
            return self._datasets.pop(dataset_id, None) is not None

    def clear(self) -> None:
        with self._lock.exclusive():
            self._datasets.clear()

    def __len__(self) -> int:
        with self._lock.shared():
            return len(self._datasets)

    def __contains__(self, dataset_id: object) -> bool:
        with self._lock.shared():
            return dataset_id in self._datasets
