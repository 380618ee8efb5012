import json
import logging
import os
import tempfile
from collections import deque
from typing import Deque, Generic, Iterable, Iterator, List, TypeVar

from pydantic import ValidationError

from krops.agent.core import DiagnosisResult

logger = logging.getLogger("krops.cache")

T = TypeVar("T")

SCHEMA_VERSION = 1
DEFAULT_CAPACITY = 5


class BoundedHistory(Generic[T]):
    """Newest-first sequence holding at most ``capacity`` items."""

    def __init__(self, capacity: int, items: Iterable[T] = ()):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)
        # items arrive newest first, so anything past capacity is the oldest
        self._items.extend(list(items)[:capacity])

    def push_front(self, item: T) -> None:
        # appendleft on a full deque drops the tail
        self._items.appendleft(item)

    def to_list(self) -> List[T]:
        return list(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


class ReportCache:
    """Recent diagnosis reports persisted to a single JSON file."""

    def __init__(self, storage_path: str, capacity: int = DEFAULT_CAPACITY):
        self.storage_path = storage_path
        self._history: BoundedHistory[DiagnosisResult] = BoundedHistory(capacity, self._read())

    def load(self) -> List[DiagnosisResult]:
        return self._history.to_list()

    def record(self, result: DiagnosisResult) -> List[DiagnosisResult]:
        history = BoundedHistory(self._history.capacity, self._history)
        history.push_front(result)
        # the in-memory history only changes once the file is on disk
        self._write(history)
        self._history = history
        logger.info("[Cache] Stored report for %s (%d kept)", result.crop, len(history))
        return self.load()

    def _read(self) -> List[DiagnosisResult]:
        if not os.path.exists(self.storage_path):
            return []
        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning("[Cache] Unreadable report store at %s, starting empty", self.storage_path, exc_info=True)
            return []

        # A bare list is the original browser format.
        if isinstance(data, dict):
            if data.get("schema") != SCHEMA_VERSION:
                logger.warning("[Cache] Unknown schema %r in %s, discarding", data.get("schema"), self.storage_path)
                return []
            data = data.get("reports")
        if not isinstance(data, list):
            logger.warning("[Cache] Unexpected report store shape in %s, discarding", self.storage_path)
            return []

        try:
            return [DiagnosisResult.model_validate(entry) for entry in data]
        except ValidationError:
            logger.warning("[Cache] Invalid stored report in %s, discarding", self.storage_path, exc_info=True)
            return []

    def _write(self, history: BoundedHistory[DiagnosisResult]) -> None:
        payload = {
            "schema": SCHEMA_VERSION,
            "reports": [r.model_dump(by_alias=True, exclude_none=True) for r in history],
        }
        directory = os.path.dirname(os.path.abspath(self.storage_path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.storage_path)
        except BaseException:
            os.unlink(tmp_path)
            raise
