# flagcore/repository/memory.py
from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..errors import ConflictError, NotFoundError
from ..models import ENVIRONMENTS, Environment, FlagRecord, utcnow
from .base import FlagStore

_Composite = Tuple[str, Environment]


class InMemoryFlagStore(FlagStore):
    """Process-local store; used by tests and FLAGS_STORE=memory."""

    def __init__(self, clock: Callable = utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._live: Dict[_Composite, FlagRecord] = {}
        self._deleted: List[FlagRecord] = []

    def save(self, record: FlagRecord) -> FlagRecord:
        with self._lock:
            self._check_free(record)
            self._live[(record.key, record.environment)] = record.copy()
            return record.copy()

    def save_many(self, records: Iterable[FlagRecord]) -> List[FlagRecord]:
        records = list(records)
        with self._lock:
            seen = set()
            for record in records:
                composite = (record.key, record.environment)
                if composite in seen:
                    raise ConflictError(f"duplicate record {record.key}@{record.environment} in batch")
                seen.add(composite)
                self._check_free(record)
            for record in records:
                self._live[(record.key, record.environment)] = record.copy()
            return [r.copy() for r in records]

    def find_all(self, environment: Environment) -> List[FlagRecord]:
        with self._lock:
            rows = [r.copy() for (_, env), r in self._live.items() if env == environment]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows

    def find_by_key(self, key: str) -> Optional[FlagRecord]:
        with self._lock:
            for env in ENVIRONMENTS:
                row = self._live.get((key, env))
                if row is not None:
                    return row.copy()
        return None

    def find_all_by_key(self, key: str) -> List[FlagRecord]:
        with self._lock:
            return [self._live[(key, env)].copy() for env in ENVIRONMENTS if (key, env) in self._live]

    def find_by_key_and_environment(self, key: str, environment: Environment) -> Optional[FlagRecord]:
        with self._lock:
            row = self._live.get((key, environment))
            return row.copy() if row else None

    def update(self, record: FlagRecord) -> FlagRecord:
        with self._lock:
            row = self._get(record.key, record.environment)
            row.name = record.name
            row.description = record.description
            row.enabled = record.enabled
            row.updated_at = record.updated_at or self._clock()
            return row.copy()

    def delete(self, key: str) -> None:
        with self._lock:
            now = self._clock()
            for composite in [c for c in self._live if c[0] == key]:
                row = self._live.pop(composite)
                row.deleted = True
                row.updated_at = now
                self._deleted.append(row)

    def enable_flag_for_environment(self, key: str, environment: Environment) -> FlagRecord:
        return self._set_enabled(key, environment, True)

    def disable_flag_for_environment(self, key: str, environment: Environment) -> FlagRecord:
        return self._set_enabled(key, environment, False)

    def deleted_rows(self, key: str) -> List[FlagRecord]:
        """Soft-deleted copies of the key, oldest deletion first."""
        with self._lock:
            return [r.copy() for r in self._deleted if r.key == key]

    # --- helpers ---------------------------------------------------------
    def _check_free(self, record: FlagRecord) -> None:
        if (record.key, record.environment) in self._live:
            raise ConflictError(f"flag '{record.key}' already stored for {record.environment}")

    def _get(self, key: str, environment: Environment) -> FlagRecord:
        row = self._live.get((key, environment))
        if row is None:
            raise NotFoundError(f"Feature flag with key '{key}' not found in {environment} environment")
        return row

    def _set_enabled(self, key: str, environment: Environment, enabled: bool) -> FlagRecord:
        with self._lock:
            row = self._get(key, environment)
            if row.enabled != enabled:
                row.enabled = enabled
                row.updated_at = self._clock()
            return row.copy()
