# flagcore/repository/sql.py
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, InternalError, NotFoundError
from ..models import ENVIRONMENTS, Environment, FeatureFlagRow, FlagRecord, utcnow
from .base import FlagStore

log = logging.getLogger(__name__)


class SqlAlchemyFlagStore(FlagStore):
    """Flag rows in the `feature_flag` table via Flask-SQLAlchemy.

    Needs an app context; every write commits its own transaction.
    """

    def __init__(self, db, clock: Callable = utcnow):
        self.db = db
        self._clock = clock

    def _live(self):
        return FeatureFlagRow.query.filter_by(deleted=False)

    def _commit(self, what: str) -> None:
        try:
            self.db.session.commit()
        except IntegrityError as e:
            self.db.session.rollback()
            raise ConflictError(f"{what}: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.session.rollback()
            log.exception("commit failed (%s)", what)
            raise InternalError(f"{what}: storage failure") from e

    def save(self, record: FlagRecord) -> FlagRecord:
        return self.save_many([record])[0]

    def save_many(self, records: Iterable[FlagRecord]) -> List[FlagRecord]:
        rows = [FeatureFlagRow.from_record(r) for r in records]
        for row in rows:
            if self.find_by_key_and_environment(row.key, row.environment) is not None:
                raise ConflictError(f"flag '{row.key}' already stored for {row.environment}")
        self.db.session.add_all(rows)
        self._commit("insert " + ", ".join(f"{r.key}@{r.environment}" for r in rows))
        return [row.to_record() for row in rows]

    def find_all(self, environment: Environment) -> List[FlagRecord]:
        rows = (
            self._live()
            .filter(FeatureFlagRow.environment == environment)
            .order_by(FeatureFlagRow.created_at.desc(), FeatureFlagRow.id.desc())
            .all()
        )
        return [row.to_record() for row in rows]

    def find_by_key(self, key: str) -> Optional[FlagRecord]:
        copies = self.find_all_by_key(key)
        return copies[0] if copies else None

    def find_all_by_key(self, key: str) -> List[FlagRecord]:
        rows = {row.environment: row for row in self._live().filter_by(key=key).all()}
        return [rows[env].to_record() for env in ENVIRONMENTS if env in rows]

    def find_by_key_and_environment(self, key: str, environment: Environment) -> Optional[FlagRecord]:
        row = self._live().filter_by(key=key, environment=environment).first()
        return row.to_record() if row else None

    def _row(self, key: str, environment: Environment) -> FeatureFlagRow:
        row = self._live().filter_by(key=key, environment=environment).first()
        if row is None:
            raise NotFoundError(f"Feature flag with key '{key}' not found in {environment} environment")
        return row

    def update(self, record: FlagRecord) -> FlagRecord:
        row = self._row(record.key, record.environment)
        row.name = record.name
        row.description = record.description
        row.enabled = record.enabled
        row.updated_at = record.updated_at or self._clock()
        self._commit(f"update {record.key}@{record.environment}")
        return row.to_record()

    def delete(self, key: str) -> None:
        count = self._live().filter_by(key=key).update(
            {"deleted": True, "updated_at": self._clock()}, synchronize_session=False
        )
        self._commit(f"soft-delete {key}")
        log.debug("soft-deleted %d row(s) for %s", count, key)

    def enable_flag_for_environment(self, key: str, environment: Environment) -> FlagRecord:
        return self._set_enabled(key, environment, True)

    def disable_flag_for_environment(self, key: str, environment: Environment) -> FlagRecord:
        return self._set_enabled(key, environment, False)

    def _set_enabled(self, key: str, environment: Environment, enabled: bool) -> FlagRecord:
        row = self._row(key, environment)
        if row.enabled != enabled:
            row.enabled = enabled
            row.updated_at = self._clock()
            self._commit(f"{'enable' if enabled else 'disable'} {key}@{environment}")
        return row.to_record()

    def ping(self) -> None:
        self.db.session.execute(text("SELECT 1"))
