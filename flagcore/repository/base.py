# flagcore/repository/base.py
from __future__ import annotations

import abc
from typing import Iterable, List, Optional

from ..models import Environment, FlagRecord


class FlagStore(abc.ABC):
    """Persistence contract for flag records keyed by (key, environment).

    Lookups never return soft-deleted rows. Records handed out are detached
    copies; mutate them and pass them back through `update`.
    """

    @abc.abstractmethod
    def save(self, record: FlagRecord) -> FlagRecord:
        """Insert one record. ConflictError if the live composite exists."""

    def save_many(self, records: Iterable[FlagRecord]) -> List[FlagRecord]:
        """Insert several records as one unit.

        The default is sequential and not atomic; adapters override it.
        """
        return [self.save(r) for r in records]

    @abc.abstractmethod
    def find_all(self, environment: Environment) -> List[FlagRecord]:
        """Live records for one environment, newest created_at first."""

    @abc.abstractmethod
    def find_by_key(self, key: str) -> Optional[FlagRecord]:
        """Any one live record for the key, regardless of environment."""

    @abc.abstractmethod
    def find_all_by_key(self, key: str) -> List[FlagRecord]:
        """Every live environment copy of the key."""

    @abc.abstractmethod
    def find_by_key_and_environment(self, key: str, environment: Environment) -> Optional[FlagRecord]:
        ...

    @abc.abstractmethod
    def update(self, record: FlagRecord) -> FlagRecord:
        """Replace name/description/enabled/updated_at. NotFoundError if absent."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Soft-delete every copy of the key. No-op when nothing matches."""

    @abc.abstractmethod
    def enable_flag_for_environment(self, key: str, environment: Environment) -> FlagRecord:
        ...

    @abc.abstractmethod
    def disable_flag_for_environment(self, key: str, environment: Environment) -> FlagRecord:
        ...

    def ping(self) -> None:
        """Raise if the backing storage is unreachable."""
