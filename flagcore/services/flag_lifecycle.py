# flagcore/services/flag_lifecycle.py
"""Cross-environment lifecycle of feature flags.

A flag is one record per environment sharing a key. This module owns the
rules that span those records: creation fans out to every environment,
delete soft-deletes every copy, enable/disable touch exactly one copy, and
metadata updates name their scope explicitly.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import Callable, List, Optional

from ..errors import AlreadyExistsError, ConflictError, InternalError, NotFoundError, ValidationError
from ..models import ENVIRONMENTS, Environment, FlagPatch, FlagRecord, FlagSummary, parse_environment, utcnow
from ..repository import FlagStore

log = logging.getLogger(__name__)

AuditHook = Callable[[str, Optional[FlagRecord], Optional[FlagRecord]], None]


class UpdateScope(str, enum.Enum):
    ALL_ENVIRONMENTS = "all"
    REPRESENTATIVE = "representative"
    ENVIRONMENT = "environment"


def parse_scope(value) -> UpdateScope:
    if isinstance(value, UpdateScope):
        return value
    if value is None or (isinstance(value, str) and not value.strip()):
        return UpdateScope.ALL_ENVIRONMENTS
    try:
        return UpdateScope(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in UpdateScope)
        raise ValidationError(f"invalid scope '{value}' (expected one of: {allowed})") from None


def _require_text(field: str, value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class FlagLifecycleManager:
    def __init__(self, store: FlagStore, clock: Callable = utcnow, audit: Optional[AuditHook] = None):
        self.store = store
        self._clock = clock
        self._audit = audit

    def _record_audit(self, action: str, old: Optional[FlagRecord], new: Optional[FlagRecord]) -> None:
        if self._audit is not None:
            self._audit(action, old, new)

    # --- create ------------------------------------------------------------
    def create_flag(self, key: str, name: str, description: Optional[str] = None) -> FlagSummary:
        key = _require_text("key", key)
        name = _require_text("name", name)
        if description is not None and not isinstance(description, str):
            raise ValidationError("description must be a string")

        if self.store.find_by_key(key) is not None:
            raise AlreadyExistsError(f"Feature flag with key '{key}' already exists")

        now = self._clock()
        records = [
            FlagRecord(
                key=key,
                name=name,
                description=description or "",
                environment=env,
                enabled=False,
                deleted=False,
                created_at=now,
                updated_at=now,
            )
            for env in ENVIRONMENTS
        ]
        try:
            self.store.save_many(records)
        except ConflictError as e:
            # another create of the same key won the race past the lookup above
            raise AlreadyExistsError(f"Feature flag with key '{key}' already exists") from e

        # read back every copy; a missing one means the fan-out did not land
        missing = [env.value for env in ENVIRONMENTS if self.store.find_by_key_and_environment(key, env) is None]
        representative = self.store.find_by_key(key)
        if missing or representative is None:
            log.error("fan-out verification failed for %s (missing: %s)", key, ", ".join(missing) or "-")
            raise InternalError(f"Failed to create feature flag with key '{key}'")

        log.info("created flag %s in %d environments", key, len(records))
        for record in records:
            self._record_audit("CREATE", None, record)
        return representative.summary()

    # --- read --------------------------------------------------------------
    def list_flags(self, environment) -> List[FlagSummary]:
        env = parse_environment(environment)
        flags = self.store.find_all(env)
        log.debug("listed %d flag(s) in %s", len(flags), env)
        return [f.summary() for f in flags]

    def get_flag(self, key: str, environment) -> FlagSummary:
        return self._require(key, parse_environment(environment)).summary()

    def get_record(self, key: str, environment) -> FlagRecord:
        return self._require(key, parse_environment(environment))

    def _require(self, key: str, env: Environment) -> FlagRecord:
        record = self.store.find_by_key_and_environment(key, env)
        if record is None:
            raise NotFoundError(f"Feature flag with key '{key}' not found in {env} environment")
        return record

    def _require_any(self, key: str) -> FlagRecord:
        record = self.store.find_by_key(key)
        if record is None:
            raise NotFoundError(f"Feature flag with key '{key}' not found")
        return record

    # --- update ------------------------------------------------------------
    def update_flag(
        self,
        key: str,
        patch: FlagPatch,
        scope=UpdateScope.ALL_ENVIRONMENTS,
        environment=None,
    ) -> FlagSummary:
        scope = parse_scope(scope)
        if patch.name is not None:
            if scope is not UpdateScope.ALL_ENVIRONMENTS:
                raise ValidationError("name can only be changed for all environments at once")
            patch = replace(patch, name=_require_text("name", patch.name))
        if patch.enabled is not None and scope is UpdateScope.ALL_ENVIRONMENTS:
            # enabled is per-environment state; toggle one copy at a time
            raise ValidationError("enabled can only be changed for a single environment (scope 'environment')")

        representative = self._require_any(key)

        if scope is UpdateScope.ALL_ENVIRONMENTS:
            targets = self.store.find_all_by_key(key)
        elif scope is UpdateScope.REPRESENTATIVE:
            targets = [representative]
        else:
            if environment is None:
                raise ValidationError("environment is required for scope 'environment'")
            targets = [self._require(key, parse_environment(environment))]

        if patch.is_empty():
            return targets[0].summary()

        now = self._clock()
        updated = []
        for record in targets:
            saved = self.store.update(patch.apply(record, now))
            self._record_audit("UPDATE", record, saved)
            updated.append(saved)

        log.info("updated flag %s (%s scope, %d copy/copies)", key, scope.value, len(updated))
        if scope is UpdateScope.ALL_ENVIRONMENTS:
            for saved in updated:
                if saved.environment == representative.environment:
                    return saved.summary()
        return updated[0].summary()

    # --- delete ------------------------------------------------------------
    def delete_flag(self, key: str) -> None:
        existing = self._require_any(key)
        self.store.delete(key)
        log.info("soft-deleted flag %s in all environments", key)
        self._record_audit("DELETE", existing, None)

    # --- per-environment toggles --------------------------------------------
    def enable_flag(self, key: str, environment) -> FlagRecord:
        return self._toggle(key, environment, True)

    def disable_flag(self, key: str, environment) -> FlagRecord:
        return self._toggle(key, environment, False)

    def _toggle(self, key: str, environment, enabled: bool) -> FlagRecord:
        env = parse_environment(environment)
        before = self._require(key, env)
        if enabled:
            after = self.store.enable_flag_for_environment(key, env)
        else:
            after = self.store.disable_flag_for_environment(key, env)
        log.info("%s flag %s in %s", "enabled" if enabled else "disabled", key, env)
        self._record_audit("ENABLE" if enabled else "DISABLE", before, after)
        return after
