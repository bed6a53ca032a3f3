# flagcore/models/feature_flag.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Index, false

from ..extensions import db
from .environment import Environment


def utcnow() -> datetime:
    # naive UTC, matching what the DateTime columns hand back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() + "Z" if ts else None


@dataclass
class FlagRecord:
    """State of one flag in one environment."""

    key: str
    name: str
    environment: Environment
    description: str = ""
    enabled: bool = False
    deleted: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def copy(self, **changes) -> "FlagRecord":
        return replace(self, **changes)

    def summary(self) -> "FlagSummary":
        return FlagSummary(
            key=self.key,
            name=self.name,
            description=self.description,
            enabled=self.enabled,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def serialize(self) -> dict:
        data = self.summary().serialize()
        data["environment"] = self.environment.value
        return data


@dataclass(frozen=True)
class FlagSummary:
    key: str
    name: str
    description: str
    enabled: bool
    created_at: datetime
    updated_at: datetime

    def serialize(self) -> dict:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        return data


@dataclass(frozen=True)
class FlagPatch:
    """Fields to change on update; None means keep the current value."""

    name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None

    def is_empty(self) -> bool:
        return self.name is None and self.description is None and self.enabled is None

    def apply(self, record: FlagRecord, now: datetime) -> FlagRecord:
        return record.copy(
            name=self.name if self.name is not None else record.name,
            description=self.description if self.description is not None else record.description,
            enabled=self.enabled if self.enabled is not None else record.enabled,
            updated_at=now,
        )


class FeatureFlagRow(db.Model):
    __tablename__ = "feature_flag"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    environment = db.Column(
        db.Enum(
            Environment,
            name="flag_environment",
            native_enum=False,
            length=32,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=False,
    )
    enabled = db.Column(db.Boolean, nullable=False, default=False)
    deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @classmethod
    def from_record(cls, record: FlagRecord) -> "FeatureFlagRow":
        return cls(
            key=record.key,
            name=record.name,
            description=record.description,
            environment=record.environment,
            enabled=record.enabled,
            deleted=record.deleted,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_record(self) -> FlagRecord:
        return FlagRecord(
            key=self.key,
            name=self.name,
            description=self.description or "",
            environment=self.environment,
            enabled=bool(self.enabled),
            deleted=bool(self.deleted),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<FeatureFlagRow {self.key}@{self.environment} enabled={self.enabled} deleted={self.deleted}>"


# (key, environment) is unique among live rows only, so a deleted key can be created again
Index(
    "uq_feature_flag_key_environment_live",
    FeatureFlagRow.key,
    FeatureFlagRow.environment,
    unique=True,
    sqlite_where=FeatureFlagRow.deleted == false(),
    postgresql_where=FeatureFlagRow.deleted == false(),
)
