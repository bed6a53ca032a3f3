# flagcore/models/environment.py
from __future__ import annotations

import enum
from typing import Any

from ..errors import ValidationError


class Environment(str, enum.Enum):
    LOCAL = "local"
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

    def __str__(self) -> str:
        return self.value


ENVIRONMENTS = tuple(Environment)


def parse_environment(value: Any) -> Environment:
    """Turn raw input (query arg, JSON field, CLI arg) into an Environment.

    Raises ValidationError when the value is missing or not one of the
    known environments.
    """
    if isinstance(value, Environment):
        return value
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError("environment is required")
    try:
        return Environment(value.strip().lower())
    except ValueError:
        allowed = ", ".join(e.value for e in ENVIRONMENTS)
        raise ValidationError(f"invalid environment '{value}' (expected one of: {allowed})") from None
