from .environment import ENVIRONMENTS, Environment, parse_environment
from .feature_flag import FeatureFlagRow, FlagPatch, FlagRecord, FlagSummary, utcnow

__all__ = [
    "ENVIRONMENTS",
    "Environment",
    "parse_environment",
    "FeatureFlagRow",
    "FlagPatch",
    "FlagRecord",
    "FlagSummary",
    "utcnow",
]
