from .flag_lifecycle import FlagLifecycleManager, UpdateScope, parse_scope

__all__ = ["FlagLifecycleManager", "UpdateScope", "parse_scope"]
