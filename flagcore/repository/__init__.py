from .base import FlagStore
from .memory import InMemoryFlagStore
from .sql import SqlAlchemyFlagStore

__all__ = ["FlagStore", "InMemoryFlagStore", "SqlAlchemyFlagStore"]
