"""Profile fact document access."""

from .store import FactLookup, FactStore, is_missing

__all__ = ["FactLookup", "FactStore", "is_missing"]
