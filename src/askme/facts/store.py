"""Read-only access to the profile fact document."""

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class FactLookup:
    """Outcome of resolving a key path.

    Attributes:
        key_path: The dotted path that was requested.
        found: True only when the path exists and holds a non-missing value.
        value: The resolved value, None when not found.
    """

    key_path: str
    found: bool
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the shape sent back to the model as tool output."""
        data: dict[str, Any] = {"key_path": self.key_path, "found": self.found}
        if self.found:
            data["value"] = self.value
        return data


def is_missing(value: Any) -> bool:
    """Return True for None, blank strings, and empty lists or mappings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class FactStore:
    """Nested profile document loaded once and never mutated.

    Values are addressed with dotted key paths such as ``favorite.movie``.
    Absence is always reported through ``FactLookup.found``; ``resolve``
    never raises.
    """

    def __init__(self, document: Mapping[str, Any]) -> None:
        """Initialize the store with a parsed document.

        Args:
            document: The profile mapping. A deep copy is kept so later
                changes by the caller are not visible.
        """
        if not isinstance(document, Mapping):
            raise TypeError("Profile document must be a JSON object")
        self._document: dict[str, Any] = copy.deepcopy(dict(document))

    @classmethod
    def from_file(cls, path: str | Path) -> "FactStore":
        """Load the document from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    def resolve(self, key_path: str) -> FactLookup:
        """Walk the document along a dotted key path.

        Segments are trimmed and empty segments ignored. Each step must
        land on a mapping that owns the next segment; lists are never
        indexed into.
        """
        parts = [part.strip() for part in key_path.split(".")]
        current: Any = self._document

        for part in parts:
            if not part:
                continue
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return FactLookup(key_path=key_path, found=False)

        if is_missing(current):
            return FactLookup(key_path=key_path, found=False)

        return FactLookup(key_path=key_path, found=True, value=copy.deepcopy(current))
