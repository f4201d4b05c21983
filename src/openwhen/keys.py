"""Short-key tables — long field names to one-character wire codes.

Tables are append-only. A code, once it has appeared in a shared link,
keeps its meaning forever: new fields get fresh codes, retired fields
keep theirs reserved.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class KeyMapper:
    """Immutable bidirectional mapping between field names and codes."""

    def __init__(self, scope: str, table: Mapping[str, str]):
        inverse: dict[str, str] = {}
        for name, code in table.items():
            if len(code) != 1:
                raise ValueError(f"{scope}: code for {name!r} must be one character, got {code!r}")
            if code in inverse:
                raise ValueError(f"{scope}: code {code!r} used by both {inverse[code]!r} and {name!r}")
            inverse[code] = name
        self.scope = scope
        self._forward = MappingProxyType(dict(table))
        self._inverse = MappingProxyType(inverse)

    def __iter__(self) -> Iterator[str]:
        return iter(self._forward)

    def __len__(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"KeyMapper({self.scope!r}, {dict(self._forward)!r})"

    def shorten(self, name: str) -> str:
        return self._forward[name]

    def expand(self, code: str) -> str:
        return self._inverse[code]

    def is_code(self, key: str) -> bool:
        return key in self._inverse

    def shorten_dict(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Re-key ``data`` with codes, in canonical table order."""
        return {code: data[name] for name, code in self._forward.items() if name in data}

    def expand_dict(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Re-key ``data`` with long names. Unknown codes are dropped."""
        return {self._inverse[key]: value for key, value in data.items() if self.is_code(key)}


COLLECTION_KEYS = KeyMapper(
    "collection",
    {
        "id": "i",
        "name": "n",
        "recipient": "r",
        "created_at": "t",
        "letters": "l",
    },
)

LETTER_KEYS = KeyMapper(
    "letter",
    {
        "id": "i",
        "label": "b",
        "kind": "t",
        "text_body": "c",
        "audio_payload": "a",
        "release_date": "d",
    },
)

# Single-letter short keys from before collections existed.
LEGACY_LETTER_KEYS = KeyMapper(
    "legacy-letter",
    {
        "id": "i",
        "recipient": "r",
        "label": "l",
        "text_body": "c",
    },
)

# Presence of any of these selects the legacy short-key reading of a
# base64 JSON letter over the long-key one.
LEGACY_MARKER_CODES = frozenset({"l", "c", "r"})
