"""Token encoding — collection to compact URL-safe token.

Current generation: short-key JSON, defaults elided, timestamps as
epoch milliseconds, compressed. The legacy encoders below reproduce
older generations for fixtures and link-migration tooling; nothing in
the creation surface emits them any more.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from openwhen.compression import compress
from openwhen.errors import EncodeError
from openwhen.keys import COLLECTION_KEYS, LETTER_KEYS
from openwhen.models import Collection, Letter, LetterKind, as_utc

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
LEGACY_DELIMITER = "|"


def to_epoch_millis(value: datetime) -> int:
    return (as_utc(value) - EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=value)


def dumps_compact(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def letter_to_wire(letter: Letter) -> dict[str, Any]:
    fields: dict[str, Any] = {"id": letter.id, "label": letter.label}
    if letter.kind != LetterKind.TEXT:
        fields["kind"] = letter.kind.value
    if letter.text_body:
        fields["text_body"] = letter.text_body
    if letter.audio_payload is not None:
        fields["audio_payload"] = letter.audio_payload
    if letter.release_date is not None:
        fields["release_date"] = to_epoch_millis(letter.release_date)
    return LETTER_KEYS.shorten_dict(fields)


def collection_to_wire(collection: Collection) -> dict[str, Any]:
    """Short-key document for ``collection``, keys in table order."""
    fields: dict[str, Any] = {
        "id": collection.id,
        "letters": [letter_to_wire(letter) for letter in collection.letters],
    }
    if collection.name:
        fields["name"] = collection.name
    if collection.recipient:
        fields["recipient"] = collection.recipient
    if collection.created_at is not None:
        fields["created_at"] = to_epoch_millis(collection.created_at)
    return COLLECTION_KEYS.shorten_dict(fields)


def encode_collection(collection: Collection) -> str:
    """Pack ``collection`` into a token.

    Raises EncodeError rather than returning a partial token.
    """
    try:
        text = dumps_compact(collection_to_wire(collection))
        # Lone surrogates compress but can never decode.
        text.encode("utf-8")
        return compress(text)
    except Exception as exc:
        raise EncodeError(f"Cannot encode collection {collection.id!r}: {exc}") from exc


def encode_legacy_delimited(recipient: str, label: str, text_body: str) -> str:
    """Single text letter as ``recipient|label|text``, compressed.

    Predates voice letters, schedules and collections.
    """
    return compress(LEGACY_DELIMITER.join((recipient, label, text_body)))


def encode_legacy_json(letter: Mapping[str, Any]) -> str:
    """Single-letter JSON as URL-safe base64, the oldest link format.

    ``letter`` is written as given, so both the short-key shape
    (``i``/``r``/``l``/``c``) and the long-key shape can be produced.
    """
    raw = dumps_compact(dict(letter)).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
