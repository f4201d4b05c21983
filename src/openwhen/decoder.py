"""The decode cascade — tokens back to collections, for every link generation.

Tokens carry no version tag. Each interpreter recognizes one historical
shape and raises when the token is not that shape; the cascade tries
them newest first and keeps the first structurally valid result.
Decoding never raises: a copied, truncated or hand-edited link
degrades to "not found".

Generations, newest first:
- collection: compressed short-key JSON with a letters array
- delimited: compressed ``recipient|label|text``
- legacy-json: base64 JSON of one letter, short-key or long-key
"""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple

from openwhen.codec import LEGACY_DELIMITER, from_epoch_millis
from openwhen.compression import decompress
from openwhen.identity import derive_id
from openwhen.keys import COLLECTION_KEYS, LEGACY_LETTER_KEYS, LEGACY_MARKER_CODES, LETTER_KEYS
from openwhen.models import Collection, Letter, LetterKind, as_utc

logger = logging.getLogger("openwhen.codec")

# Long-key field names written by the first browser release.
_LONG_KEY_FIELDS = {
    "id": "id",
    "label": "label",
    "type": "kind",
    "content": "text_body",
    "audioData": "audio_payload",
    "releaseDate": "release_date",
}


class Rejected(ValueError):
    """The token is not in the interpreter's format."""


@dataclass(frozen=True)
class TokenView:
    """A token plus its decompressed text, computed once per decode."""

    token: str
    inflated: str | None


class Interpretation(NamedTuple):
    format: str
    collection: Collection | None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.collection is not None


Interpreter = Callable[[TokenView], Collection]


# ── Field readers ─────────────────────────────────────────────


def _text(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise Rejected(f"{field} is {type(value).__name__}, not a string")
    return value


def _ident(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _text(value, "id")


def _kind(value: Any) -> LetterKind:
    return LetterKind.VOICE if value == LetterKind.VOICE.value else LetterKind.TEXT


def read_timestamp(value: Any) -> datetime | None:
    """Epoch milliseconds or ISO-8601 text, as an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise Rejected("boolean timestamp")
    if isinstance(value, (int, float)):
        return from_epoch_millis(int(value))
    if isinstance(value, str):
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise Rejected(f"timestamp is {type(value).__name__}")


def _letter(fields: Mapping[str, Any], fallback_id: Callable[[], str]) -> Letter:
    audio = fields.get("audio_payload")
    return Letter(
        id=_ident(fields.get("id")) or fallback_id(),
        label=_text(fields.get("label"), "label"),
        kind=_kind(fields.get("kind")),
        text_body=_text(fields.get("text_body"), "text_body"),
        audio_payload=_text(audio, "audio_payload") if audio is not None else None,
        release_date=read_timestamp(fields.get("release_date")),
    )


def _is_json_object(text: str) -> bool:
    try:
        return isinstance(json.loads(text), dict)
    except ValueError:
        return False


# ── Interpreters ──────────────────────────────────────────────


def interpret_collection(view: TokenView) -> Collection:
    """Current generation: short-key collection with a letters array."""
    if view.inflated is None:
        raise Rejected("not compressed")
    doc = json.loads(view.inflated)
    if not isinstance(doc, dict) or not isinstance(doc.get("l"), list):
        raise Rejected("no letters array")
    fields = COLLECTION_KEYS.expand_dict(doc)
    source = view.inflated

    letters = []
    for index, item in enumerate(fields["letters"]):
        if not isinstance(item, dict):
            raise Rejected(f"letter {index} is not an object")
        letters.append(
            _letter(LETTER_KEYS.expand_dict(item), lambda: derive_id(f"{source}#{index}"))
        )

    return Collection(
        id=_ident(fields.get("id")) or derive_id(source),
        name=_text(fields.get("name"), "name"),
        recipient=_text(fields.get("recipient"), "recipient"),
        letters=tuple(letters),
        created_at=read_timestamp(fields.get("created_at")),
    )


def interpret_delimited(view: TokenView) -> Collection:
    """Compressed ``recipient|label|text`` single letter."""
    text = view.inflated
    if text is None:
        raise Rejected("not compressed")
    if _is_json_object(text):
        raise Rejected("JSON object, not a delimited letter")
    parts = text.split(LEGACY_DELIMITER, 2)
    if len(parts) != 3:
        raise Rejected("expected three delimited fields")
    recipient, label, body = parts
    if not label:
        raise Rejected("empty label")

    ident = derive_id(text)
    letter = Letter(id=ident, label=label, text_body=body)
    return Collection(id=ident, recipient=recipient, letters=(letter,))


def _b64_json(token: str) -> tuple[str, Any]:
    raw = token.replace("+", "-").replace("/", "_")
    raw += "=" * (-len(raw) % 4)
    text = base64.b64decode(raw, altchars=b"-_", validate=True).decode("utf-8")
    return text, json.loads(text)


def interpret_legacy_json(view: TokenView) -> Collection:
    """Uncompressed base64 JSON, from before compression was added.

    Any of the oldest short codes selects the short-key reading;
    otherwise the document must use the long field names.
    """
    source, doc = _b64_json(view.token)
    if not isinstance(doc, dict):
        raise Rejected("not a JSON object")

    if LEGACY_MARKER_CODES & doc.keys():
        fields = LEGACY_LETTER_KEYS.expand_dict(doc)
        letter = _letter(fields, lambda: derive_id(source))
        return Collection(
            id=letter.id,
            recipient=_text(fields.get("recipient"), "recipient"),
            letters=(letter,),
        )

    if isinstance(doc.get("letters"), list):
        return _long_key_collection(doc, source)
    if not isinstance(doc.get("label"), str):
        raise Rejected("no label")

    fields = {long: doc[key] for key, long in _LONG_KEY_FIELDS.items() if key in doc}
    letter = _letter(fields, lambda: derive_id(source))
    return Collection(
        id=letter.id,
        name=_text(doc.get("name"), "name"),
        recipient=_text(doc.get("recipient"), "recipient"),
        letters=(letter,),
        created_at=read_timestamp(doc.get("createdAt")),
    )


def _long_key_collection(doc: dict[str, Any], source: str) -> Collection:
    letters = []
    for index, item in enumerate(doc["letters"]):
        if not isinstance(item, dict):
            raise Rejected(f"letter {index} is not an object")
        fields = {long: item[key] for key, long in _LONG_KEY_FIELDS.items() if key in item}
        letters.append(_letter(fields, lambda: derive_id(f"{source}#{index}")))
    return Collection(
        id=_ident(doc.get("id")) or derive_id(source),
        name=_text(doc.get("name"), "name"),
        recipient=_text(doc.get("recipient"), "recipient"),
        letters=tuple(letters),
        created_at=read_timestamp(doc.get("createdAt")),
    )


INTERPRETERS: tuple[tuple[str, Interpreter], ...] = (
    ("collection", interpret_collection),
    ("delimited", interpret_delimited),
    ("legacy-json", interpret_legacy_json),
)


# ── Cascade ───────────────────────────────────────────────────


class DecodeCascade:
    """Ordered interpreters; the first one to succeed wins."""

    def __init__(self, interpreters: Sequence[tuple[str, Interpreter]] = INTERPRETERS):
        self.interpreters = tuple(interpreters)

    def interpret(self, token: str) -> Interpretation:
        """Decode ``token`` and report which format accepted it."""
        view = TokenView(token=token, inflated=decompress(token))
        reasons = []
        for name, interpreter in self.interpreters:
            try:
                return Interpretation(name, interpreter(view))
            except Exception as exc:
                reasons.append(f"{name}: {exc}")
        reason = "; ".join(reasons)
        logger.debug("No interpreter accepted %r…: %s", str(token)[:12], reason)
        return Interpretation("", None, reason)

    def decode(self, token: str) -> Collection | None:
        return self.interpret(token).collection


_default_cascade = DecodeCascade()


def decode_token(token: str) -> Collection | None:
    """Decode with the standard interpreter order. None if unrecognized."""
    return _default_cascade.decode(token)
