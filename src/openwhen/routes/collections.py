"""Collection endpoints — create a link, view it, open its letters.

Links are the only record: creating one stores nothing server-side.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import AfterValidator, BaseModel, Field, model_validator

from openwhen.codec import encode_collection
from openwhen.config import OpenWhenConfig
from openwhen.decoder import DecodeCascade
from openwhen.deps import get_config, get_decoder, get_opened_store
from openwhen.errors import LetterLockedError, LetterNotFoundError, TokenNotFoundError
from openwhen.identity import generate_id
from openwhen.models import Collection, Letter, LetterKind
from openwhen.opened import OpenedLetterStore
from openwhen.schedule import countdown, format_release_date, is_locked, utcnow

router = APIRouter(prefix="/api/v1", tags=["collections"])


def _encodable(value: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("text contains an unpaired surrogate") from None
    return value


# Lone surrogates survive JSON parsing but not the token round trip.
DraftText = Annotated[str, AfterValidator(_encodable)]


class LetterDraft(BaseModel):
    id: DraftText | None = None
    label: DraftText
    kind: LetterKind = LetterKind.TEXT
    text_body: DraftText = ""
    audio_payload: DraftText | None = None
    release_date: datetime | None = None

    @model_validator(mode="after")
    def check_content(self) -> LetterDraft:
        if not self.label.strip():
            raise ValueError("label must not be blank")
        if self.kind == LetterKind.TEXT and not self.text_body.strip():
            raise ValueError("text letters need a body")
        if self.kind == LetterKind.VOICE and not self.audio_payload:
            raise ValueError("voice letters need a recording")
        return self

    def to_letter(self) -> Letter:
        # Only the field matching the kind is kept.
        voice = self.kind == LetterKind.VOICE
        return Letter(
            id=self.id or generate_id(),
            label=self.label,
            kind=self.kind,
            text_body="" if voice else self.text_body,
            audio_payload=self.audio_payload if voice else None,
            release_date=self.release_date,
        )


class CollectionDraft(BaseModel):
    id: DraftText | None = None
    name: DraftText = ""
    recipient: DraftText = ""
    letters: list[LetterDraft] = Field(min_length=1)
    created_at: datetime | None = None

    def to_collection(self) -> Collection:
        return Collection(
            id=self.id or generate_id(),
            name=self.name.strip(),
            recipient=self.recipient.strip(),
            letters=tuple(draft.to_letter() for draft in self.letters),
            created_at=self.created_at or utcnow(),
        )


def _decode_or_404(token: str, decoder: DecodeCascade) -> Collection:
    collection = decoder.decode(token)
    if collection is None:
        raise TokenNotFoundError(token)
    return collection


def _letter_view(
    collection: Collection,
    letter: Letter,
    store: OpenedLetterStore,
    now: datetime,
) -> dict:
    data = letter.model_dump(mode="json")
    locked = is_locked(letter, now)
    if locked:
        data["text_body"] = ""
        data["audio_payload"] = None
    opened_at = store.opened_at(collection.id, letter.id)
    data.update(
        locked=locked,
        countdown=countdown(letter, now),
        release_label=format_release_date(letter.release_date) if letter.release_date else None,
        opened=opened_at is not None,
        opened_at=opened_at.isoformat() if opened_at else None,
    )
    return data


@router.post("/collections", status_code=201)
def create_collection(
    draft: CollectionDraft,
    config: OpenWhenConfig = Depends(get_config),
):
    collection = draft.to_collection()
    token = encode_collection(collection)
    return {"id": collection.id, "token": token, "link": f"{config.base_url}/{token}"}


@router.get("/collections/{token}")
def view_collection(
    token: str,
    decoder: DecodeCascade = Depends(get_decoder),
    store: OpenedLetterStore = Depends(get_opened_store),
):
    collection = _decode_or_404(token, decoder)
    now = utcnow()
    return {
        "id": collection.id,
        "name": collection.name,
        "recipient": collection.recipient,
        "created_at": collection.created_at.isoformat() if collection.created_at else None,
        "letters": [_letter_view(collection, letter, store, now) for letter in collection.letters],
    }


@router.post("/collections/{token}/letters/{letter_id}/open")
def open_letter(
    token: str,
    letter_id: str,
    decoder: DecodeCascade = Depends(get_decoder),
    store: OpenedLetterStore = Depends(get_opened_store),
):
    collection = _decode_or_404(token, decoder)
    letter = collection.get_letter(letter_id)
    if letter is None:
        raise LetterNotFoundError(collection.id, letter_id)
    now = utcnow()
    if is_locked(letter, now):
        raise LetterLockedError(letter.id, countdown(letter, now))
    store.mark_opened(collection.id, letter.id, now)
    return _letter_view(collection, letter, store, now)


@router.get("/tokens/{token}/format")
def token_format(token: str, decoder: DecodeCascade = Depends(get_decoder)):
    result = decoder.interpret(token)
    if not result.ok:
        raise TokenNotFoundError(token)
    return {
        "format": result.format,
        "collection_id": result.collection.id,
        "letters": len(result.collection.letters),
    }
