"""Letter and collection models.

Documents are built once by the creation surface and never mutated, so
both models are frozen. Datetimes are normalized to aware UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class LetterKind(str, Enum):
    TEXT = "text"
    VOICE = "voice"


def as_utc(value: datetime | None) -> datetime | None:
    """Read naive datetimes as UTC, convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Letter(BaseModel):
    """One shareable letter, opened when ``label`` comes true."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    kind: LetterKind = LetterKind.TEXT
    text_body: str = ""
    audio_payload: str | None = None
    release_date: datetime | None = None

    @field_validator("release_date")
    @classmethod
    def release_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class Collection(BaseModel):
    """An ordered group of letters with shared metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    recipient: str = ""
    letters: tuple[Letter, ...] = ()
    created_at: datetime | None = None

    @field_validator("created_at")
    @classmethod
    def created_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def get_letter(self, letter_id: str) -> Letter | None:
        for letter in self.letters:
            if letter.id == letter_id:
                return letter
        return None
