"""Error hierarchy for Open When.

Decoding never raises; these cover encoding and the HTTP surfaces
built on top of the codec.
"""

from __future__ import annotations


class OpenWhenError(Exception):
    """Base for all Open When errors."""


class EncodeError(OpenWhenError):
    """A collection could not be serialized into a token."""


class TokenNotFoundError(OpenWhenError):
    """No decode interpreter accepted the token."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"No letters found for token {token[:12]!r}")


class LetterNotFoundError(OpenWhenError):
    """The collection has no letter with the requested id."""

    def __init__(self, collection_id: str, letter_id: str):
        self.collection_id = collection_id
        self.letter_id = letter_id
        super().__init__(f"Letter {letter_id!r} not in collection {collection_id!r}")


class LetterLockedError(OpenWhenError):
    """The letter's release date has not been reached."""

    def __init__(self, letter_id: str, countdown: str):
        self.letter_id = letter_id
        self.countdown = countdown
        super().__init__(f"Letter {letter_id!r} is still sealed ({countdown})")
