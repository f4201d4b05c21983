"""Tests for the encoding half: key tables, compression, ids, tokens."""

from __future__ import annotations

import base64
from datetime import datetime, timezone

import pytest

from openwhen.codec import (
    collection_to_wire,
    encode_collection,
    encode_legacy_json,
    from_epoch_millis,
    to_epoch_millis,
)
from openwhen.compression import URI_SAFE_ALPHABET, compress, decompress
from openwhen.decoder import decode_token
from openwhen.errors import EncodeError
from openwhen.identity import derive_id, generate_id, to_base36
from openwhen.keys import COLLECTION_KEYS, LEGACY_LETTER_KEYS, LETTER_KEYS, KeyMapper
from openwhen.models import Collection, Letter, LetterKind


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _make_letter(index: int = 0, **overrides) -> Letter:
    fields = {
        "id": f"letter-{index}",
        "label": f"you need reason number {index}",
        "text_body": f"Reason {index}: you always show up.",
    }
    fields.update(overrides)
    return Letter(**fields)


def _make_collection(*letters: Letter, **overrides) -> Collection:
    fields = {"id": "col-1", "letters": letters or (_make_letter(),)}
    fields.update(overrides)
    return Collection(**fields)


# ---------------------------------------------------------------------------
# Key tables
# ---------------------------------------------------------------------------


class TestKeyMapper:
    @pytest.mark.parametrize("table", [COLLECTION_KEYS, LETTER_KEYS, LEGACY_LETTER_KEYS])
    def test_tables_are_injective(self, table):
        codes = [table.shorten(name) for name in table]
        assert len(set(codes)) == len(codes) == len(table)
        for name in table:
            assert table.expand(table.shorten(name)) == name

    def test_duplicate_code_rejected(self):
        with pytest.raises(ValueError, match="used by both"):
            KeyMapper("broken", {"label": "b", "body": "b"})

    def test_multi_character_code_rejected(self):
        with pytest.raises(ValueError, match="one character"):
            KeyMapper("broken", {"label": "lb"})

    def test_shorten_dict_uses_table_order(self):
        short = COLLECTION_KEYS.shorten_dict(
            {"letters": [], "created_at": 1, "id": "x", "name": "n", "recipient": "r"}
        )
        assert list(short) == ["i", "n", "r", "t", "l"]

    def test_expand_dict_drops_unknown_codes(self):
        assert LETTER_KEYS.expand_dict({"i": "a", "b": "when", "z": 1}) == {
            "id": "a",
            "label": "when",
        }

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            LETTER_KEYS._forward["extra"] = "x"


# ---------------------------------------------------------------------------
# Compression
# ---------------------------------------------------------------------------


class TestCompression:
    def test_output_is_url_safe(self):
        token = compress("Open when you miss me — ¿qué tal? 你好 " * 20)
        assert token
        assert set(token) <= URI_SAFE_ALPHABET

    @pytest.mark.parametrize(
        "text",
        [
            "plain ascii",
            "Ünïcödé and ß",
            "emoji 😀🎉 outside the BMP 𝄞",
            "line one\nline two\ttabbed",
            '{"quoted": "json|with|pipes"}',
        ],
    )
    def test_round_trip(self, text):
        assert decompress(compress(text)) == text

    def test_binary_as_text_payload(self):
        payload = "data:audio/webm;base64," + base64.b64encode(bytes(range(256)) * 40).decode()
        assert decompress(compress(payload)) == payload

    @pytest.mark.parametrize("token", ["", "!!!", "#?%", "abc!"])
    def test_malformed_input_is_none(self, token):
        assert decompress(token) is None


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class TestIdentity:
    def test_known_values(self):
        assert derive_id("") == "0"
        assert derive_id("a") == "2p"
        assert derive_id("ab") == "2e9"

    def test_uses_utf16_code_units(self):
        expected = to_base36(0xD83D * 31 + 0xDE00)
        assert derive_id("😀") == expected

    def test_deterministic(self):
        text = "Mom|you miss home|Call me anytime."
        assert derive_id(text) == derive_id(text)
        assert derive_id(text) != derive_id(text + " ")

    def test_long_input_stays_short(self):
        ident = derive_id("x" * 10_000)
        assert 0 < len(ident) <= 7
        assert set(ident) <= set("0123456789abcdefghijklmnopqrstuvwxyz")

    def test_generate_id_is_unique_base36(self):
        ids = {generate_id() for _ in range(200)}
        assert len(ids) == 200
        for ident in ids:
            assert ident.isalnum() and ident == ident.lower()

    def test_base36_rejects_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)


# ---------------------------------------------------------------------------
# Token encoding
# ---------------------------------------------------------------------------


class TestEncode:
    def test_minimal_letter_elides_defaults(self):
        wire = collection_to_wire(_make_collection(Letter(id="a", label="you are bored")))
        assert wire == {"i": "col-1", "l": [{"i": "a", "b": "you are bored"}]}

    def test_full_document_wire_shape(self):
        release = datetime(2026, 12, 25, 8, 0, tzinfo=timezone.utc)
        created = datetime(2026, 10, 1, tzinfo=timezone.utc)
        voice = Letter(
            id="v",
            label="you want to hear me",
            kind=LetterKind.VOICE,
            audio_payload="data:audio/webm;base64,AAAA",
            release_date=release,
        )
        wire = collection_to_wire(
            _make_collection(voice, name="Winter", recipient="Ana", created_at=created)
        )
        assert list(wire) == ["i", "n", "r", "t", "l"]
        assert wire["t"] == to_epoch_millis(created)
        assert wire["l"][0] == {
            "i": "v",
            "b": "you want to hear me",
            "t": "voice",
            "a": "data:audio/webm;base64,AAAA",
            "d": to_epoch_millis(release),
        }

    def test_token_is_url_safe(self):
        token = encode_collection(_make_collection(_make_letter(text_body="a/b?c#d&e f")))
        assert set(token) <= URI_SAFE_ALPHABET

    def test_encode_is_pure(self):
        collection = _make_collection(_make_letter(1), _make_letter(2))
        assert encode_collection(collection) == encode_collection(collection)

    def test_size_economy(self):
        bare = _make_collection(Letter(id="a", label="you are bored"))
        full = _make_collection(
            Letter(
                id="a",
                label="you are bored",
                kind=LetterKind.VOICE,
                text_body="Go outside and look at the sky for a while.",
                audio_payload="data:audio/webm;base64,GkXfo59ChoEBQveBAULygQRC84EIQoKEd2VibUKHgQRChYEC",
                release_date=datetime(2027, 1, 1, tzinfo=timezone.utc),
            ),
            name="Rainy days",
            recipient="Jordan",
            created_at=datetime(2026, 10, 17, tzinfo=timezone.utc),
        )
        assert len(encode_collection(bare)) < len(encode_collection(full))

    def test_failure_raises_encode_error(self, monkeypatch):
        def broken(text):
            raise RuntimeError("compressor unavailable")

        monkeypatch.setattr("openwhen.codec.compress", broken)
        with pytest.raises(EncodeError, match="col-1"):
            encode_collection(_make_collection())

    def test_unpaired_surrogate_raises_encode_error(self):
        collection = _make_collection(Letter(id="a", label="you \ud83d", text_body="x"))
        with pytest.raises(EncodeError, match="col-1"):
            encode_collection(collection)

    def test_epoch_millis_round_trip(self):
        moment = datetime(2026, 2, 14, 9, 30, 15, 250000, tzinfo=timezone.utc)
        assert from_epoch_millis(to_epoch_millis(moment)) == moment
        assert to_epoch_millis(datetime(1970, 1, 1)) == 0

    def test_legacy_json_is_unpadded_urlsafe(self):
        token = encode_legacy_json({"i": "abc123", "l": "you need ???", "c": ">>>"})
        assert "=" not in token and "+" not in token and "/" not in token
        assert decode_token(token).letters[0].label == "you need ???"
