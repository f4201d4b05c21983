"""URL-safe string compression.

LZ-String's encoded-URI-component variant: output uses only
``A-Z a-z 0-9 + - $``, all legal in a path segment. LZ-String works on
UTF-16 code units, so characters beyond the BMP travel as surrogate
pairs. That keeps emoji intact and tokens byte-compatible with the
browser implementation.
"""

from __future__ import annotations

import logging

from lzstring import LZString

logger = logging.getLogger("openwhen.codec")

_lz = LZString()

URI_SAFE_ALPHABET = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+-$"
)


def _to_code_units(text: str) -> str:
    if text.isascii():
        return text
    units = []
    for ch in text:
        point = ord(ch)
        if point > 0xFFFF:
            point -= 0x10000
            units.append(chr(0xD800 + (point >> 10)))
            units.append(chr(0xDC00 + (point & 0x3FF)))
        else:
            units.append(ch)
    return "".join(units)


def _from_code_units(units: str) -> str:
    # Pairs recombine; an unpaired surrogate raises UnicodeDecodeError.
    return units.encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def compress(text: str) -> str:
    return _lz.compressToEncodedURIComponent(_to_code_units(text))


def decompress(token: str) -> str | None:
    """Inverse of :func:`compress`. Returns None for anything malformed."""
    if not token:
        return None
    try:
        units = _lz.decompressFromEncodedURIComponent(token)
        if not units:
            return None
        return _from_code_units(units)
    except Exception as exc:
        logger.debug("decompress rejected %r…: %s", token[:12], exc)
        return None
