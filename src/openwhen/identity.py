"""Identifiers for letters and collections.

``derive_id`` gives tokens that never stored an id a stable one, so
opened-state keyed by id survives repeat visits to the same link. It
is the classic 32-bit ``h * 31 + unit`` string hash over UTF-16 code
units, so every implementation derives the same value. Not
collision-resistant; only meant to be unlikely to collide among links
people share by hand.
"""

from __future__ import annotations

import secrets
import time

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("negative value")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def derive_id(text: str) -> str:
    """Deterministic short identifier for ``text``."""
    data = text.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        h = (h * 31 + (data[i] | data[i + 1] << 8)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 1 << 32
    return to_base36(abs(h))


def generate_id() -> str:
    """Fresh random id: 9 random base-36 chars plus the time in base 36."""
    prefix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return prefix + to_base36(time.time_ns() // 1_000_000)
