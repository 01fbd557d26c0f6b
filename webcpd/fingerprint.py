"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator, Sequence
from functools import lru_cache

# Mersenne prime modulus keeps the rolling hash within 61 bits.
_MODULUS = (1 << 61) - 1
_BASE = 1_000_003


@lru_cache(maxsize=65536)
def token_id(kind: str, value: str) -> int:
    """Stable 64-bit id of a token identity, independent of PYTHONHASHSEED."""
    digest = hashlib.sha1(f"{kind}\x1f{value}".encode()).digest()
    return int.from_bytes(digest[:8], "big") % _MODULUS


def identity_ids(identities: Sequence[tuple[str, str]]) -> list[int]:
    return [token_id(kind, value) for kind, value in identities]


def window_hashes(ids: Sequence[int], size: int) -> Iterator[tuple[int, int]]:
    """Yield ``(position, hash)`` for every window of ``size`` consecutive ids.

    Polynomial rolling hash: each step drops the leading id and appends the
    next one in O(1), so a stream of n ids costs O(n) regardless of ``size``.
    """
    if size <= 0 or len(ids) < size:
        return

    high = pow(_BASE, size - 1, _MODULUS)
    h = 0
    for i in range(size):
        h = (h * _BASE + ids[i]) % _MODULUS
    yield 0, h

    for pos in range(1, len(ids) - size + 1):
        h = (h - ids[pos - 1] * high) % _MODULUS
        h = (h * _BASE + ids[pos + size - 1]) % _MODULUS
        yield pos, h
