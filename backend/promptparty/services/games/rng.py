"""Deterministic xorshift stream shared by every request handler.

All randomness in a match flows from the match seed. Independent decisions
(auto-submit for one player, auto-judge for a round) each get their own
generator derived from a composite key, so one decision never shifts the
draws of another.
"""

import hashlib
from typing import Callable, List, MutableSequence, TypeVar

T = TypeVar('T')

Rand = Callable[[], int]

_MASK64 = 0xFFFFFFFFFFFFFFFF
# xorshift has a fixed point at zero
_ZERO_STATE_FALLBACK = 0x9E3779B97F4A7C15


def rng_from_hex(seed_hex: str) -> Rand:
    """Return a generator of unsigned 32-bit ints seeded from a hex string.

    The first 64 bits of the (left zero-padded) hex value form the state.
    """
    h = str(seed_hex or '')
    if h[:2].lower() == '0x':
        h = h[2:]
    h = h.rjust(16, '0')[:16]
    state = int(h, 16) & _MASK64 or _ZERO_STATE_FALLBACK

    def _next() -> int:
        nonlocal state
        x = state
        x ^= (x << 13) & _MASK64
        x ^= x >> 7
        x ^= (x << 17) & _MASK64
        state = x
        return x & 0xFFFFFFFF

    return _next


def derive_rng(seed_hex: str, *parts) -> Rand:
    """Fresh generator for one purpose, keyed by ``seed:part:part...``."""
    key = ':'.join([str(seed_hex)] + [str(p) for p in parts])
    return rng_from_hex(hashlib.sha256(key.encode('utf-8')).hexdigest())


def pick(rand: Rand, n: int) -> int:
    """Index in ``[0, n)`` by modulo; 0 for an empty range."""
    return rand() % n if n else 0


def shuffle(seq: MutableSequence[T], rand: Rand) -> MutableSequence[T]:
    """In-place Fisher-Yates using ``rand``. Returns ``seq`` for chaining."""
    for i in range(len(seq) - 1, 0, -1):
        j = pick(rand, i + 1)
        seq[i], seq[j] = seq[j], seq[i]
    return seq


def shuffled(items: List[T], rand: Rand) -> List[T]:
    return list(shuffle(list(items), rand))
