"""Per-party pseudorandom streams, commitments and seed generation.

The pool is the protocol's own PRG: eight words per SHA-256 block, and when a
block is used up the next one is derived from the byte encoding of the block
that was just exhausted, never from the original seed again. A verifier that
holds a revealed seed reproduces every word the prover drew, in order.
"""

import hashlib
import secrets
import struct
import threading
import logging
from typing import List, Sequence

from .errors import InvariantViolation

logger = logging.getLogger(__name__)

SEED_LENGTH = 16
WORD_MASK = 0xFFFFFFFF
WORDS_PER_BLOCK = 8


def expand(seed: bytes) -> List[int]:
    """Split SHA-256(seed) into eight big-endian 32-bit words."""
    return list(struct.unpack(">8I", hashlib.sha256(seed).digest()))


def words_to_bytes(words: Sequence[int]) -> bytes:
    """Big-endian encoding of a sequence of u32 words."""
    return struct.pack(f">{len(words)}I", *words)


def commit(seed: bytes, out_data: Sequence[int]) -> bytes:
    """Commitment binding a party's seed and its recorded gate outputs."""
    return hashlib.sha256(seed + words_to_bytes(out_data)).digest()


class RandomnessPool:
    """Infinite, strictly sequential stream of u32 words derived from a seed."""

    def __init__(self, seed: bytes):
        if len(seed) != SEED_LENGTH:
            raise InvariantViolation(
                f"seed must be {SEED_LENGTH} bytes, got {len(seed)}"
            )
        self._block = expand(seed)
        self._used = 0
        self.drawn = 0

    def next(self) -> int:
        """Return the next unconsumed word, reseeding from the spent block."""
        if self._used >= len(self._block):
            self._block = expand(words_to_bytes(self._block))
            self._used = 0
        word = self._block[self._used]
        self._used += 1
        self.drawn += 1
        return word

    def take(self, count: int) -> List[int]:
        return [self.next() for _ in range(count)]


class SeedGenerator:
    """Source of fresh seeds and input-splitting words.

    One generator is owned by each prover. In deterministic mode seeds come
    from a hashed counter so test runs are reproducible; never use it for real
    proofs.
    """

    def __init__(self, deterministic: bool = False, label: bytes = b"zkboo-deterministic"):
        self._deterministic = deterministic
        self._label = label
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def deterministic(self) -> bool:
        return self._deterministic

    def _next_digest(self) -> bytes:
        with self._lock:
            counter = self._counter
            self._counter += 1
        return hashlib.sha256(self._label + counter.to_bytes(8, "big")).digest()

    def seed(self) -> bytes:
        """16 fresh bytes for one (repetition, party)."""
        if self._deterministic:
            return self._next_digest()[:SEED_LENGTH]
        return secrets.token_bytes(SEED_LENGTH)

    def word(self) -> int:
        """A fresh uniformly random u32."""
        if self._deterministic:
            return struct.unpack(">I", self._next_digest()[:4])[0]
        return secrets.randbits(32)


__all__ = [
    "SEED_LENGTH",
    "WORD_MASK",
    "expand",
    "words_to_bytes",
    "commit",
    "RandomnessPool",
    "SeedGenerator",
]
