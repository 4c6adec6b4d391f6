"""Fiat-Shamir random oracle.

The challenge replaces the verifier's message of the interactive protocol:
it is a hash of everything the prover committed to, so it cannot be chosen
after the fact. Each repetition gets one index in {0, 1, 2}, the party whose
view stays hidden.
"""

import hashlib
import struct
from typing import List, Sequence

from zkboo.core.config import PARTIES
from zkboo.core.errors import InvariantViolation
from zkboo.core.randomness import words_to_bytes


def query_random_oracle(public_input_len: int,
                        output_arity: int,
                        output: Sequence[int],
                        out_data: Sequence[Sequence[Sequence[int]]],
                        commitments: Sequence[Sequence[bytes]]) -> List[int]:
    """Derive one hidden-party index per repetition.

    Args:
        public_input_len: Number of public input words
        output_arity: Number of output words
        output: Claimed output words
        out_data: Per repetition, the output shares of each of the 3 parties
        commitments: Per repetition, the 3 party commitments

    Returns:
        List[int]: Challenge, one value in {0, 1, 2} per repetition
    """
    if len(out_data) != len(commitments):
        raise InvariantViolation("output shares and commitments cover different repetitions")

    sha = hashlib.sha256()
    sha.update(struct.pack(">II", public_input_len, output_arity))
    sha.update(words_to_bytes(output))
    for shares in out_data:
        for party_shares in shares:
            sha.update(words_to_bytes(party_shares))
    for repetition in commitments:
        if len(repetition) != PARTIES:
            raise InvariantViolation(f"expected {PARTIES} commitments per repetition")
        for commitment in repetition:
            sha.update(commitment)

    return expand_challenge(sha.digest(), len(commitments))


def expand_challenge(digest: bytes, repetitions: int) -> List[int]:
    """Read 2-bit values from the digest, rejecting 3, rehashing when spent."""
    challenge: List[int] = []
    while len(challenge) < repetitions:
        for byte in digest:
            for shift in (6, 4, 2, 0):
                trit = (byte >> shift) & 0x03
                if trit < PARTIES:
                    challenge.append(trit)
                    if len(challenge) == repetitions:
                        return challenge
        digest = hashlib.sha256(digest).digest()
    return challenge


def revealed_parties(hidden: int):
    """Slot order of the two parties opened when ``hidden`` stays closed."""
    return ((hidden + 1) % PARTIES, (hidden + 2) % PARTIES)


__all__ = ["query_random_oracle", "expand_challenge", "revealed_parties"]
