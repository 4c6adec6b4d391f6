"""Two-share wires used while replaying a proof.

Slot 0 and slot 1 hold the shares of revealed parties ``p`` and ``p + 1``
(mod 3). Slot 0's gate outputs only depend on values both revealed parties
know, so the verifier recomputes them: against the committed log when the
context is RECORDED, or to rebuild the log when it is TO_DERIVE. Slot 1's
outputs depend on the hidden party and are read from its recorded log; they
become binding through the commitment check after replay.
"""

import logging

from zkboo.core.config import REVEALED_PARTIES
from zkboo.core.context import LogMode
from zkboo.core.errors import ConsistencyViolation
from zkboo.core.randomness import WORD_MASK
from .wire import Wire, get_bit, set_bit, TOP_BIT

logger = logging.getLogger(__name__)


class VerifierWire(Wire):
    """Wire held by the two revealed parties of one repetition."""

    SHARES = REVEALED_PARTIES

    def reveal(self, hidden_share: int) -> int:
        """Recombine with the hidden party's share."""
        return self.value[0] ^ self.value[1] ^ hidden_share

    def _violation(self, message: str) -> ConsistencyViolation:
        return ConsistencyViolation(message, self.handle.repetition)

    def bit_and(self, rhs: "VerifierWire") -> "VerifierWire":
        self._check(rhs)
        if self.is_public and rhs.is_public:
            return VerifierWire([a & b for a, b in zip(self.value, rhs.value)])
        if self.is_public:
            return rhs.bit_and(self)

        first, second = self.handle.contexts()
        r0, r1 = first.next_random(), second.next_random()
        x, y = self.value, rhs.value
        out = (x[0] & y[1]) ^ (x[1] & y[0]) ^ (x[0] & y[0]) ^ r0 ^ r1
        try:
            first.settle(out)
            other = second.replay()
        except ConsistencyViolation as e:
            raise self._violation(f"AND gate: {e}") from e
        return VerifierWire([out, other], self.handle)

    def add_op(self, rhs: "VerifierWire") -> "VerifierWire":
        self._check(rhs)
        if self.is_public and rhs.is_public:
            return VerifierWire([(a + b) & WORD_MASK for a, b in zip(self.value, rhs.value)])
        if self.is_public:
            return rhs.add_op(self)

        first, second = self.handle.contexts()
        r0, r1 = first.next_random(), second.next_random()
        derive = first.mode is LogMode.TO_DERIVE
        try:
            carry0 = 0 if derive else first.replay()
            carry1 = second.replay()
        except ConsistencyViolation as e:
            raise self._violation(f"ADD gate: {e}") from e
        if get_bit(carry0, 0):
            raise self._violation("ADD gate: carry word has bit 0 set")

        x, y = self.value, rhs.value
        for i in range(TOP_BIT):
            a0, a1 = get_bit(x[0] ^ carry0, i), get_bit(x[1] ^ carry1, i)
            b0, b1 = get_bit(y[0] ^ carry0, i), get_bit(y[1] ^ carry1, i)
            bit = ((a0 & b1) ^ (a1 & b0) ^ get_bit(r1, i)
                   ^ (a0 & b0) ^ get_bit(carry0, i) ^ get_bit(r0, i))
            if derive:
                carry0 = set_bit(carry0, i + 1, bit)
            elif bit != get_bit(carry0, i + 1):
                raise self._violation(f"ADD gate: carry bit {i + 1} mismatch")

        if derive:
            first.derive(carry0)
        return VerifierWire([x[0] ^ y[0] ^ carry0, x[1] ^ y[1] ^ carry1], self.handle)


__all__ = ["VerifierWire"]
