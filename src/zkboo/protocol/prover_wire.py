"""Three-share wires used while generating a proof."""

import logging

from zkboo.core.config import PARTIES
from zkboo.core.randomness import WORD_MASK
from .wire import Wire, get_bit, set_bit, TOP_BIT

logger = logging.getLogger(__name__)


class ProverWire(Wire):
    """Wire held by all three virtual parties.

    Non-linear gates draw exactly one word from each party's randomness pool
    and append exactly one word to each party's view.
    """

    SHARES = PARTIES

    def reveal(self) -> int:
        """Recombine the three shares into the clear value."""
        return self.value[0] ^ self.value[1] ^ self.value[2]

    def bit_and(self, rhs: "ProverWire") -> "ProverWire":
        self._check(rhs)
        if self.is_public and rhs.is_public:
            return ProverWire([a & b for a, b in zip(self.value, rhs.value)])
        if self.is_public:
            return rhs.bit_and(self)

        contexts = self.handle.contexts()
        rand = [ctx.next_random() for ctx in contexts]
        x, y = self.value, rhs.value
        out = []
        for i in range(PARTIES):
            j = (i + 1) % PARTIES
            out.append((x[i] & y[j]) ^ (x[j] & y[i]) ^ (x[i] & y[i]) ^ rand[i] ^ rand[j])
        for ctx, word in zip(contexts, out):
            ctx.record(word)
        return ProverWire(out, self.handle)

    def add_op(self, rhs: "ProverWire") -> "ProverWire":
        self._check(rhs)
        if self.is_public and rhs.is_public:
            return ProverWire([(a + b) & WORD_MASK for a, b in zip(self.value, rhs.value)])
        if self.is_public:
            return rhs.add_op(self)

        contexts = self.handle.contexts()
        rand = [ctx.next_random() for ctx in contexts]
        x, y = self.value, rhs.value
        carry = [0] * PARTIES
        # Ripple carry over bits 0..30; bit 31 of the sum needs no outgoing carry.
        for i in range(TOP_BIT):
            a = [get_bit(x[j] ^ carry[j], i) for j in range(PARTIES)]
            b = [get_bit(y[j] ^ carry[j], i) for j in range(PARTIES)]
            for j in range(PARTIES):
                k = (j + 1) % PARTIES
                bit = ((a[j] & b[k]) ^ (a[k] & b[j]) ^ get_bit(rand[k], i)
                       ^ (a[j] & b[j]) ^ get_bit(carry[j], i) ^ get_bit(rand[j], i))
                carry[j] = set_bit(carry[j], i + 1, bit)

        for ctx, word in zip(contexts, carry):
            ctx.record(word)
        return ProverWire([x[j] ^ y[j] ^ carry[j] for j in range(PARTIES)], self.handle)


__all__ = ["ProverWire"]
