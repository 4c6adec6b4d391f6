"""Capability interface shared by prover and verifier wires.

A circuit is written once against this interface and executed twice: over
3-share ``ProverWire`` values while proving and over 2-share ``VerifierWire``
values while verifying. Both runs must issue the identical gate sequence, so
composite gates (``gt``, ``if_op``) are defined here in terms of the
primitives and never specialised per wire type.

All shares are XOR shares of 32-bit words. Booleans are all-zeros or
all-ones words. Public wires replicate their value in every share and carry
no context handle; since the share count is odd on the prover side, XOR of
the replicated shares is the value itself.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, TypeVar

from zkboo.core.errors import InvariantViolation
from zkboo.core.memory import ContextHandle
from zkboo.core.randomness import WORD_MASK

W = TypeVar("W", bound="Wire")

TOP_BIT = 31


def get_bit(word: int, i: int) -> int:
    return (word >> i) & 1


def set_bit(word: int, i: int, bit: int) -> int:
    if bit & 1:
        return word | (1 << i)
    return word & ~(1 << i) & WORD_MASK


class Wire(ABC):
    """A secret-shared (or public) 32-bit word."""

    SHARES = 0

    __slots__ = ("value", "handle")

    def __init__(self, value: Sequence[int], handle: Optional[ContextHandle] = None):
        if len(value) != self.SHARES:
            raise InvariantViolation(
                f"{type(self).__name__} needs {self.SHARES} shares, got {len(value)}"
            )
        if handle is not None and len(handle.parties) != self.SHARES:
            raise InvariantViolation(
                f"{type(self).__name__} handle covers {len(handle.parties)} parties"
            )
        self.value: List[int] = [v & WORD_MASK for v in value]
        self.handle = handle

    @classmethod
    def constant(cls: type, value: int) -> "Wire":
        return cls([value & WORD_MASK] * cls.SHARES)

    @property
    def is_public(self) -> bool:
        return self.handle is None

    def _check(self, rhs: "Wire") -> None:
        if type(rhs) is not type(self):
            raise InvariantViolation(
                f"cannot combine {type(self).__name__} with {type(rhs).__name__}"
            )
        if (self.handle is not None and rhs.handle is not None
                and self.handle != rhs.handle):
            raise InvariantViolation(
                "cannot combine wires from different repetitions"
            )

    def _derive(self: W, value: Sequence[int], rhs: Optional["Wire"] = None) -> W:
        handle = self.handle
        if handle is None and rhs is not None:
            handle = rhs.handle
        return type(self)(value, handle)

    # Linear gates: per share, no randomness, nothing logged.

    def negate(self: W) -> W:
        return self._derive([~v & WORD_MASK for v in self.value])

    def xor(self: W, rhs: W) -> W:
        self._check(rhs)
        return self._derive([a ^ b for a, b in zip(self.value, rhs.value)], rhs)

    def bit_or(self: W, rhs: W) -> W:
        # Plain per-share OR, not re-randomised. Only exact when at most one
        # operand is secret.
        self._check(rhs)
        return self._derive([a | b for a, b in zip(self.value, rhs.value)], rhs)

    def lshift(self: W, n: int) -> W:
        return self._derive([(v << n) & WORD_MASK for v in self.value])

    def rshift(self: W, n: int) -> W:
        return self._derive([v >> n for v in self.value])

    def sign_mask(self: W) -> W:
        """Per share: all-ones when the top bit is clear, else zero."""
        return self._derive([
            WORD_MASK if get_bit(v, TOP_BIT) == 0 else 0 for v in self.value
        ])

    # Non-linear gates

    @abstractmethod
    def bit_and(self: W, rhs: W) -> W:
        """Secure AND of two wires."""

    @abstractmethod
    def add_op(self: W, rhs: W) -> W:
        """Secure addition modulo 2**32."""

    # Composite gates, identical for both wire types

    def gt(self: W, rhs: W) -> W:
        """Unsigned ``self > rhs`` as an all-ones / all-zeros word.

        Both operands are halved so their difference always fits the signed
        range, and the dropped low bits are folded back in as a borrow:
        ``t = (self >> 1) - (rhs >> 1) - 1 + (self_0 & ~rhs_0)`` is
        non-negative exactly when ``self > rhs``. The adder's top bit is
        the sign of ``t``.

        Costs one AND and two additions, so three log entries per party.
        Verifiers built for the two-entry ``self + (~rhs + 1)`` comparison
        cannot replay transcripts that contain this gate.
        """
        self._check(rhs)
        low = self.bit_and(rhs.negate()).lshift(TOP_BIT).rshift(TOP_BIT)
        t = self.rshift(1).add_op(rhs.rshift(1).negate()).add_op(low)
        return t.sign_mask()

    def if_op(self: W, value: W) -> W:
        """Single-armed select: ``value`` where this condition is all-ones."""
        return self.bit_and(value)

    def __repr__(self) -> str:
        shares = ", ".join(f"{v:#010x}" for v in self.value)
        where = "public" if self.is_public else f"rep={self.handle.repetition}"
        return f"{type(self).__name__}([{shares}], {where})"


__all__ = ["Wire", "get_bit", "set_bit", "TOP_BIT"]
