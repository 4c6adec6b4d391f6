"""Exception hierarchy for zkboo.

Protocol rejections (``ConsistencyViolation``, ``MalformedTranscript``) are
normal outcomes of verification. ``InvariantViolation`` signals a bug in a
circuit or in the engine itself and is never caught by the orchestrators.
"""

from typing import Optional


class ZkBooError(Exception):
    """Base class for all zkboo errors."""


class MalformedWitness(ZkBooError, ValueError):
    """Input arity does not match the circuit's declared parameters."""


class InvariantViolation(ZkBooError, RuntimeError):
    """Programmer or circuit-implementation error (fatal)."""


class ConsistencyViolation(ZkBooError):
    """A replayed value disagrees with a committed one: the proof is rejected."""

    def __init__(self, message: str, repetition: Optional[int] = None):
        self.repetition = repetition
        if repetition is not None:
            message = f"repetition {repetition}: {message}"
        super().__init__(message)


class MalformedTranscript(ZkBooError, ValueError):
    """An exported proof transcript cannot be decoded."""


class UnknownCircuit(ZkBooError, KeyError):
    """No circuit is registered under the requested name."""

    def __str__(self) -> str:
        return f"Unknown circuit: {self.args[0]}" if self.args else "Unknown circuit"


__all__ = [
    "ZkBooError",
    "MalformedWitness",
    "InvariantViolation",
    "ConsistencyViolation",
    "MalformedTranscript",
    "UnknownCircuit",
]
