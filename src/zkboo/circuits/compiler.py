"""Circuit registry for zkboo.

A circuit is a plain function written against the ``Wire`` capability set
(constant, negate, xor, bit_and, bit_or, add_op, gt, shifts). The compiler
keeps named circuits together with their input layout, validates witnesses
against that layout and hands the same function to the prover and verifier.
"""

import time
import hashlib
import inspect
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Any

from zkboo import __version__
from zkboo.core.errors import InvariantViolation, MalformedWitness, UnknownCircuit
from zkboo.core.randomness import WORD_MASK
from zkboo.protocol.wire import Wire

logger = logging.getLogger(__name__)

CircuitFn = Callable[[type, Sequence[Wire], Sequence[int]], Sequence[Any]]


@dataclass
class Circuit:
    """A named circuit and its input/output layout."""

    name: str
    private_inputs: int
    public_inputs: int
    outputs: int
    fn: CircuitFn = field(repr=False)
    description: str = ""

    def bind(self, private: Sequence[int], public: Sequence[int] = ()) -> None:
        """Validate a witness against the declared layout.

        Raises:
            MalformedWitness: On arity mismatch or values outside u32
        """
        if len(private) != self.private_inputs:
            raise MalformedWitness(
                f"{self.name} expects {self.private_inputs} private inputs, got {len(private)}"
            )
        if len(public) != self.public_inputs:
            raise MalformedWitness(
                f"{self.name} expects {self.public_inputs} public inputs, got {len(public)}"
            )
        for value in list(private) + list(public):
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= WORD_MASK:
                raise MalformedWitness(f"{self.name}: input {value!r} is not a 32-bit word")

    def run(self, wire: type, inputs: Sequence[Wire], public: Sequence[int]) -> List[Wire]:
        """Evaluate the circuit over one wire representation."""
        outputs = [
            out if isinstance(out, Wire) else wire.constant(out)
            for out in self.fn(wire, list(inputs), list(public))
        ]
        if len(outputs) != self.outputs:
            raise InvariantViolation(
                f"{self.name} declared {self.outputs} outputs, produced {len(outputs)}"
            )
        for out in outputs:
            if not isinstance(out, wire):
                raise InvariantViolation(
                    f"{self.name} returned {type(out).__name__}, expected {wire.__name__}"
                )
        return outputs

    @property
    def fingerprint(self) -> str:
        """Stable identifier of the circuit's code and layout."""
        try:
            source = inspect.getsource(self.fn)
        except (OSError, TypeError):
            source = getattr(self.fn, "__qualname__", repr(self.fn))
        layout = f"{self.name}:{self.private_inputs}:{self.public_inputs}:{self.outputs}"
        return hashlib.sha256((layout + source).encode()).hexdigest()


class CircuitCompiler:
    """Registry of circuits available to the prover and verifier."""

    def __init__(self):
        self._circuits: Dict[str, Circuit] = {}
        self._compiled_at: Dict[str, float] = {}
        logger.debug("CircuitCompiler initialized")

    def register(self, name: str, private_inputs: int, public_inputs: int = 0,
                 outputs: int = 1, description: str = ""):
        """Decorator registering ``fn`` as a circuit.

        Example:
            >>> @compiler.register("double", private_inputs=1)
            ... def double(wire, inputs, public):
            ...     return [inputs[0].add_op(inputs[0])]
        """
        def decorator(fn: CircuitFn) -> CircuitFn:
            self.add(Circuit(
                name=name,
                private_inputs=private_inputs,
                public_inputs=public_inputs,
                outputs=outputs,
                fn=fn,
                description=description or (inspect.getdoc(fn) or "").split("\n")[0],
            ))
            return fn
        return decorator

    def add(self, circuit: Circuit) -> Circuit:
        if circuit.name in self._circuits:
            logger.warning(f"Replacing circuit {circuit.name}")
        self._circuits[circuit.name] = circuit
        self._compiled_at[circuit.name] = time.time()
        logger.debug(f"Registered circuit {circuit.name}")
        return circuit

    def compile(self, name: str) -> Circuit:
        """Look up a circuit by name.

        Raises:
            UnknownCircuit: If nothing is registered under ``name``
        """
        circuit = self._circuits.get(name)
        if circuit is None:
            raise UnknownCircuit(name)
        return circuit

    def resolve(self, circuit) -> Circuit:
        """Accept either a Circuit or a registered name."""
        if isinstance(circuit, Circuit):
            return circuit
        return self.compile(circuit)

    def available(self) -> List[str]:
        return sorted(self._circuits)

    def get_verification_key(self, name: str) -> Optional[Dict]:
        """Describe what a verifier needs to know about a circuit.

        Args:
            name: Circuit identifier

        Returns:
            Optional[Dict]: Layout description or None if unknown
        """
        circuit = self._circuits.get(name)
        if circuit is None:
            return None
        return {
            "protocol": "zkboo",
            "circuit": circuit.name,
            "private_inputs": circuit.private_inputs,
            "public_inputs": circuit.public_inputs,
            "outputs": circuit.outputs,
            "fingerprint": circuit.fingerprint,
            "version": __version__,
        }


# Global compiler instance
compiler = CircuitCompiler()


__all__ = ["Circuit", "CircuitCompiler", "CircuitFn", "compiler"]
