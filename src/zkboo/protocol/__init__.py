"""zkboo protocol package.

Wire algebra of the simulated three-party computation: the 3-share prover
wires and the 2-share verifier wires behind one gate interface.
"""

from zkboo.protocol.wire import Wire
from zkboo.protocol.prover_wire import ProverWire
from zkboo.protocol.verifier_wire import VerifierWire

__all__ = [
    "Wire",
    "ProverWire",
    "VerifierWire",
]
