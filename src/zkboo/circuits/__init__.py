"""zkboo circuits package.

Circuit registry and built-in circuits, the Fiat-Shamir oracle, proof
generation and verification, and transcript export.
"""

from zkboo.circuits.compiler import Circuit, CircuitCompiler, compiler
from zkboo.circuits import library
from zkboo.circuits.oracle import query_random_oracle, revealed_parties
from zkboo.circuits.prover import ZKProver, prover, Proof, ProofState, ProvingResult
from zkboo.circuits.verifier import ZKVerifier, verifier, VerificationResult
from zkboo.circuits.transcript import export_transcript, import_transcript

__all__ = [
    "Circuit", "CircuitCompiler", "compiler", "library",
    "query_random_oracle", "revealed_parties",
    "ZKProver", "prover", "Proof", "ProofState", "ProvingResult",
    "ZKVerifier", "verifier", "VerificationResult",
    "export_transcript", "import_transcript",
]
