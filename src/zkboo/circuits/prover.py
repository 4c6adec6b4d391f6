"""Zero-knowledge prover for zkboo.

Runs the commit -> challenge -> response half of the protocol. For every
repetition three virtual parties evaluate the circuit on XOR shares of the
witness; each party's seed and gate log are committed, the random oracle
picks one party per repetition to keep hidden, and the other two views are
opened.
"""

import asyncio
import time
import hashlib
import threading
from enum import Enum
from typing import Dict, Any, Optional, Tuple, List, Sequence, Union
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor
import logging

import numpy as np

from zkboo.core.config import settings, PARTIES
from zkboo.core.context import View
from zkboo.core.errors import InvariantViolation
from zkboo.core.memory import ContextArena, memory_guard
from zkboo.core.randomness import SeedGenerator, words_to_bytes
from zkboo.protocol.prover_wire import ProverWire
from zkboo.circuits.compiler import Circuit, CircuitCompiler, compiler as default_compiler
from zkboo.circuits.oracle import query_random_oracle, revealed_parties

logger = logging.getLogger(__name__)


class ProofState(Enum):
    SETUP = "setup"
    COMMITTED = "committed"
    CHALLENGED = "challenged"
    RESPONDED = "responded"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass
class Proof:
    """Public part of a proof.

    ``commitments`` and ``output_shares`` are indexed ``[repetition][party]``.
    A proof imported from a transcript only carries the hidden party's entries
    there (``None`` elsewhere); the verifier recomputes the revealed ones.
    ``response`` holds, per repetition, the two revealed views in slot order.
    """

    circuit_name: str
    public_inputs: List[int]
    output: List[int]
    commitments: List[List[Optional[bytes]]]
    output_shares: List[List[Optional[List[int]]]]
    challenge: List[int] = field(default_factory=list)
    response: List[List[View]] = field(default_factory=list)
    two_view_hash: bytes = b""
    compact: bool = True
    state: ProofState = ProofState.SETUP
    timestamp: float = field(default_factory=time.time)

    @property
    def repetitions(self) -> int:
        return len(self.commitments)

    @property
    def public_input_len(self) -> int:
        return len(self.public_inputs)

    @property
    def proof_hash(self) -> str:
        """Identifier of the proof, stable across export and import."""
        sha = hashlib.sha256(self.circuit_name.encode())
        sha.update(words_to_bytes(self.public_inputs))
        sha.update(words_to_bytes(self.output))
        if self.challenge:
            sha.update(bytes(self.challenge))
            for repetition, hidden in zip(self.commitments, self.challenge):
                sha.update(repetition[hidden] or b"")
        else:
            for repetition in self.commitments:
                for commitment in repetition:
                    sha.update(commitment or b"")
        return sha.hexdigest()


@dataclass
class ProvingResult:
    """Output of the commit phase: the public proof and the secret views.

    ``views`` never leaves the prover; only ``build_response`` copies the
    revealed ones out of it.
    """

    proof: Proof
    views: List[List[View]] = field(repr=False)


def two_view_digest(revealed_commitments: Sequence[Sequence[bytes]]) -> bytes:
    """Aggregate hash of every repetition's two revealed commitments."""
    sha = hashlib.sha256()
    for repetition in revealed_commitments:
        for commitment in repetition:
            sha.update(commitment)
    return sha.digest()


class ZKProver:
    """MPC-in-the-head prover."""

    def __init__(self,
                 repetitions: Optional[int] = None,
                 max_workers: Optional[int] = None,
                 compact: Optional[bool] = None,
                 deterministic: Optional[bool] = None,
                 circuits: Optional[CircuitCompiler] = None):
        """Initialize prover.

        Args:
            repetitions: Repetitions per proof (defaults to settings)
            max_workers: Threads used to run repetitions
            compact: Omit the derivable slot-0 log from responses
            deterministic: Use reproducible seeds (tests only)
            circuits: Circuit registry to resolve names against
        """
        self.repetitions = repetitions or settings.repetitions
        self.max_workers = max_workers or settings.max_workers
        self.compact = settings.compact_response if compact is None else compact
        deterministic = settings.deterministic if deterministic is None else deterministic
        self._seeds = SeedGenerator(deterministic=deterministic)
        self._circuits = circuits or default_compiler
        self._executor = ThreadPoolExecutor(max_workers=2)
        self._generation_times: List[float] = []
        self._stats_lock = threading.Lock()
        self._stats = {
            "proofs_generated": 0,
            "repetitions_run": 0,
            "avg_generation_time": 0,
            "total_generation_time": 0
        }
        if deterministic:
            logger.warning("Prover running with deterministic seeds; proofs are not zero-knowledge")

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def prove(self,
              circuit: Union[str, Circuit],
              private: Sequence[int],
              public: Sequence[int] = (),
              repetitions: Optional[int] = None) -> ProvingResult:
        """Run every repetition and commit to all party views.

        Raises:
            MalformedWitness: Before any repetition runs, on arity mismatch
            InvariantViolation: If repetitions disagree on the output
        """
        circuit = self._circuits.resolve(circuit)
        circuit.bind(private, public)
        repetitions = repetitions or self.repetitions
        private, public = list(private), list(public)

        arena = ContextArena(f"prove-{circuit.name}")
        logger.debug(f"Proving {circuit.name} with {repetitions} repetitions")

        def run(repetition: int):
            with memory_guard(f"repetition {repetition}", arena):
                return self._run_repetition(arena, circuit, repetition, private, public)

        # Deterministic seeds are only reproducible when drawn in repetition order.
        if self.max_workers > 1 and repetitions > 1 and not self._seeds.deterministic:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                runs = list(pool.map(run, range(repetitions)))
        else:
            runs = [run(repetition) for repetition in range(repetitions)]

        output = runs[0][1]
        for repetition, (_, claimed, _, _) in enumerate(runs):
            if claimed != output:
                raise InvariantViolation(
                    f"repetition {repetition} computed {claimed}, repetition 0 computed {output}"
                )

        proof = Proof(
            circuit_name=circuit.name,
            public_inputs=public,
            output=output,
            commitments=[commitments for _, _, _, commitments in runs],
            output_shares=[shares for _, _, shares, _ in runs],
            compact=self.compact,
            state=ProofState.COMMITTED,
        )
        with self._stats_lock:
            self._stats["repetitions_run"] += repetitions
        return ProvingResult(proof=proof, views=[views for views, _, _, _ in runs])

    def _run_repetition(self, arena: ContextArena, circuit: Circuit, repetition: int,
                        private: List[int], public: List[int]
                        ) -> Tuple[List[View], List[int], List[List[int]], List[bytes]]:
        views = [View(seed=self._seeds.seed()) for _ in range(PARTIES)]
        for party, view in enumerate(views):
            arena.allocate(repetition, party, view)
        handle = arena.handle(repetition, tuple(range(PARTIES)))

        inputs = []
        for value in private:
            first, second = self._seeds.word(), self._seeds.word()
            shares = [first, second, value ^ first ^ second]
            for view, share in zip(views, shares):
                view.in_data.append(share)
            inputs.append(ProverWire(shares, handle))

        outputs = circuit.run(ProverWire, inputs, public)
        output = [out.reveal() for out in outputs]
        output_shares = [[out.value[party] for out in outputs] for party in range(PARTIES)]
        commitments = [view.commit() for view in views]

        logger.debug(f"Repetition {repetition}: {len(views[0].out_data)} log entries per party")
        arena.release(repetition, wipe=False)
        return views, output, output_shares, commitments

    # ------------------------------------------------------------------
    # Challenge / response
    # ------------------------------------------------------------------

    @staticmethod
    def challenge(proof: Proof) -> List[int]:
        """Query the random oracle over the committed transcript."""
        return query_random_oracle(
            proof.public_input_len,
            len(proof.output),
            proof.output,
            proof.output_shares,
            proof.commitments,
        )

    def build_response(self, views: List[List[View]], challenge: Sequence[int],
                       compact: Optional[bool] = None) -> List[List[View]]:
        """Open the two parties not named by the challenge, per repetition."""
        if len(views) != len(challenge):
            raise InvariantViolation(
                f"challenge covers {len(challenge)} repetitions, proof has {len(views)}"
            )
        compact = self.compact if compact is None else compact
        response = []
        for repetition_views, hidden in zip(views, challenge):
            first, second = revealed_parties(hidden)
            response.append([
                repetition_views[first].copy(with_log=not compact),
                repetition_views[second].copy(),
            ])
        return response

    def respond(self, result: ProvingResult) -> Proof:
        """Derive the challenge and attach the response to the proof."""
        proof = result.proof
        proof.challenge = self.challenge(proof)
        proof.state = ProofState.CHALLENGED

        proof.response = self.build_response(result.views, proof.challenge, proof.compact)
        proof.two_view_hash = two_view_digest([
            [repetition[party] for party in revealed_parties(hidden)]
            for repetition, hidden in zip(proof.commitments, proof.challenge)
        ])
        proof.state = ProofState.RESPONDED
        return proof

    def prove_and_respond(self, circuit: Union[str, Circuit], private: Sequence[int],
                          public: Sequence[int] = (),
                          repetitions: Optional[int] = None) -> Proof:
        """Synchronous end-to-end proof generation."""
        start_time = time.time()
        proof = self.respond(self.prove(circuit, private, public, repetitions))

        generation_time = time.time() - start_time
        with self._stats_lock:
            self._generation_times.append(generation_time)
            self._generation_times = self._generation_times[-100:]
            self._stats["proofs_generated"] += 1
            self._stats["total_generation_time"] += generation_time
            self._stats["avg_generation_time"] = (
                self._stats["total_generation_time"] / self._stats["proofs_generated"]
            )
        logger.info(f"Proof for {proof.circuit_name} generated in {generation_time*1000:.1f}ms "
                    f"({proof.repetitions} repetitions)")
        return proof

    async def generate_proof(self, circuit: Union[str, Circuit], private: Sequence[int],
                             public: Sequence[int] = (),
                             repetitions: Optional[int] = None) -> Proof:
        """Generate a complete proof without blocking the event loop."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._executor,
                self.prove_and_respond,
                circuit,
                private,
                public,
                repetitions,
            )
        except Exception as e:
            logger.error(f"Proof generation failed: {e}")
            raise

    def get_stats(self) -> Dict[str, Any]:
        """Get prover statistics."""
        with self._stats_lock:
            return {
                **self._stats,
                "repetitions": self.repetitions,
                "recent_generation_time_p50": float(np.median(self._generation_times))
                if self._generation_times else 0,
            }

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._generation_times.clear()
            for key in self._stats:
                self._stats[key] = 0


# Global prover instance
prover = ZKProver()

__all__ = [
    "ZKProver",
    "prover",
    "Proof",
    "ProofState",
    "ProvingResult",
    "two_view_digest",
]
