"""Zero-knowledge verifier for zkboo.

Replays the circuit over the two revealed views of every repetition,
recomputes their commitments and output shares, and checks that the
challenge really is the oracle's answer to the resulting transcript.
"""

import asyncio
import time
import threading
from typing import Dict, Any, Optional, List, Sequence, Tuple
from dataclasses import dataclass
from concurrent.futures import ThreadPoolExecutor
import logging

import numpy as np

from zkboo.core.config import settings, PARTIES, REVEALED_PARTIES
from zkboo.core.context import LogMode
from zkboo.core.errors import ConsistencyViolation, MalformedTranscript, UnknownCircuit
from zkboo.core.memory import ContextArena, memory_guard
from zkboo.core.randomness import SEED_LENGTH, WORD_MASK
from zkboo.protocol.verifier_wire import VerifierWire
from zkboo.circuits.compiler import Circuit, CircuitCompiler, compiler as default_compiler
from zkboo.circuits.oracle import query_random_oracle, revealed_parties
from zkboo.circuits.prover import Proof, ProofState, two_view_digest

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Result of proof verification."""

    valid: bool
    proof_hash: str
    verification_time_ms: float
    output: Optional[List[int]] = None
    two_view_hash: Optional[str] = None
    error: Optional[str] = None


class ZKVerifier:
    """MPC-in-the-head verifier."""

    def __init__(self, max_workers: Optional[int] = None,
                 circuits: Optional[CircuitCompiler] = None):
        self.max_workers = max_workers or settings.max_workers
        self._circuits = circuits or default_compiler
        self._executor = ThreadPoolExecutor(max_workers=2)
        self._verification_times: List[float] = []
        self._stats_lock = threading.Lock()
        self._stats = {
            "verifications": 0,
            "valid_proofs": 0,
            "invalid_proofs": 0,
            "avg_verification_time_ms": 0,
            "batch_verifications": 0
        }

    def rebuild_proof(self, proof: Proof, challenge: Optional[Sequence[int]] = None) -> bytes:
        """Replay every repetition of ``proof`` under ``challenge``.

        Args:
            proof: Proof carrying a response
            challenge: Hidden party per repetition (defaults to proof.challenge)

        Returns:
            bytes: Aggregated hash of the recomputed revealed commitments

        Raises:
            ConsistencyViolation: If anything fails to check out
        """
        circuit = self._circuits.resolve(proof.circuit_name)
        challenge = list(proof.challenge if challenge is None else challenge)
        self._check_shape(circuit, proof, challenge)

        def replay(repetition: int):
            return self._replay_repetition(circuit, proof, repetition, challenge[repetition])

        repetitions = proof.repetitions
        if self.max_workers > 1 and repetitions > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                replays = list(pool.map(replay, range(repetitions)))
        else:
            replays = [replay(repetition) for repetition in range(repetitions)]

        commitments: List[List[bytes]] = []
        output_shares: List[List[List[int]]] = []
        revealed_commitments = []
        for repetition, (hidden, (recomputed, shares)) in enumerate(zip(challenge, replays)):
            full_commitments = [None] * PARTIES
            full_shares = [None] * PARTIES
            full_commitments[hidden] = proof.commitments[repetition][hidden]
            full_shares[hidden] = proof.output_shares[repetition][hidden]

            for slot, party in enumerate(revealed_parties(hidden)):
                expected = proof.commitments[repetition][party]
                if expected is not None and expected != recomputed[slot]:
                    raise ConsistencyViolation(
                        f"commitment of party {party} does not match its view", repetition
                    )
                expected_shares = proof.output_shares[repetition][party]
                if expected_shares is not None and list(expected_shares) != shares[slot]:
                    raise ConsistencyViolation(
                        f"output shares of party {party} do not match replay", repetition
                    )
                full_commitments[party] = recomputed[slot]
                full_shares[party] = shares[slot]

            recombined = [a ^ b ^ c for a, b, c in zip(*full_shares)]
            if recombined != list(proof.output):
                raise ConsistencyViolation(
                    f"output shares recombine to {recombined}, claimed {proof.output}", repetition
                )
            commitments.append(full_commitments)
            output_shares.append(full_shares)
            revealed_commitments.append(recomputed)

        expected_challenge = query_random_oracle(
            proof.public_input_len, len(proof.output), proof.output, output_shares, commitments
        )
        if expected_challenge != challenge:
            raise ConsistencyViolation("challenge is not the oracle's answer to the transcript")

        digest = two_view_digest(revealed_commitments)
        if proof.two_view_hash and proof.two_view_hash != digest:
            raise ConsistencyViolation("aggregated two-view hash mismatch")
        return digest

    def _check_shape(self, circuit: Circuit, proof: Proof, challenge: List[int]) -> None:
        repetitions = proof.repetitions
        if repetitions == 0:
            raise ConsistencyViolation("proof has no repetitions")
        if len(challenge) != repetitions or any(e not in range(PARTIES) for e in challenge):
            raise ConsistencyViolation("challenge does not name one party per repetition")
        if len(proof.response) != repetitions:
            raise ConsistencyViolation("response does not cover every repetition")
        if len(proof.output_shares) != repetitions:
            raise ConsistencyViolation("output shares do not cover every repetition")
        if len(proof.public_inputs) != circuit.public_inputs:
            raise ConsistencyViolation(
                f"{circuit.name} takes {circuit.public_inputs} public inputs"
            )
        if len(proof.output) != circuit.outputs:
            raise ConsistencyViolation(f"{circuit.name} produces {circuit.outputs} outputs")
        for repetition, hidden in enumerate(challenge):
            if len(proof.commitments[repetition]) != PARTIES:
                raise ConsistencyViolation("malformed commitment list", repetition)
            if proof.commitments[repetition][hidden] is None:
                raise ConsistencyViolation("hidden party commitment missing", repetition)
            hidden_shares = proof.output_shares[repetition][hidden]
            if hidden_shares is None or len(hidden_shares) != circuit.outputs:
                raise ConsistencyViolation("hidden party output shares missing", repetition)
            if len(proof.response[repetition]) != REVEALED_PARTIES:
                raise ConsistencyViolation("response must open two views", repetition)

    def _replay_repetition(self, circuit: Circuit, proof: Proof, repetition: int,
                           hidden: int) -> Tuple[List[bytes], List[List[int]]]:
        parties = revealed_parties(hidden)
        views = proof.response[repetition]
        arena = ContextArena(f"verify-{repetition}")

        with memory_guard(f"replay of repetition {repetition}", arena):
            for slot, (party, view) in enumerate(zip(parties, views)):
                if len(view.seed) != SEED_LENGTH:
                    raise ConsistencyViolation(f"seed of party {party} is malformed", repetition)
                if len(view.in_data) != circuit.private_inputs:
                    raise ConsistencyViolation(
                        f"party {party} opened {len(view.in_data)} input shares", repetition
                    )
                mode = LogMode.TO_DERIVE if slot == 0 and proof.compact else LogMode.RECORDED
                if mode is LogMode.TO_DERIVE and view.out_data:
                    raise ConsistencyViolation(
                        "compact response must not carry the derivable log", repetition
                    )
                arena.allocate(repetition, party, view.copy(), mode)

            handle = arena.handle(repetition, parties)
            inputs = [
                VerifierWire([first & WORD_MASK, second & WORD_MASK], handle)
                for first, second in zip(views[0].in_data, views[1].in_data)
            ]
            outputs = circuit.run(VerifierWire, inputs, proof.public_inputs)

            contexts = [arena.get(repetition, party) for party in parties]
            for party, ctx in zip(parties, contexts):
                if not ctx.exhausted:
                    raise ConsistencyViolation(
                        f"view of party {party} has {len(ctx.view.out_data) - ctx.cursor} "
                        f"unused log entries", repetition
                    )
            commitments = [ctx.view.commit() for ctx in contexts]
            shares = [[out.value[slot] for out in outputs] for slot in range(REVEALED_PARTIES)]
            arena.clear()

        logger.debug(f"Repetition {repetition} replayed (hidden party {hidden})")
        return commitments, shares

    def verify_sync(self, proof: Proof) -> VerificationResult:
        """Verify a proof, reporting rejection in the result."""
        start_time = time.time()
        two_view_hash = None
        error = None
        try:
            two_view_hash = self.rebuild_proof(proof).hex()
            valid = True
        except (ConsistencyViolation, MalformedTranscript, UnknownCircuit) as e:
            valid = False
            error = str(e)
            logger.warning(f"Proof {proof.proof_hash[:16]} rejected: {e}")

        verification_time = (time.time() - start_time) * 1000
        proof.state = ProofState.VERIFIED if valid else ProofState.REJECTED

        with self._stats_lock:
            self._stats["verifications"] += 1
            if valid:
                self._stats["valid_proofs"] += 1
            else:
                self._stats["invalid_proofs"] += 1
            self._verification_times.append(verification_time)
            self._verification_times = self._verification_times[-100:]
            self._stats["avg_verification_time_ms"] = float(np.mean(self._verification_times))

        return VerificationResult(
            valid=valid,
            proof_hash=proof.proof_hash,
            verification_time_ms=verification_time,
            output=list(proof.output) if valid else None,
            two_view_hash=two_view_hash,
            error=error,
        )

    async def verify(self, proof: Proof) -> VerificationResult:
        """Verify a single proof without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.verify_sync, proof)

    async def verify_batch(self, proofs: List[Proof]) -> List[VerificationResult]:
        """Verify multiple proofs concurrently."""
        if not proofs:
            return []
        results = await asyncio.gather(*(self.verify(p) for p in proofs))
        with self._stats_lock:
            self._stats["batch_verifications"] += 1
        return list(results)

    def get_stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            return {
                **self._stats,
                "recent_verification_times_ms": self._verification_times[-10:],
                "success_rate": self._stats["valid_proofs"] / self._stats["verifications"]
                if self._stats["verifications"] > 0 else 0
            }

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._verification_times.clear()
            for key in self._stats:
                self._stats[key] = 0


# Global verifier instance
verifier = ZKVerifier()
__all__ = ["ZKVerifier", "verifier", "VerificationResult"]
