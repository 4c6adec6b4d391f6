"""Tests for proof generation."""

import itertools
from concurrent.futures import ThreadPoolExecutor

import pytest

from zkboo.core.errors import InvariantViolation, MalformedWitness, UnknownCircuit
from zkboo.circuits.compiler import CircuitCompiler
from zkboo.circuits.oracle import expand_challenge, query_random_oracle, revealed_parties
from zkboo.circuits.prover import Proof, ProofState, ZKProver, two_view_digest

REPETITIONS = 12
TRUE = 0xFFFFFFFF


class TestCommitPhase:

    def test_prove_commits_every_repetition(self, zk_prover):
        result = zk_prover.prove("age_check", [25])
        proof = result.proof
        assert proof.state is ProofState.COMMITTED
        assert proof.output == [TRUE]
        assert proof.repetitions == REPETITIONS
        assert len(result.views) == REPETITIONS
        for commitments, views in zip(proof.commitments, result.views):
            assert commitments == [view.commit() for view in views]

    def test_input_shares_recombine(self, zk_prover):
        result = zk_prover.prove("sum3", [1, 2, 3])
        for views in result.views:
            for index, value in enumerate([1, 2, 3]):
                assert views[0].in_data[index] ^ views[1].in_data[index] \
                    ^ views[2].in_data[index] == value

    def test_output_shares_recombine(self, zk_prover):
        proof = zk_prover.prove("sum3", [10, 20, 30]).proof
        assert proof.output == [60]
        for shares in proof.output_shares:
            assert shares[0][0] ^ shares[1][0] ^ shares[2][0] == 60

    @pytest.mark.parametrize("circuit,private,public,entries", [
        ("age_check", [0], [], 3),
        ("age_check", [25], [], 3),
        ("age_check", [0xFFFFFFFF], [], 3),
        ("range_check", [0], [1, 10], 6),
        ("range_check", [0xFFFFFFFF], [1, 10], 6),
    ])
    def test_logs_have_circuit_shape(self, zk_prover, circuit, private, public, entries):
        result = zk_prover.prove(circuit, private, public)
        lengths = {len(view.out_data) for views in result.views for view in views}
        assert lengths == {entries}

    def test_new_proof_starts_in_setup(self):
        proof = Proof(circuit_name="age_check", public_inputs=[], output=[TRUE],
                      commitments=[], output_shares=[])
        assert proof.state is ProofState.SETUP

    def test_diverging_repetitions_are_fatal(self):
        counter = itertools.count(1)
        registry = CircuitCompiler()

        @registry.register("drifting", private_inputs=1)
        def drifting(wire, inputs, public):
            return [inputs[0].xor(wire.constant(next(counter)))]

        zk = ZKProver(repetitions=4, max_workers=1, circuits=registry)
        with pytest.raises(InvariantViolation, match="repetition 1"):
            zk.prove("drifting", [7])
        assert zk.get_stats()["repetitions_run"] == 0

    def test_concurrent_stats_are_not_lost(self):
        zk = ZKProver(repetitions=2, max_workers=1)
        with ThreadPoolExecutor(max_workers=8) as pool:
            proofs = list(pool.map(lambda age: zk.prove_and_respond("age_check", [age]),
                                   range(32)))

        stats = zk.get_stats()
        assert len(proofs) == 32
        assert stats["proofs_generated"] == 32
        assert stats["repetitions_run"] == 64

    def test_fresh_randomness_across_runs(self, zk_prover):
        first = zk_prover.prove("age_check", [25]).proof
        second = zk_prover.prove("age_check", [25]).proof
        assert first.commitments != second.commitments
        seeds = {view.seed for views in zk_prover.prove("age_check", [25]).views
                 for view in views}
        assert len(seeds) == REPETITIONS * 3

    def test_deterministic_mode(self):
        a = ZKProver(repetitions=6, deterministic=True).prove_and_respond("age_check", [30])
        b = ZKProver(repetitions=6, deterministic=True).prove_and_respond("age_check", [30])
        assert a.commitments == b.commitments
        assert a.challenge == b.challenge

    @pytest.mark.parametrize("private", [[], [1, 2], [-5], [1 << 32]])
    def test_malformed_witness_before_any_repetition(self, zk_prover, private):
        with pytest.raises(MalformedWitness):
            zk_prover.prove("age_check", private)
        assert zk_prover.get_stats()["repetitions_run"] == 0

    def test_unknown_circuit(self, zk_prover):
        with pytest.raises(UnknownCircuit):
            zk_prover.prove("nope", [1])

    def test_repetition_override(self, zk_prover):
        assert zk_prover.prove("age_check", [25], repetitions=3).proof.repetitions == 3


class TestChallengeAndResponse:

    def test_challenge_is_oracle_output(self, zk_prover):
        proof = zk_prover.prove_and_respond("threshold", [50], [40])
        assert proof.state is ProofState.RESPONDED
        assert proof.challenge == query_random_oracle(
            1, 1, proof.output, proof.output_shares, proof.commitments
        )

    def test_response_opens_two_parties(self, zk_prover):
        result = zk_prover.prove("age_check", [25])
        proof = zk_prover.respond(result)
        for repetition, (hidden, opened) in enumerate(zip(proof.challenge, proof.response)):
            parties = revealed_parties(hidden)
            assert len(opened) == 2
            assert [v.seed for v in opened] == [result.views[repetition][p].seed for p in parties]
            assert hidden not in parties

    def test_compact_response_omits_derivable_log(self, zk_prover):
        proof = zk_prover.prove_and_respond("age_check", [25])
        assert proof.compact
        assert all(opened[0].out_data == [] for opened in proof.response)
        assert all(len(opened[1].out_data) == 3 for opened in proof.response)

    def test_full_response(self):
        full = ZKProver(repetitions=4, compact=False).prove_and_respond("age_check", [25])
        assert not full.compact
        assert all(len(view.out_data) == 3 for opened in full.response for view in opened)

    def test_build_response_explicit_challenge(self, zk_prover):
        result = zk_prover.prove("age_check", [25], repetitions=3)
        response = zk_prover.build_response(result.views, [0, 1, 2], compact=False)
        assert response[0][0].seed == result.views[0][1].seed
        assert response[1][0].seed == result.views[1][2].seed
        assert response[2][0].seed == result.views[2][0].seed
        with pytest.raises(InvariantViolation):
            zk_prover.build_response(result.views, [0, 1])

    def test_two_view_hash(self, zk_prover):
        proof = zk_prover.prove_and_respond("age_check", [25])
        revealed = [[rep[p] for p in revealed_parties(h)]
                    for rep, h in zip(proof.commitments, proof.challenge)]
        assert proof.two_view_hash == two_view_digest(revealed)
        assert len(proof.two_view_hash) == 32

    @pytest.mark.asyncio
    async def test_generate_proof_async(self, zk_prover):
        proof = await zk_prover.generate_proof("age_check", [25])
        assert proof.output == [TRUE]
        stats = zk_prover.get_stats()
        assert stats["proofs_generated"] == 1
        assert stats["repetitions_run"] == REPETITIONS
        assert stats["recent_generation_time_p50"] > 0

    @pytest.mark.asyncio
    async def test_generate_proof_propagates_errors(self, zk_prover):
        with pytest.raises(MalformedWitness):
            await zk_prover.generate_proof("age_check", [1, 2])


class TestOracle:

    def test_challenge_values(self):
        challenge = expand_challenge(b"\x00" * 32, 500)
        assert len(challenge) == 500
        assert set(challenge) <= {0, 1, 2}

    def test_rejects_three(self):
        # 0xFF holds four 3s; 0x1B is 0b00011011 -> 0, 1, 2, (3 rejected)
        assert expand_challenge(b"\xff\x1b", 3) == [0, 1, 2]

    def test_sensitive_to_commitments(self, zk_prover):
        proof = zk_prover.prove("age_check", [25]).proof
        before = query_random_oracle(0, 1, proof.output, proof.output_shares, proof.commitments)
        proof.commitments[0][0] = bytes(32)
        after = query_random_oracle(0, 1, proof.output, proof.output_shares, proof.commitments)
        assert before != after

    def test_revealed_parties(self):
        assert revealed_parties(0) == (1, 2)
        assert revealed_parties(1) == (2, 0)
        assert revealed_parties(2) == (0, 1)
