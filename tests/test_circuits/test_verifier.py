"""Tests for proof verification and tamper rejection."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from zkboo.circuits.oracle import revealed_parties
from zkboo.circuits.prover import ProofState, ZKProver
from zkboo.core.errors import ConsistencyViolation

TRUE = 0xFFFFFFFF

STATEMENTS = [
    ("age_check", [25], []),
    ("age_check", [10], []),
    ("threshold", [1000], [999]),
    ("sum3", [0xFFFFFFFF, 5, 7], []),
    ("select", [TRUE, 11, 22], []),
    ("masked_xor", [0xAAAA, 0x5555], [0x0FF0]),
    ("range_check", [50], [10, 100]),
]


class TestCompleteness:

    @pytest.mark.parametrize("name,private,public", STATEMENTS)
    def test_honest_proofs_verify(self, zk_prover, zk_verifier, name, private, public):
        proof = zk_prover.prove_and_respond(name, private, public)
        result = zk_verifier.verify_sync(proof)
        assert result.valid, result.error
        assert result.output == proof.output
        assert result.two_view_hash == proof.two_view_hash.hex()
        assert proof.state is ProofState.VERIFIED

    @pytest.mark.parametrize("name,private,public", STATEMENTS[:3])
    def test_full_responses_verify(self, zk_verifier, name, private, public):
        proof = ZKProver(repetitions=9, compact=False).prove_and_respond(name, private, public)
        assert zk_verifier.verify_sync(proof).valid

    def test_rebuild_returns_two_view_hash(self, zk_prover, zk_verifier):
        proof = zk_prover.prove_and_respond("age_check", [30])
        assert zk_verifier.rebuild_proof(proof) == proof.two_view_hash

    def test_single_worker(self, zk_prover):
        from zkboo.circuits.verifier import ZKVerifier

        proof = zk_prover.prove_and_respond("sum3", [1, 2, 3])
        assert ZKVerifier(max_workers=1).verify_sync(proof).valid

    def test_concurrent_stats_are_not_lost(self, zk_verifier):
        zk = ZKProver(repetitions=2)
        proofs = [zk.prove_and_respond("age_check", [age]) for age in range(32)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(zk_verifier.verify_sync, proofs))

        stats = zk_verifier.get_stats()
        assert all(r.valid for r in results)
        assert stats["verifications"] == 32
        assert stats["valid_proofs"] == 32
        assert stats["success_rate"] == 1.0


@pytest.mark.asyncio
class TestAgeScenario:

    async def test_adult_proves_true(self, zk_prover, zk_verifier):
        proof = await zk_prover.generate_proof("age_check", [25])
        result = await zk_verifier.verify(proof)
        assert result.valid
        assert result.output == [TRUE]

    async def test_minor_proves_false(self, zk_prover, zk_verifier):
        proof = await zk_prover.generate_proof("age_check", [10])
        result = await zk_verifier.verify(proof)
        assert result.valid
        assert result.output == [0]

    async def test_batch(self, zk_prover, zk_verifier):
        proofs = [await zk_prover.generate_proof("age_check", [age]) for age in (18, 19, 20, 99)]
        results = await zk_verifier.verify_batch(proofs)
        assert all(r.valid for r in results)
        assert [r.output[0] for r in results] == [0, 0, TRUE, TRUE]
        stats = zk_verifier.get_stats()
        assert stats["verifications"] == 4
        assert stats["batch_verifications"] == 1
        assert stats["success_rate"] == 1.0

    async def test_empty_batch(self, zk_verifier):
        assert await zk_verifier.verify_batch([]) == []


class TestSoundness:

    @pytest.fixture
    def proof(self, zk_prover):
        return zk_prover.prove_and_respond("age_check", [25])

    def _rejected(self, verifier, proof):
        result = verifier.verify_sync(proof)
        assert not result.valid
        assert result.error
        assert proof.state is ProofState.REJECTED
        return result

    def test_claimed_output_flipped(self, zk_verifier, proof):
        proof.output = [0]
        self._rejected(zk_verifier, proof)

    def test_recorded_log_entry(self, zk_verifier, proof):
        proof.response[0][1].out_data[1] ^= 0x100
        self._rejected(zk_verifier, proof)

    def test_seed(self, zk_verifier, proof):
        view = proof.response[2][0]
        view.seed = bytes([view.seed[0] ^ 1]) + view.seed[1:]
        self._rejected(zk_verifier, proof)

    def test_input_share(self, zk_verifier, proof):
        proof.response[1][1].in_data[0] ^= 0x80000000
        self._rejected(zk_verifier, proof)

    def test_hidden_output_share(self, zk_verifier, proof):
        hidden = proof.challenge[0]
        proof.output_shares[0][hidden] = [proof.output_shares[0][hidden][0] ^ 1]
        self._rejected(zk_verifier, proof)

    def test_hidden_commitment(self, zk_verifier, proof):
        hidden = proof.challenge[3]
        proof.commitments[3][hidden] = bytes(32)
        self._rejected(zk_verifier, proof)

    def test_challenge(self, zk_verifier, proof):
        proof.challenge[0] = (proof.challenge[0] + 1) % 3
        self._rejected(zk_verifier, proof)

    def test_compact_slot_carrying_log(self, zk_verifier, proof):
        proof.response[0][0].out_data = [1, 2, 3]
        result = self._rejected(zk_verifier, proof)
        assert "compact" in result.error

    def test_dropped_repetition(self, zk_verifier, proof):
        proof.response.pop()
        self._rejected(zk_verifier, proof)

    def test_two_view_hash(self, zk_verifier, proof):
        proof.two_view_hash = bytes(32)
        self._rejected(zk_verifier, proof)

    def test_rebuild_raises_under_other_challenge(self, zk_verifier, proof):
        other = [(e + 1) % 3 for e in proof.challenge]
        with pytest.raises(ConsistencyViolation):
            zk_verifier.rebuild_proof(proof, other)

    def test_swapped_views(self, zk_verifier, proof):
        opened = proof.response[0]
        opened[0], opened[1] = opened[1], opened[0]
        self._rejected(zk_verifier, proof)

    def test_stats_count_rejections(self, zk_verifier, proof):
        proof.output = [0]
        zk_verifier.verify_sync(proof)
        stats = zk_verifier.get_stats()
        assert stats["invalid_proofs"] == 1
        assert stats["success_rate"] == 0


def test_revealed_parties_differ_from_hidden():
    for hidden in range(3):
        assert hidden not in revealed_parties(hidden)
