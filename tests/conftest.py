"""Pytest configuration and fixtures for zkboo tests."""

import random

import pytest

from zkboo.core.config import PARTIES
from zkboo.core.context import LogMode, View
from zkboo.core.memory import ContextArena
from zkboo.core.randomness import SEED_LENGTH
from zkboo.protocol import ProverWire, VerifierWire
from zkboo.circuits.oracle import revealed_parties
from zkboo.circuits.prover import ZKProver, prover
from zkboo.circuits.verifier import ZKVerifier, verifier

# Enough repetitions to exercise every challenge value, few enough to stay fast.
REPETITIONS = 12


@pytest.fixture(autouse=True)
def reset_stats():
    """Reset global orchestrator statistics before each test."""
    prover.reset_stats()
    verifier.reset_stats()
    yield
    prover.reset_stats()
    verifier.reset_stats()


@pytest.fixture
def zk_prover():
    return ZKProver(repetitions=REPETITIONS, max_workers=2)


@pytest.fixture
def zk_verifier():
    return ZKVerifier(max_workers=2)


@pytest.fixture
def deterministic_prover():
    return ZKProver(repetitions=REPETITIONS, deterministic=True)


@pytest.fixture
def prover_run():
    """Evaluate a gate function over freshly split ProverWires.

    Returns the output wire and the three party views of the single
    repetition.
    """
    def run(fn, *values, seed_base=1):
        arena = ContextArena("prover-test")
        views = [View(seed=bytes([seed_base + party]) * SEED_LENGTH) for party in range(PARTIES)]
        for party, view in enumerate(views):
            arena.allocate(0, party, view)
        handle = arena.handle(0, tuple(range(PARTIES)))

        rng = random.Random(seed_base)
        wires = []
        for value in values:
            first, second = rng.getrandbits(32), rng.getrandbits(32)
            shares = [first, second, value ^ first ^ second]
            for view, share in zip(views, shares):
                view.in_data.append(share)
            wires.append(ProverWire(shares, handle))
        return fn(*wires), views
    return run


@pytest.fixture
def verifier_run():
    """Replay a gate function over the two views left open by ``hidden``.

    Returns the output wire and the two contexts in slot order.
    """
    def run(fn, views, hidden, compact=False):
        parties = revealed_parties(hidden)
        arena = ContextArena("verifier-test")
        for slot, party in enumerate(parties):
            derive = compact and slot == 0
            arena.allocate(0, party, views[party].copy(with_log=not derive),
                           LogMode.TO_DERIVE if derive else LogMode.RECORDED)
        handle = arena.handle(0, parties)
        wires = [
            VerifierWire([first, second], handle)
            for first, second in zip(views[parties[0]].in_data, views[parties[1]].in_data)
        ]
        return fn(*wires), handle.contexts()
    return run
