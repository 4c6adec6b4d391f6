"""Proof transcript export and import.

A transcript is a positional JSON array. The first six fields follow the
layout existing downstream verifiers consume:

    0. public-input length
    1. public inputs
    2. claimed output
    3. challenge, one byte per repetition, hex
    4. aggregated two-party commitment hash, hex
    5. per repetition, per revealed party: [seed hex, input shares, view log]

Fields 6-9 extend the layout with what a standalone verifier needs to
recompute the challenge: the hidden parties' commitments and output shares,
the circuit name and whether responses are compact.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

from zkboo.core.config import PARTIES, REVEALED_PARTIES
from zkboo.core.context import View
from zkboo.core.errors import InvariantViolation, MalformedTranscript
from zkboo.core.randomness import SEED_LENGTH, WORD_MASK
from zkboo.circuits.prover import Proof, ProofState

logger = logging.getLogger(__name__)

POSITIONAL_FIELDS = 6
FIELD_COUNT = 10


def _hex(data: bytes) -> str:
    return "0x" + data.hex()


def _unhex(value: Any, what: str) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise MalformedTranscript(f"{what} must be a 0x-prefixed hex string")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as e:
        raise MalformedTranscript(f"{what} is not valid hex: {e}") from e


def _words(value: Any, what: str) -> List[int]:
    if not isinstance(value, list):
        raise MalformedTranscript(f"{what} must be a list of words")
    for word in value:
        if not isinstance(word, int) or isinstance(word, bool) or not 0 <= word <= WORD_MASK:
            raise MalformedTranscript(f"{what} contains {word!r}, not a 32-bit word")
    return list(value)


def export_transcript(proof: Proof) -> List[Any]:
    """Serialize a responded proof into the positional transcript layout."""
    if proof.state not in (ProofState.RESPONDED, ProofState.VERIFIED):
        raise InvariantViolation(f"cannot export a proof in state {proof.state.value}")

    revealed = []
    for views in proof.response:
        for view in views:
            revealed.append([_hex(view.seed), list(view.in_data), list(view.out_data)])

    return [
        proof.public_input_len,
        list(proof.public_inputs),
        list(proof.output),
        _hex(bytes(proof.challenge)),
        _hex(proof.two_view_hash),
        revealed,
        [_hex(rep[hidden]) for rep, hidden in zip(proof.commitments, proof.challenge)],
        [list(rep[hidden]) for rep, hidden in zip(proof.output_shares, proof.challenge)],
        proof.circuit_name,
        proof.compact,
    ]


def import_transcript(fields: Any) -> Proof:
    """Rebuild a verifiable proof from transcript fields.

    Raises:
        MalformedTranscript: If any field is missing or ill-typed
    """
    if not isinstance(fields, list) or len(fields) != FIELD_COUNT:
        raise MalformedTranscript(f"transcript must be a list of {FIELD_COUNT} fields")

    (input_len, public_inputs, output, challenge_hex, two_view_hex,
     revealed, hidden_commitments, hidden_shares, circuit_name, compact) = fields

    public_inputs = _words(public_inputs, "public inputs")
    if input_len != len(public_inputs):
        raise MalformedTranscript(
            f"public-input length {input_len!r} does not match {len(public_inputs)} inputs"
        )
    output = _words(output, "output")
    challenge = list(_unhex(challenge_hex, "challenge"))
    two_view_hash = _unhex(two_view_hex, "two-view hash")
    repetitions = len(challenge)
    if repetitions == 0 or any(e >= PARTIES for e in challenge):
        raise MalformedTranscript("challenge must hold one party index per repetition")
    if not isinstance(circuit_name, str) or not isinstance(compact, bool):
        raise MalformedTranscript("circuit name or compact flag malformed")

    if not isinstance(revealed, list) or len(revealed) != repetitions * REVEALED_PARTIES:
        raise MalformedTranscript(
            f"expected {repetitions * REVEALED_PARTIES} revealed views"
        )
    if not isinstance(hidden_commitments, list) or len(hidden_commitments) != repetitions:
        raise MalformedTranscript("expected one hidden commitment per repetition")
    if not isinstance(hidden_shares, list) or len(hidden_shares) != repetitions:
        raise MalformedTranscript("expected hidden output shares for every repetition")

    response = []
    for index, entry in enumerate(revealed):
        if not isinstance(entry, list) or len(entry) != 3:
            raise MalformedTranscript(f"revealed view {index} must be [seed, in, out]")
        seed = _unhex(entry[0], f"seed {index}")
        if len(seed) != SEED_LENGTH:
            raise MalformedTranscript(f"seed {index} must be {SEED_LENGTH} bytes")
        view = View(seed=seed,
                    in_data=_words(entry[1], f"input shares {index}"),
                    out_data=_words(entry[2], f"view log {index}"))
        if index % REVEALED_PARTIES == 0:
            response.append([])
        response[-1].append(view)

    commitments = []
    output_shares = []
    for repetition, hidden in enumerate(challenge):
        commitment = _unhex(hidden_commitments[repetition], f"commitment {repetition}")
        row = [None] * PARTIES
        row[hidden] = commitment
        commitments.append(row)
        shares = [None] * PARTIES
        shares[hidden] = _words(hidden_shares[repetition], f"output shares {repetition}")
        output_shares.append(shares)

    return Proof(
        circuit_name=circuit_name,
        public_inputs=public_inputs,
        output=output,
        commitments=commitments,
        output_shares=output_shares,
        challenge=challenge,
        response=response,
        two_view_hash=two_view_hash,
        compact=compact,
        state=ProofState.RESPONDED,
    )


def dumps(proof: Proof, indent: Union[int, None] = None) -> str:
    return json.dumps(export_transcript(proof), indent=indent)


def loads(text: str) -> Proof:
    try:
        fields = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedTranscript(f"transcript is not valid JSON: {e}") from e
    return import_transcript(fields)


def save(proof: Proof, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_text(dumps(proof), encoding="utf-8")
    logger.info(f"Transcript written to {path}")
    return path


def load(path: Union[str, Path]) -> Proof:
    return loads(Path(path).read_text(encoding="utf-8"))


__all__ = [
    "export_transcript",
    "import_transcript",
    "dumps",
    "loads",
    "save",
    "load",
    "POSITIONAL_FIELDS",
]
