from dataclasses import replace

import pytest

from zkqr.codec import ProofArtifact, encode_text, serialize
from zkqr.crypto import FIELD_MODULUS
from zkqr.engine import AttestingProofEngine
from zkqr.errors import UnsatisfiedPredicate
from zkqr.predicates import CommitmentThreshold, DomainNullifier
from zkqr.prover import ProverService
from zkqr.reassembler import Reassembler, ReassemblyStatus
from zkqr.signing import create_signer, generate_ecdsa_keypair
from zkqr.verifier import Verdict, VerifierService, expected_commitment, expected_domain_challenge, verify
from zkqr.witness import BalanceSecret, NullifierSecret


def _engine() -> AttestingProofEngine:
    private_key, public_key = generate_ecdsa_keypair()
    return AttestingProofEngine(create_signer("ecdsa-p256", private_key, public_key))


def test_balance_proof_over_chunked_transport():
    engine = _engine()
    spec = CommitmentThreshold(threshold=10_000)
    outputs = ProverService(engine, max_chunk_payload_len=40).generate(spec, BalanceSecret(50_000))
    assert len(outputs.chunks) > 1

    reassembler = Reassembler()
    text = None
    for frame in reversed(outputs.frames):
        state = reassembler.ingest_and_maybe_finalize(frame)
        if state.status is ReassemblyStatus.COMPLETE:
            text = state.text
    assert text == outputs.text

    commitment = outputs.artifact.public_inputs[0]
    report = VerifierService(engine).verify_text(spec, text, expected_commitment(commitment))
    assert report.verdict is Verdict.ACCEPTED
    assert report.accepted
    assert report.named_inputs == {"commitment": commitment}


def test_balance_below_threshold_never_proves():
    prover = ProverService(_engine())
    with pytest.raises(UnsatisfiedPredicate):
        prover.prove(CommitmentThreshold(threshold=10_000), BalanceSecret(5_000))


def test_tampered_proof_is_rejected():
    engine = _engine()
    spec = CommitmentThreshold()
    artifact = ProverService(engine).prove(spec, BalanceSecret(50_000))
    flipped = bytes([artifact.proof_bytes[0] ^ 0xFF]) + artifact.proof_bytes[1:]
    report = verify(spec, replace(artifact, proof_bytes=flipped), engine)
    assert report.verdict is Verdict.REJECTED_INVALID_PROOF


def test_proof_for_other_threshold_is_rejected():
    engine = _engine()
    artifact = ProverService(engine).prove(CommitmentThreshold(threshold=10_000), BalanceSecret(50_000))
    report = verify(CommitmentThreshold(threshold=40_000), artifact, engine)
    assert report.verdict is Verdict.REJECTED_INVALID_PROOF


def test_public_input_mismatch():
    engine = _engine()
    spec = CommitmentThreshold()
    artifact = ProverService(engine).prove(spec, BalanceSecret(50_000))
    report = verify(spec, artifact, engine, expected_commitment(artifact.public_inputs[0] + 1))
    assert report.verdict is Verdict.REJECTED_PUBLIC_INPUT_MISMATCH
    assert report.mismatched_indices == (0,)


def test_malformed_artifacts():
    engine = _engine()
    verifier = VerifierService(engine)
    spec = CommitmentThreshold()
    assert verifier.verify_text(spec, "%%%").verdict is Verdict.MALFORMED_ARTIFACT
    assert verifier.verify_text(spec, encode_text(b"ZKQR")).verdict is Verdict.MALFORMED_ARTIFACT
    wrong_count = encode_text(serialize(ProofArtifact(b"sig", (1, 2))))
    report = verifier.verify_text(spec, wrong_count)
    assert report.verdict is Verdict.MALFORMED_ARTIFACT
    assert report.named_inputs == {}


def test_nullifiers_differ_per_challenge():
    engine = _engine()
    prover = ProverService(engine)
    verifier = VerifierService(engine)
    spec = DomainNullifier()

    first = prover.prove(spec, NullifierSecret("alice", "bank.example", "challenge-1"))
    second = prover.prove(spec, NullifierSecret("alice", "bank.example", "challenge-2"))
    repeat = prover.prove(spec, NullifierSecret("alice", "bank.example", "challenge-1"))

    assert verifier.verify(spec, first, expected_domain_challenge("bank.example", "challenge-1")).accepted
    assert verifier.verify(spec, second, expected_domain_challenge("bank.example", "challenge-2")).accepted
    assert first.public_inputs[2] != second.public_inputs[2]
    assert first.public_inputs[2] == repeat.public_inputs[2]


def test_nullifier_replayed_to_new_challenge():
    engine = _engine()
    spec = DomainNullifier()
    artifact = ProverService(engine).prove(spec, NullifierSecret("alice", "bank.example", "challenge-1"))
    report = verify(spec, artifact, engine, expected_domain_challenge("bank.example", "challenge-2"))
    assert report.verdict is Verdict.REJECTED_PUBLIC_INPUT_MISMATCH
    assert report.mismatched_indices == (1,)
    report = verify(spec, artifact, engine, expected_domain_challenge("shop.example", "challenge-1"))
    assert report.mismatched_indices == (0,)


def test_out_of_field_public_input_is_malformed():
    engine = _engine()
    spec = CommitmentThreshold()
    artifact = ProverService(engine).prove(spec, BalanceSecret(50_000))
    report = verify(spec, replace(artifact, public_inputs=(FIELD_MODULUS + 3,)), engine)
    assert report.verdict is Verdict.MALFORMED_ARTIFACT
