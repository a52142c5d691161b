"""Proof engine backends and the fault boundary around them."""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .circuit import Circuit
from .codec import ProofArtifact
from .crypto import field_to_bytes
from .errors import ProvingFailure, VerificationFailure
from .signing import Signer
from .witness import Witness

STATEMENT_DOMAIN = b"zkqr-attest/v1"


class ProofEngine(Protocol):
    def prove(self, circuit: Circuit, witness: Witness) -> ProofArtifact: ...

    def verify(self, circuit: Circuit, artifact: ProofArtifact) -> None: ...


def _statement(circuit: Circuit, public_inputs) -> bytes:
    return STATEMENT_DOMAIN + circuit.digest() + b"".join(field_to_bytes(v) for v in public_inputs)


class AttestingProofEngine:
    """In-process backend: checks every constraint, then signs the statement.

    The proof is a signature over the circuit digest and the public inputs, so
    a verifier holding the matching key accepts it only for the circuit it
    rebuilt itself. It does not hide anything beyond what the public inputs
    already reveal; plug a ``CommandProofEngine`` in for a succinct backend.
    """

    def __init__(self, signer: Signer, logger: logging.Logger | None = None):
        self.signer = signer
        self.log = logger or logging.getLogger(__name__)

    def prove(self, circuit: Circuit, witness: Witness) -> ProofArtifact:
        if witness.spec_tag != circuit.spec_tag:
            raise ProvingFailure(f"Witness for {witness.spec_tag} cannot prove circuit {circuit.spec_tag}")
        failures = circuit.unsatisfied(witness.values)
        if failures:
            raise ProvingFailure(f"Witness violates {len(failures)} constraint(s), first at gate {failures[0]}")
        public_inputs = tuple(witness.values[idx] for idx in circuit.public_slots)
        proof = self.signer.sign(_statement(circuit, public_inputs))
        self.log.debug("attested %s with %d public inputs (%s)", circuit.spec_tag, len(public_inputs), self.signer.scheme)
        return ProofArtifact(proof_bytes=proof, public_inputs=public_inputs)

    def verify(self, circuit: Circuit, artifact: ProofArtifact) -> None:
        if len(artifact.public_inputs) != len(circuit.public_slots):
            raise VerificationFailure("Public input count does not match the circuit")
        if not self.signer.verify(_statement(circuit, artifact.public_inputs), artifact.proof_bytes):
            raise VerificationFailure(f"Attestation does not match circuit {circuit.spec_tag}")


@dataclass(slots=True)
class EnginePaths:
    circuit: Path
    witness: Path
    public: Path
    proof: Path


def _paths(work_dir: Path) -> EnginePaths:
    return EnginePaths(
        circuit=work_dir / "circuit.json",
        witness=work_dir / "witness.json",
        public=work_dir / "public_inputs.json",
        proof=work_dir / "proof.bin",
    )


def _dump_json(path: Path, payload: object) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


class CommandProofEngine:
    """Delegates to an external prover/verifier executable.

    The command receives file locations through ``ZKQR_CIRCUIT``,
    ``ZKQR_WITNESS``, ``ZKQR_PUBLIC`` and ``ZKQR_PROOF`` and must write the
    proof bytes to ``ZKQR_PROOF`` when proving. A non-zero exit status is a
    failure.
    """

    def __init__(self, prover_cmd: str, verifier_cmd: str, logger: logging.Logger | None = None):
        self.prover_cmd = prover_cmd
        self.verifier_cmd = verifier_cmd
        self.log = logger or logging.getLogger(__name__)

    def _run(self, cmd: str, paths: EnginePaths) -> subprocess.CompletedProcess:
        env = os.environ.copy()
        env.update(
            {
                "ZKQR_CIRCUIT": str(paths.circuit),
                "ZKQR_WITNESS": str(paths.witness),
                "ZKQR_PUBLIC": str(paths.public),
                "ZKQR_PROOF": str(paths.proof),
            }
        )
        self.log.debug("running %s", cmd)
        return subprocess.run(shlex.split(cmd), env=env, capture_output=True, text=True)

    def prove(self, circuit: Circuit, witness: Witness) -> ProofArtifact:
        with tempfile.TemporaryDirectory(prefix="zkqr-prove-") as tmp:
            paths = _paths(Path(tmp))
            _dump_json(paths.circuit, circuit.structure())
            _dump_json(paths.witness, {str(idx): hex(value) for idx, value in sorted(witness.values.items())})
            _dump_json(paths.public, [hex(value) for value in witness.public_inputs])
            proc = self._run(self.prover_cmd, paths)
            if proc.returncode != 0:
                raise ProvingFailure(f"Prover exited with {proc.returncode}: {proc.stderr.strip()}")
            if not paths.proof.exists():
                raise ProvingFailure(f"Prover did not write {paths.proof.name}")
            proof = paths.proof.read_bytes()
        return ProofArtifact(proof_bytes=proof, public_inputs=witness.public_inputs)

    def verify(self, circuit: Circuit, artifact: ProofArtifact) -> None:
        with tempfile.TemporaryDirectory(prefix="zkqr-verify-") as tmp:
            paths = _paths(Path(tmp))
            _dump_json(paths.circuit, circuit.structure())
            _dump_json(paths.public, [hex(value) for value in artifact.public_inputs])
            paths.proof.write_bytes(artifact.proof_bytes)
            proc = self._run(self.verifier_cmd, paths)
        if proc.returncode != 0:
            raise VerificationFailure(f"Verifier exited with {proc.returncode}: {proc.stderr.strip()}")


def guarded_prove(
    engine: ProofEngine,
    circuit: Circuit,
    witness: Witness,
    logger: logging.Logger | None = None,
) -> ProofArtifact:
    log = logger or logging.getLogger(__name__)
    start = time.perf_counter()
    try:
        artifact = engine.prove(circuit, witness)
    except ProvingFailure:
        raise
    except Exception as exc:
        log.exception("proof engine fault while proving %s", circuit.spec_tag)
        raise ProvingFailure(f"Proof engine fault: {exc}") from exc
    log.info("proved %s in %.2fs (%d proof bytes)", circuit.spec_tag, time.perf_counter() - start, len(artifact.proof_bytes))
    return artifact


def guarded_verify(
    engine: ProofEngine,
    circuit: Circuit,
    artifact: ProofArtifact,
    logger: logging.Logger | None = None,
) -> None:
    log = logger or logging.getLogger(__name__)
    try:
        engine.verify(circuit, artifact)
    except VerificationFailure:
        raise
    except Exception as exc:
        log.exception("proof engine fault while verifying %s", circuit.spec_tag)
        raise VerificationFailure(f"Proof engine fault: {exc}") from exc

