from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from .circuit import Circuit, build
from .codec import ProofArtifact, decode_text, deserialize
from .crypto import FIELD_MODULUS, digest_to_field
from .engine import ProofEngine, guarded_verify
from .errors import CorruptArtifact, InvalidEncoding, VerificationFailure
from .predicates import PredicateSpec

PartialPublicInputs = Mapping[int, int]


class Verdict(str, Enum):
    ACCEPTED = "accepted"
    REJECTED_INVALID_PROOF = "rejected-invalid-proof"
    REJECTED_PUBLIC_INPUT_MISMATCH = "rejected-public-input-mismatch"
    MALFORMED_ARTIFACT = "malformed-artifact"


@dataclass(frozen=True)
class VerdictReport:
    verdict: Verdict
    reason: str
    spec_tag: str
    public_inputs: Tuple[int, ...] = ()
    mismatched_indices: Tuple[int, ...] = ()
    named_inputs: Dict[str, int] = field(default_factory=dict)

    @property
    def accepted(self) -> bool:
        return self.verdict is Verdict.ACCEPTED


def expected_commitment(commitment: int) -> Dict[int, int]:
    return {0: commitment}


def expected_domain_challenge(domain: str, challenge: str) -> Dict[int, int]:
    return {0: digest_to_field(domain), 1: digest_to_field(challenge)}


class VerifierService:
    """Verifier side: rebuilds the circuit locally and checks artifacts against it."""

    def __init__(self, engine: ProofEngine, logger: logging.Logger | None = None):
        self.engine = engine
        self.log = logger or logging.getLogger(__name__)
        self._circuits: Dict[PredicateSpec, Circuit] = {}

    def _circuit(self, spec: PredicateSpec) -> Circuit:
        circuit = self._circuits.get(spec)
        if circuit is None:
            circuit = build(spec)
            self._circuits[spec] = circuit
        return circuit

    def verify(
        self,
        spec: PredicateSpec,
        artifact: ProofArtifact,
        expected_public_inputs: Optional[PartialPublicInputs] = None,
    ) -> VerdictReport:
        circuit = self._circuit(spec)
        observed = tuple(artifact.public_inputs)
        if len(observed) != len(circuit.public_slots):
            return self._report(
                circuit,
                Verdict.MALFORMED_ARTIFACT,
                f"expected {len(circuit.public_slots)} public inputs, artifact carries {len(observed)}",
                observed,
            )
        if any(not (0 <= value < FIELD_MODULUS) for value in observed):
            return self._report(circuit, Verdict.MALFORMED_ARTIFACT, "public input is outside the field", observed)
        try:
            guarded_verify(self.engine, circuit, artifact, self.log)
        except VerificationFailure as exc:
            return self._report(circuit, Verdict.REJECTED_INVALID_PROOF, str(exc), observed)
        if expected_public_inputs:
            mismatched = tuple(
                sorted(
                    index
                    for index, value in expected_public_inputs.items()
                    if not (0 <= index < len(observed)) or observed[index] != value
                )
            )
            if mismatched:
                return self._report(
                    circuit,
                    Verdict.REJECTED_PUBLIC_INPUT_MISMATCH,
                    f"public inputs differ at {list(mismatched)}",
                    observed,
                    mismatched,
                )
        return self._report(circuit, Verdict.ACCEPTED, "ok", observed)

    def verify_text(
        self,
        spec: PredicateSpec,
        text: str,
        expected_public_inputs: Optional[PartialPublicInputs] = None,
    ) -> VerdictReport:
        try:
            artifact = deserialize(decode_text(text))
        except (InvalidEncoding, CorruptArtifact) as exc:
            report = VerdictReport(verdict=Verdict.MALFORMED_ARTIFACT, reason=str(exc), spec_tag=spec.tag)
            self.log.warning("verdict %s for %s: %s", report.verdict.value, spec.tag, report.reason)
            return report
        return self.verify(spec, artifact, expected_public_inputs)

    def _report(
        self,
        circuit: Circuit,
        verdict: Verdict,
        reason: str,
        observed: Tuple[int, ...],
        mismatched: Tuple[int, ...] = (),
    ) -> VerdictReport:
        named = dict(zip(circuit.public_names, observed)) if len(observed) == len(circuit.public_slots) else {}
        report = VerdictReport(
            verdict=verdict,
            reason=reason,
            spec_tag=circuit.spec_tag,
            public_inputs=observed,
            mismatched_indices=mismatched,
            named_inputs=named,
        )
        if report.accepted:
            self.log.info("verdict %s for %s", verdict.value, circuit.spec_tag)
        else:
            self.log.warning("verdict %s for %s: %s", verdict.value, circuit.spec_tag, reason)
        return report


def verify(
    spec: PredicateSpec,
    artifact: ProofArtifact,
    engine: ProofEngine,
    expected_public_inputs: Optional[PartialPublicInputs] = None,
    logger: logging.Logger | None = None,
) -> VerdictReport:
    return VerifierService(engine, logger).verify(spec, artifact, expected_public_inputs)

