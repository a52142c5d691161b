"""zkqr core package: predicate circuits, proofs and chunked QR transport."""

from .chunker import Chunk, broadcast_schedule, parse_chunk, split
from .circuit import Circuit, CircuitBuilder, Gate, GateOp, Wire, build
from .codec import ProofArtifact, decode_text, deserialize, encode_text, serialize
from .config import BalanceConfig, EngineConfig, GlobalConfig, TransportConfig
from .crypto import FIELD_MODULUS, MAX_SECRET, commit, derive_nullifier, digest_to_field, poseidon_hash_elements
from .engine import AttestingProofEngine, CommandProofEngine, ProofEngine, guarded_prove, guarded_verify
from .errors import (
    ConflictingTransmission,
    CorruptArtifact,
    CorruptChunk,
    HashUnavailableError,
    IncompleteAfterTimeout,
    InvalidEncoding,
    InvalidPredicate,
    InvalidSecret,
    MalformedChunk,
    PayloadTooLarge,
    ProvingFailure,
    UnsatisfiedPredicate,
    VerificationFailure,
    ZkqrError,
)
from .predicates import CommitmentThreshold, DomainNullifier, PredicateKind, PredicateSpec, predicate_from_dict
from .prover import ProverOutputs, ProverService
from .reassembler import ChunkSet, Reassembler, ReassemblyState, ReassemblyStatus
from .runtime import ZkqrRuntime, create_config, create_engine
from .verifier import Verdict, VerdictReport, VerifierService, verify
from .witness import BalanceSecret, NullifierSecret, Witness, assign

__all__ = [
    "Chunk",
    "broadcast_schedule",
    "parse_chunk",
    "split",
    "Circuit",
    "CircuitBuilder",
    "Gate",
    "GateOp",
    "Wire",
    "build",
    "ProofArtifact",
    "decode_text",
    "deserialize",
    "encode_text",
    "serialize",
    "BalanceConfig",
    "EngineConfig",
    "GlobalConfig",
    "TransportConfig",
    "FIELD_MODULUS",
    "MAX_SECRET",
    "commit",
    "derive_nullifier",
    "digest_to_field",
    "poseidon_hash_elements",
    "AttestingProofEngine",
    "CommandProofEngine",
    "ProofEngine",
    "guarded_prove",
    "guarded_verify",
    "ConflictingTransmission",
    "CorruptArtifact",
    "CorruptChunk",
    "HashUnavailableError",
    "IncompleteAfterTimeout",
    "InvalidEncoding",
    "InvalidPredicate",
    "InvalidSecret",
    "MalformedChunk",
    "PayloadTooLarge",
    "ProvingFailure",
    "UnsatisfiedPredicate",
    "VerificationFailure",
    "ZkqrError",
    "CommitmentThreshold",
    "DomainNullifier",
    "PredicateKind",
    "PredicateSpec",
    "predicate_from_dict",
    "ProverOutputs",
    "ProverService",
    "ChunkSet",
    "Reassembler",
    "ReassemblyState",
    "ReassemblyStatus",
    "ZkqrRuntime",
    "create_config",
    "create_engine",
    "Verdict",
    "VerdictReport",
    "VerifierService",
    "verify",
    "BalanceSecret",
    "NullifierSecret",
    "Witness",
    "assign",
]
