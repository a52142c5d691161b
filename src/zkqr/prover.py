from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .chunker import DEFAULT_CHUNK_PAYLOAD_LEN, MAX_CHUNKS, Chunk, split
from .circuit import build
from .codec import ProofArtifact, encode_text, serialize
from .engine import ProofEngine, guarded_prove
from .predicates import PredicateSpec
from .witness import SecretValues, assign


@dataclass
class ProverOutputs:
    artifact: ProofArtifact
    text: str
    chunks: List[Chunk]

    @property
    def frames(self) -> List[str]:
        return [chunk.to_wire() for chunk in self.chunks]


class ProverService:
    def __init__(
        self,
        engine: ProofEngine,
        *,
        max_chunk_payload_len: int = DEFAULT_CHUNK_PAYLOAD_LEN,
        max_chunks: int = MAX_CHUNKS,
        logger: logging.Logger | None = None,
    ):
        self.engine = engine
        self.max_chunk_payload_len = max_chunk_payload_len
        self.max_chunks = max_chunks
        self.log = logger or logging.getLogger(__name__)

    def prove(self, spec: PredicateSpec, secrets: SecretValues) -> ProofArtifact:
        circuit = build(spec)
        witness = assign(circuit, secrets)
        self.log.info("proving %s (%d gates)", spec.tag, len(circuit.gates))
        return guarded_prove(self.engine, circuit, witness, self.log)

    def generate(self, spec: PredicateSpec, secrets: SecretValues) -> ProverOutputs:
        artifact = self.prove(spec, secrets)
        text = encode_text(serialize(artifact))
        chunks = split(text, self.max_chunk_payload_len, max_chunks=self.max_chunks)
        self.log.info("payload %d characters in %d chunks", len(text), len(chunks))
        return ProverOutputs(artifact=artifact, text=text, chunks=chunks)
