"""Canonical binary serialization and radix-64 text encoding of proof artifacts."""

from __future__ import annotations

import base64
import binascii
import struct
from dataclasses import dataclass
from typing import Tuple

from .crypto import FIELD_BYTES, FIELD_MODULUS, field_to_bytes
from .errors import CorruptArtifact, InvalidEncoding

MAGIC = b"ZKQR"
FORMAT_VERSION = 1

_HEADER = struct.Struct(">4sBH")
_PROOF_LEN = struct.Struct(">I")


@dataclass(frozen=True, slots=True)
class ProofArtifact:
    proof_bytes: bytes
    public_inputs: Tuple[int, ...]


def serialize(artifact: ProofArtifact) -> bytes:
    for value in artifact.public_inputs:
        if not (0 <= value < FIELD_MODULUS):
            raise ValueError("Public input is outside the field")
    parts = [_HEADER.pack(MAGIC, FORMAT_VERSION, len(artifact.public_inputs))]
    parts.extend(field_to_bytes(value) for value in artifact.public_inputs)
    parts.append(_PROOF_LEN.pack(len(artifact.proof_bytes)))
    parts.append(artifact.proof_bytes)
    return b"".join(parts)


def deserialize(data: bytes) -> ProofArtifact:
    if len(data) < _HEADER.size:
        raise CorruptArtifact("Artifact shorter than header")
    magic, version, count = _HEADER.unpack_from(data, 0)
    if magic != MAGIC:
        raise CorruptArtifact(f"Unknown artifact magic {magic!r}")
    if version != FORMAT_VERSION:
        raise CorruptArtifact(f"Unsupported artifact version {version}")
    offset = _HEADER.size
    inputs_end = offset + count * FIELD_BYTES
    if len(data) < inputs_end + _PROOF_LEN.size:
        raise CorruptArtifact("Artifact truncated inside public inputs")
    public_inputs = []
    for start in range(offset, inputs_end, FIELD_BYTES):
        value = int.from_bytes(data[start : start + FIELD_BYTES], "big")
        if value >= FIELD_MODULUS:
            raise CorruptArtifact("Public input is not a canonical field element")
        public_inputs.append(value)
    (proof_len,) = _PROOF_LEN.unpack_from(data, inputs_end)
    proof_start = inputs_end + _PROOF_LEN.size
    if len(data) != proof_start + proof_len:
        raise CorruptArtifact(
            f"Artifact proof length mismatch: declared {proof_len}, available {len(data) - proof_start}"
        )
    return ProofArtifact(proof_bytes=bytes(data[proof_start:]), public_inputs=tuple(public_inputs))


def encode_text(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_text(text: str) -> bytes:
    try:
        data = base64.b64decode(text.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error) as exc:
        raise InvalidEncoding(f"Payload is not valid base64: {exc}") from exc
    if encode_text(data) != text:
        raise InvalidEncoding("Payload is not canonical base64")
    return data
