"""Exception types raised by the zkqr core."""

from __future__ import annotations

from typing import Iterable, Tuple


class ZkqrError(Exception):
    """Base class for every error raised by zkqr."""


class InvalidPredicate(ZkqrError, ValueError):
    """Raised when predicate parameters are malformed."""


class InvalidSecret(ZkqrError, ValueError):
    """Raised when a secret value cannot be represented in the field."""


class UnsatisfiedPredicate(InvalidSecret):
    """Raised when the secret does not satisfy the predicate's range check."""


class HashUnavailableError(ZkqrError, RuntimeError):
    """Raised when poseidon bindings are not installed."""


class ProvingFailure(ZkqrError):
    """Raised when the proof engine cannot produce an artifact."""


class VerificationFailure(ZkqrError):
    """Raised when the proof engine rejects an artifact."""


class CorruptArtifact(ZkqrError):
    """Raised when serialized artifact bytes cannot be decoded."""


class InvalidEncoding(ZkqrError):
    """Raised when text is not valid radix-64."""


class MalformedChunk(ZkqrError):
    """Raised when a frame does not follow the chunk wire format."""


class PayloadTooLarge(ZkqrError):
    """Raised when a payload needs more frames than the transport allows."""


class CorruptChunk(ZkqrError):
    def __init__(self, index: int, expected: str, actual: str) -> None:
        super().__init__(f"Chunk {index} checksum mismatch: declared {expected}, computed {actual}")
        self.index = index
        self.expected = expected
        self.actual = actual


class ConflictingTransmission(ZkqrError):
    def __init__(self, index: int, total_chunks: int) -> None:
        super().__init__(f"Chunk {index}/{total_chunks} arrived twice with different payloads")
        self.index = index
        self.total_chunks = total_chunks


class IncompleteAfterTimeout(ZkqrError):
    def __init__(self, total_chunks: int, missing: Iterable[int]) -> None:
        self.total_chunks = total_chunks
        self.missing: Tuple[int, ...] = tuple(missing)
        super().__init__(
            f"Transmission of {total_chunks} chunks abandoned with {len(self.missing)} missing: "
            f"{list(self.missing)}"
        )
