"""Field helpers and the Poseidon hash shared by circuits and witnesses."""

from __future__ import annotations

import hashlib
from typing import Sequence

from .errors import HashUnavailableError, InvalidSecret

# Stark prime, the field poseidon-py operates over.
FIELD_MODULUS = 2**251 + 17 * 2**192 + 1
FIELD_BYTES = 32

# Declared application domain for secret integers (u64 balances).
MAX_SECRET = 2**64 - 1


def to_field(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidSecret(f"Field elements must be integers, got {type(value).__name__}")
    if not (0 <= value < FIELD_MODULUS):
        raise InvalidSecret("Value is outside the field")
    return value


def digest_to_field(text: str) -> int:
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return int.from_bytes(digest, "big") % FIELD_MODULUS


def poseidon_hash_elements(elements: Sequence[int]) -> int:
    try:
        from poseidon_py.poseidon_hash import poseidon_hash_many  # type: ignore
    except ModuleNotFoundError as exc:  # pragma: no cover
        raise HashUnavailableError(
            "poseidon-py is required for Poseidon hashing. Install poseidon-py."
        ) from exc

    if not elements:
        raise ValueError("poseidon_hash_elements requires a non-empty sequence")
    return int(poseidon_hash_many([to_field(elem) for elem in elements])) % FIELD_MODULUS


def commit(value: int) -> int:
    return poseidon_hash_elements([value])


def derive_nullifier(secret_digest: int, domain_digest: int, challenge_digest: int) -> int:
    return poseidon_hash_elements([secret_digest, domain_digest, challenge_digest])


def field_to_bytes(value: int) -> bytes:
    return value.to_bytes(FIELD_BYTES, "big")
