"""Versioned predicate specifications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from .crypto import FIELD_MODULUS, MAX_SECRET
from .errors import InvalidPredicate

MAX_RANGE_BITS = 64


class PredicateKind(str, Enum):
    COMMITMENT_THRESHOLD = "commitment-threshold"
    DOMAIN_NULLIFIER = "domain-nullifier"


@dataclass(frozen=True, slots=True)
class CommitmentThreshold:
    """Prove ``hash(balance) == commitment`` and ``balance >= threshold``.

    ``balance - threshold`` is decomposed into ``range_bits`` bits. Secrets are
    bounded by ``MAX_SECRET`` (2**64 - 1) and the field is ~2**251, so a
    balance below the threshold wraps to a value far above ``2**range_bits``
    and can never pass the decomposition.
    """

    threshold: int = 10_000
    range_bits: int = 32
    version: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise InvalidPredicate("threshold must be an integer")
        if not (0 <= self.threshold <= MAX_SECRET):
            raise InvalidPredicate(f"threshold must be in [0, {MAX_SECRET}]")
        if isinstance(self.range_bits, bool) or not isinstance(self.range_bits, int):
            raise InvalidPredicate("range_bits must be an integer")
        if not (1 <= self.range_bits <= MAX_RANGE_BITS):
            raise InvalidPredicate(f"range_bits must be in [1, {MAX_RANGE_BITS}]")
        if MAX_SECRET + 2**self.range_bits >= FIELD_MODULUS:
            raise InvalidPredicate("range_bits too wide for the field")
        if self.version != 1:
            raise InvalidPredicate(f"Unsupported commitment-threshold version: {self.version}")

    @property
    def kind(self) -> PredicateKind:
        return PredicateKind.COMMITMENT_THRESHOLD

    @property
    def tag(self) -> str:
        return f"{self.kind.value}/v{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "version": self.version,
            "threshold": self.threshold,
            "range_bits": self.range_bits,
        }


@dataclass(frozen=True, slots=True)
class DomainNullifier:
    """Prove knowledge of a secret bound to a (domain, challenge) pair."""

    version: int = 1

    def __post_init__(self) -> None:
        if self.version != 1:
            raise InvalidPredicate(f"Unsupported domain-nullifier version: {self.version}")

    @property
    def kind(self) -> PredicateKind:
        return PredicateKind.DOMAIN_NULLIFIER

    @property
    def tag(self) -> str:
        return f"{self.kind.value}/v{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "version": self.version}


PredicateSpec = Union[CommitmentThreshold, DomainNullifier]


def predicate_from_dict(raw: Dict[str, Any]) -> PredicateSpec:
    try:
        kind = PredicateKind(raw.get("kind"))
    except ValueError as exc:
        raise InvalidPredicate(f"Unknown predicate kind: {raw.get('kind')!r}") from exc
    version = raw.get("version", 1)
    if kind is PredicateKind.COMMITMENT_THRESHOLD:
        return CommitmentThreshold(
            threshold=raw.get("threshold", 10_000),
            range_bits=raw.get("range_bits", 32),
            version=version,
        )
    return DomainNullifier(version=version)
