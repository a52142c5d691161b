"""Configuration dataclasses for zkqr."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict

from .chunker import DEFAULT_CHUNK_PAYLOAD_LEN, MAX_CHUNKS, MAX_FRAME_LEN
from .predicates import CommitmentThreshold


@dataclass(slots=True)
class TransportConfig:
    max_chunk_payload_len: int = DEFAULT_CHUNK_PAYLOAD_LEN
    max_chunks: int = MAX_CHUNKS
    max_frame_len: int = MAX_FRAME_LEN
    broadcast_cycles: int = 1

    def __post_init__(self) -> None:
        if self.max_chunk_payload_len < 1:
            raise ValueError("max_chunk_payload_len must be at least 1")
        if self.max_chunk_payload_len > self.max_frame_len:
            raise ValueError("max_chunk_payload_len cannot exceed max_frame_len")


@dataclass(slots=True)
class EngineConfig:
    backend: str = "attest"
    signature_scheme: str = "ecdsa-p256"
    signing_key_hex: str | None = None
    signing_pubkey_hex: str | None = None
    prover_cmd: str | None = None
    verifier_cmd: str | None = None

    @property
    def signing_key(self) -> bytes | None:
        return bytes.fromhex(self.signing_key_hex) if self.signing_key_hex else None

    @property
    def signing_pubkey(self) -> bytes | None:
        return bytes.fromhex(self.signing_pubkey_hex) if self.signing_pubkey_hex else None


@dataclass(slots=True)
class BalanceConfig:
    threshold: int = 10_000
    range_bits: int = 32

    def predicate(self) -> CommitmentThreshold:
        return CommitmentThreshold(threshold=self.threshold, range_bits=self.range_bits)


@dataclass(slots=True)
class GlobalConfig:
    transport: TransportConfig = field(default_factory=TransportConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    balance: BalanceConfig = field(default_factory=BalanceConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def dump(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(self.to_dict(), handle, indent=2)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GlobalConfig":
        return cls(
            transport=TransportConfig(**raw.get("transport", {})),
            engine=EngineConfig(**raw.get("engine", {})),
            balance=BalanceConfig(**raw.get("balance", {})),
        )

    @classmethod
    def load(cls, path: Path) -> "GlobalConfig":
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        return cls.from_dict(raw)
