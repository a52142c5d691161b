from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import BalanceConfig, EngineConfig, GlobalConfig
from .engine import AttestingProofEngine, CommandProofEngine, ProofEngine
from .prover import ProverService
from .reassembler import Reassembler
from .signing import create_signer, generate_ecdsa_keypair, generate_hmac_key
from .verifier import VerifierService


@dataclass
class SetupArtifacts:
    config_path: Path
    public_key_hex: str | None


def create_config(
    output_path: Path,
    *,
    signature_scheme: str = "ecdsa-p256",
    threshold: int = 10_000,
    range_bits: int = 32,
    prover_cmd: str | None = None,
    verifier_cmd: str | None = None,
) -> SetupArtifacts:
    scheme = signature_scheme.lower()
    if scheme in {"hmac", "hmac-sha256"}:
        signing_key, signing_pubkey = generate_hmac_key(), None
    elif scheme in {"ecdsa", "ecdsa-p256"}:
        signing_key, signing_pubkey = generate_ecdsa_keypair()
    else:
        raise ValueError(f"Unsupported signature scheme: {signature_scheme}")
    cfg = GlobalConfig(
        engine=EngineConfig(
            backend="command" if prover_cmd and verifier_cmd else "attest",
            signature_scheme=signature_scheme,
            signing_key_hex=signing_key.hex(),
            signing_pubkey_hex=signing_pubkey.hex() if signing_pubkey else None,
            prover_cmd=prover_cmd,
            verifier_cmd=verifier_cmd,
        ),
        balance=BalanceConfig(threshold=threshold, range_bits=range_bits),
    )
    cfg.balance.predicate()
    cfg.dump(output_path)
    return SetupArtifacts(config_path=output_path, public_key_hex=cfg.engine.signing_pubkey_hex)


def create_engine(config: EngineConfig, logger: logging.Logger | None = None) -> ProofEngine:
    backend = config.backend.lower()
    if backend == "command":
        if not config.prover_cmd or not config.verifier_cmd:
            raise ValueError("command backend requires prover_cmd and verifier_cmd")
        return CommandProofEngine(config.prover_cmd, config.verifier_cmd, logger)
    if backend == "attest":
        signer = create_signer(config.signature_scheme, config.signing_key, config.signing_pubkey)
        return AttestingProofEngine(signer, logger)
    raise ValueError(f"Unsupported proof backend: {config.backend}")


class ZkqrRuntime:
    def __init__(self, config: GlobalConfig, logger: logging.Logger | None = None):
        self.config = config
        self.log = logger or logging.getLogger("zkqr")
        self.engine = create_engine(config.engine, self.log)

    def prover(self) -> ProverService:
        transport = self.config.transport
        return ProverService(
            self.engine,
            max_chunk_payload_len=transport.max_chunk_payload_len,
            max_chunks=transport.max_chunks,
            logger=self.log,
        )

    def verifier(self) -> VerifierService:
        return VerifierService(self.engine, self.log)

    def reassembler(self) -> Reassembler:
        transport = self.config.transport
        return Reassembler(
            max_chunks=transport.max_chunks,
            max_frame_len=transport.max_frame_len,
            logger=self.log,
        )
