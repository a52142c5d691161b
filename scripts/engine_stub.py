#!/usr/bin/env python3
"""Placeholder external prover/verifier executable for CommandProofEngine."""

from __future__ import annotations

import hashlib
import json
import os
import sys
from pathlib import Path


def _load_json(path: Path):
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _binding(circuit: dict, public: list) -> bytes:
    digest = hashlib.sha256()
    digest.update(json.dumps(circuit, sort_keys=True).encode("utf-8"))
    digest.update(json.dumps(public).encode("utf-8"))
    return digest.digest()


def prove(circuit_path: Path, witness_path: Path, public_path: Path, proof_path: Path) -> None:
    circuit = _load_json(circuit_path)
    witness = _load_json(witness_path)
    public = _load_json(public_path)
    for slot, value in zip(circuit["public"], public):
        if witness.get(str(slot)) != value:
            raise RuntimeError(f"Witness disagrees with public input at wire {slot}")
    proof_path.parent.mkdir(parents=True, exist_ok=True)
    proof_path.write_bytes(_binding(circuit, public))
    print(f"engine_stub: wrote proof to {proof_path}")


def verify(circuit_path: Path, public_path: Path, proof_path: Path) -> None:
    if not proof_path.exists():
        raise FileNotFoundError(f"Proof missing: {proof_path}")
    expected = _binding(_load_json(circuit_path), _load_json(public_path))
    if proof_path.read_bytes() != expected:
        raise RuntimeError("Stub proof does not match circuit and public inputs")
    print("engine_stub: verification passed (stub)")


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in {"prove", "verify"}:
        raise SystemExit("Usage: engine_stub.py [prove|verify]")
    required = ["ZKQR_CIRCUIT", "ZKQR_PUBLIC", "ZKQR_PROOF"]
    if sys.argv[1] == "prove":
        required.append("ZKQR_WITNESS")
    missing = [name for name in required if not os.environ.get(name)]
    if missing:
        raise SystemExit(f"Missing env vars: {', '.join(missing)}")
    circuit = Path(os.environ["ZKQR_CIRCUIT"])
    public = Path(os.environ["ZKQR_PUBLIC"])
    proof = Path(os.environ["ZKQR_PROOF"])
    if sys.argv[1] == "prove":
        prove(circuit, Path(os.environ["ZKQR_WITNESS"]), public, proof)
    else:
        verify(circuit, public, proof)


if __name__ == "__main__":
    main()
