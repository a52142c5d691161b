"""Witness assignment for built circuits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple, Union

import numpy as np

from .circuit import Circuit, GateOp
from .crypto import (
    FIELD_MODULUS,
    MAX_SECRET,
    commit,
    derive_nullifier,
    digest_to_field,
    poseidon_hash_elements,
    to_field,
)
from .errors import InvalidSecret, UnsatisfiedPredicate
from .predicates import PredicateKind


@dataclass(frozen=True, slots=True)
class BalanceSecret:
    balance: int


@dataclass(frozen=True, slots=True)
class NullifierSecret:
    secret: str
    domain: str
    challenge: str


SecretValues = Union[BalanceSecret, NullifierSecret]


@dataclass(frozen=True, slots=True)
class Witness:
    spec_tag: str
    values: Mapping[int, int]
    public_inputs: Tuple[int, ...]


def value_to_bits(value: int, bits: int) -> List[int]:
    """Little-endian bit decomposition of ``value`` into exactly ``bits`` bits."""
    if value < 0 or value >= 1 << bits:
        raise UnsatisfiedPredicate(f"Value does not fit in {bits} bits")
    width = (bits + 7) // 8
    packed = np.frombuffer(value.to_bytes(width, "little"), dtype=np.uint8)
    unpacked = np.unpackbits(packed, bitorder="little")[:bits]
    return [int(bit) for bit in unpacked]


def _seed_balance(circuit: Circuit, secrets: BalanceSecret) -> Dict[int, int]:
    balance = secrets.balance
    if isinstance(balance, bool) or not isinstance(balance, int):
        raise InvalidSecret("balance must be an integer")
    if not (0 <= balance <= MAX_SECRET):
        raise InvalidSecret(f"balance must be in [0, {MAX_SECRET}]")
    return {
        circuit.wire_index("balance"): balance,
        circuit.wire_index("commitment"): commit(balance),
    }


def _seed_nullifier(circuit: Circuit, secrets: NullifierSecret) -> Dict[int, int]:
    for label in ("secret", "domain", "challenge"):
        if not isinstance(getattr(secrets, label), str):
            raise InvalidSecret(f"{label} must be a string")
    if not secrets.secret:
        raise InvalidSecret("secret must be non-empty")
    secret_digest = digest_to_field(secrets.secret)
    domain_digest = digest_to_field(secrets.domain)
    challenge_digest = digest_to_field(secrets.challenge)
    return {
        circuit.wire_index("secret_digest"): secret_digest,
        circuit.wire_index("domain_digest"): domain_digest,
        circuit.wire_index("challenge_digest"): challenge_digest,
        circuit.wire_index("nullifier"): derive_nullifier(secret_digest, domain_digest, challenge_digest),
    }


def _seed(circuit: Circuit, secrets: SecretValues) -> Dict[int, int]:
    kind = circuit.spec_tag.split("/", 1)[0]
    if kind == PredicateKind.COMMITMENT_THRESHOLD.value and isinstance(secrets, BalanceSecret):
        return _seed_balance(circuit, secrets)
    if kind == PredicateKind.DOMAIN_NULLIFIER.value and isinstance(secrets, NullifierSecret):
        return _seed_nullifier(circuit, secrets)
    raise InvalidSecret(f"{type(secrets).__name__} cannot be assigned to circuit {circuit.spec_tag}")


def assign(circuit: Circuit, secrets: SecretValues) -> Witness:
    values = _seed(circuit, secrets)
    for gate in circuit.gates:
        if gate.op is GateOp.CONST:
            values[gate.output] = gate.constant
        elif gate.op is GateOp.SUB:
            a, b = gate.inputs
            values[gate.output] = (values[a] - values[b]) % FIELD_MODULUS
        elif gate.op is GateOp.HASH:
            values[gate.output] = poseidon_hash_elements([values[i] for i in gate.inputs])
        elif gate.op is GateOp.PACK:
            target, *bit_wires = gate.inputs
            for wire, bit in zip(bit_wires, value_to_bits(values[target], len(bit_wires))):
                values[wire] = bit
    for index in circuit.private_slots + circuit.public_slots:
        to_field(values[index])
    public_inputs = tuple(values[index] for index in circuit.public_slots)
    return Witness(spec_tag=circuit.spec_tag, values=values, public_inputs=public_inputs)
