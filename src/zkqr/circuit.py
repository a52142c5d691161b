"""Deterministic constraint builder shared by prover and verifier."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .crypto import FIELD_MODULUS, poseidon_hash_elements
from .errors import InvalidSecret
from .predicates import CommitmentThreshold, DomainNullifier, PredicateSpec


class WireKind(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"
    INTERNAL = "internal"


class GateOp(str, Enum):
    CONST = "const"
    SUB = "sub"
    HASH = "hash"
    CONNECT = "connect"
    BOOL = "bool"
    PACK = "pack"


@dataclass(frozen=True, slots=True)
class Wire:
    index: int
    name: str
    kind: WireKind


@dataclass(frozen=True, slots=True)
class Gate:
    op: GateOp
    inputs: Tuple[int, ...]
    output: Optional[int] = None
    constant: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "op": self.op.value,
            "inputs": list(self.inputs),
            "output": self.output,
            "constant": self.constant,
        }


@dataclass(frozen=True, slots=True)
class Circuit:
    spec_tag: str
    wires: Tuple[Wire, ...]
    private_slots: Tuple[int, ...]
    public_slots: Tuple[int, ...]
    gates: Tuple[Gate, ...]

    @property
    def public_names(self) -> Tuple[str, ...]:
        return tuple(self.wires[idx].name for idx in self.public_slots)

    @property
    def private_names(self) -> Tuple[str, ...]:
        return tuple(self.wires[idx].name for idx in self.private_slots)

    def wire_index(self, name: str) -> int:
        for wire in self.wires:
            if wire.name == name:
                return wire.index
        raise KeyError(f"Circuit {self.spec_tag} has no wire named {name!r}")

    def public_index(self, name: str) -> int:
        """Position of the named public slot in ``public_inputs``."""
        return self.public_names.index(name)

    def structure(self) -> Dict[str, Any]:
        return {
            "spec": self.spec_tag,
            "wires": [[w.index, w.name, w.kind.value] for w in self.wires],
            "private": list(self.private_slots),
            "public": list(self.public_slots),
            "gates": [gate.to_dict() for gate in self.gates],
        }

    def canonical_bytes(self) -> bytes:
        return json.dumps(self.structure(), sort_keys=True, separators=(",", ":")).encode("utf-8")

    def digest(self) -> bytes:
        return hashlib.sha256(self.canonical_bytes()).digest()

    def unsatisfied(self, values: Mapping[int, int]) -> List[int]:
        """Return the positions of gates the assignment violates."""
        failures: List[int] = []
        for position, gate in enumerate(self.gates):
            try:
                ok = _gate_holds(gate, values)
            except (KeyError, InvalidSecret):
                ok = False
            if not ok:
                failures.append(position)
        return failures


def _gate_holds(gate: Gate, values: Mapping[int, int]) -> bool:
    op = gate.op
    if op is GateOp.CONST:
        return values[gate.output] == gate.constant
    if op is GateOp.SUB:
        a, b = gate.inputs
        return values[gate.output] == (values[a] - values[b]) % FIELD_MODULUS
    if op is GateOp.HASH:
        return values[gate.output] == poseidon_hash_elements([values[i] for i in gate.inputs])
    if op is GateOp.CONNECT:
        a, b = gate.inputs
        return values[a] == values[b]
    if op is GateOp.BOOL:
        bit = values[gate.inputs[0]]
        return bit * (bit - 1) % FIELD_MODULUS == 0
    if op is GateOp.PACK:
        target, *bits = gate.inputs
        packed = sum(values[b] << shift for shift, b in enumerate(bits)) % FIELD_MODULUS
        return packed == values[target]
    raise ValueError(f"Unknown gate op: {op}")


@dataclass
class CircuitBuilder:
    spec_tag: str
    _wires: List[Wire] = field(default_factory=list)
    _private: List[int] = field(default_factory=list)
    _public: List[int] = field(default_factory=list)
    _gates: List[Gate] = field(default_factory=list)

    def _wire(self, name: str, kind: WireKind) -> int:
        index = len(self._wires)
        self._wires.append(Wire(index=index, name=name, kind=kind))
        return index

    def add_private(self, name: str) -> int:
        index = self._wire(name, WireKind.PRIVATE)
        self._private.append(index)
        return index

    def add_public(self, name: str) -> int:
        index = self._wire(name, WireKind.PUBLIC)
        self._public.append(index)
        return index

    def constant(self, name: str, value: int) -> int:
        out = self._wire(name, WireKind.INTERNAL)
        self._gates.append(Gate(GateOp.CONST, (), out, value % FIELD_MODULUS))
        return out

    def sub(self, name: str, a: int, b: int) -> int:
        out = self._wire(name, WireKind.INTERNAL)
        self._gates.append(Gate(GateOp.SUB, (a, b), out))
        return out

    def hash(self, name: str, inputs: List[int]) -> int:
        out = self._wire(name, WireKind.INTERNAL)
        self._gates.append(Gate(GateOp.HASH, tuple(inputs), out))
        return out

    def connect(self, a: int, b: int) -> None:
        self._gates.append(Gate(GateOp.CONNECT, (a, b)))

    def range_check(self, target: int, bits: int) -> List[int]:
        name = self._wires[target].name
        bit_wires = [self._wire(f"{name}.bit{i}", WireKind.INTERNAL) for i in range(bits)]
        self._gates.append(Gate(GateOp.PACK, (target, *bit_wires)))
        for wire in bit_wires:
            self._gates.append(Gate(GateOp.BOOL, (wire,)))
        return bit_wires

    def build(self) -> Circuit:
        return Circuit(
            spec_tag=self.spec_tag,
            wires=tuple(self._wires),
            private_slots=tuple(self._private),
            public_slots=tuple(self._public),
            gates=tuple(self._gates),
        )


def _build_commitment_threshold(spec: CommitmentThreshold) -> Circuit:
    builder = CircuitBuilder(spec.tag)
    balance = builder.add_private("balance")
    commitment = builder.add_public("commitment")
    computed = builder.hash("balance.commit", [balance])
    builder.connect(computed, commitment)
    threshold = builder.constant("threshold", spec.threshold)
    surplus = builder.sub("balance.surplus", balance, threshold)
    builder.range_check(surplus, spec.range_bits)
    return builder.build()


def _build_domain_nullifier(spec: DomainNullifier) -> Circuit:
    builder = CircuitBuilder(spec.tag)
    secret = builder.add_private("secret_digest")
    domain = builder.add_public("domain_digest")
    challenge = builder.add_public("challenge_digest")
    nullifier = builder.add_public("nullifier")
    computed = builder.hash("nullifier.computed", [secret, domain, challenge])
    builder.connect(computed, nullifier)
    return builder.build()


def build(spec: PredicateSpec) -> Circuit:
    if isinstance(spec, CommitmentThreshold):
        return _build_commitment_threshold(spec)
    if isinstance(spec, DomainNullifier):
        return _build_domain_nullifier(spec)
    raise TypeError(f"Unsupported predicate spec: {type(spec).__name__}")
