from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec


class Signer(Protocol):
    scheme: str

    def sign(self, message: bytes) -> bytes: ...

    def verify(self, message: bytes, signature: bytes) -> bool: ...

    @property
    def public_key_hex(self) -> str | None: ...


def generate_hmac_key(num_bytes: int = 32) -> bytes:
    if num_bytes <= 0:
        raise ValueError("HMAC key length must be positive.")
    return secrets.token_bytes(num_bytes)


def generate_ecdsa_keypair() -> Tuple[bytes, bytes]:
    private_key = ec.generate_private_key(ec.SECP256R1())
    priv_der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    pub_der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return priv_der, pub_der


@dataclass
class HMACSigner:
    key: bytes
    scheme: str = "hmac-sha256"

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Signing key must be non-empty for HMAC signer.")

    @property
    def public_key_hex(self) -> str | None:
        return None

    def sign(self, message: bytes) -> bytes:
        return hmac.new(self.key, message, hashlib.sha256).digest()

    def verify(self, message: bytes, signature: bytes) -> bool:
        if not signature:
            return False
        expected = hmac.new(self.key, message, hashlib.sha256).digest()
        return hmac.compare_digest(expected, signature)


@dataclass
class ECDSASigner:
    private_key_der: Optional[bytes]
    public_key_der: bytes | None
    scheme: str = "ecdsa-p256"

    def __post_init__(self) -> None:
        if self.public_key_der is None and self.private_key_der is None:
            raise ValueError("ECDSA signer requires at least a public key.")
        self._priv = None
        self._pub = None

    def _load_private(self):
        if self._priv is None:
            if self.private_key_der is None:
                raise ValueError("ECDSA signer has no private key for signing.")
            self._priv = serialization.load_der_private_key(self.private_key_der, password=None)
        return self._priv

    def _load_public(self):
        if self._pub is None:
            if self.public_key_der is not None:
                self._pub = serialization.load_der_public_key(self.public_key_der)
            else:
                self._pub = self._load_private().public_key()
        return self._pub

    @property
    def public_key_hex(self) -> str | None:
        if self.public_key_der is None and self.private_key_der is not None:
            self.public_key_der = self._load_private().public_key().public_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        return self.public_key_der.hex() if self.public_key_der else None

    def sign(self, message: bytes) -> bytes:
        private_key = self._load_private()
        return private_key.sign(message, ec.ECDSA(hashes.SHA256()))

    def verify(self, message: bytes, signature: bytes) -> bool:
        if not signature:
            return False
        public_key = self._load_public()
        try:
            public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True


def create_signer(scheme: str, private_key: bytes | None, public_key: bytes | None) -> Signer:
    normalized = scheme.lower()
    if normalized in {"hmac", "hmac-sha256"}:
        if private_key is None:
            raise ValueError("HMAC signer requires a secret key.")
        return HMACSigner(key=private_key)
    if normalized in {"ecdsa", "ecdsa-p256"}:
        if public_key is None and private_key is None:
            raise ValueError("ECDSA signer requires at least a public key.")
        return ECDSASigner(private_key_der=private_key, public_key_der=public_key)
    raise ValueError(f"Unsupported signature scheme: {scheme}")
