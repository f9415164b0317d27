"""
claimpay/core/crypto.py

secp256k1 Cryptographic Layer

Key contracts:
    public_key              : @property → 33-byte compressed point
    public_key_hex          : @property → 66-char lowercase hex (NO parentheses)
    sign_digest(digest)     : 32 bytes → 65-byte recoverable signature r || s || v
    sign_claim(claim_id)    : sign_digest(claim_digest(claim_id))
    recover_compressed(...) : @staticmethod — signature + digest → 33-byte key or None

CRITICAL:
    recover_compressed() NEVER raises. Every malformed input (wrong length,
    recovery id out of range, r/s not on the curve) comes back as None.
    The contract maps None to InvalidSignature. A crash here would turn a bad
    signature into a failed call instead of a clean rejection.

Signing and recovery use coincurve (libsecp256k1). Key files are PEM PKCS8,
written and read through cryptography.
"""

from pathlib import Path
from typing import Optional

from coincurve import PrivateKey, PublicKey
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    load_pem_private_key,
)

from claimpay.core.codec import DIGEST_SIZE, claim_digest
from claimpay.core.exceptions import KeyFileError, ValidationError
from claimpay.core.models import PUBLIC_KEY_SIZE, SIGNATURE_SIZE


_SECRET_SIZE = 32

# Ethereum-style v values. The host runtime subtracts 27 before parsing.
_LEGACY_RECOVERY_ID_OFFSET = 27
_MAX_RECOVERY_ID           = 3


def normalize_recovery_id(signature: bytes) -> bytes:
    """Map a trailing v of 27..30 onto 0..3. Other values pass through unchanged."""
    v = signature[-1]
    if v >= _LEGACY_RECOVERY_ID_OFFSET:
        return bytes(signature[:-1]) + bytes([v - _LEGACY_RECOVERY_ID_OFFSET])
    return bytes(signature)


class Secp256k1KeyManager:
    """
    Client-side secp256k1 key manager.

    Public surface:
        Secp256k1KeyManager.generate()                          → new random key
        Secp256k1KeyManager.from_file(path)                     → load PEM private key
        Secp256k1KeyManager.from_private_bytes(secret)          → load from raw 32-byte secret
        Secp256k1KeyManager.recover_compressed(sig, digest)     → @staticmethod, no instance needed

        key.public_key              (@property) → 33 bytes
        key.public_key_hex          (@property) → 66-char lowercase hex
        key.sign_digest(digest)                 → 65 bytes
        key.sign_claim(claim_id)                → 65 bytes
        key.save(path)                          → write PEM private key
    """

    def __init__(self, private_key: PrivateKey) -> None:
        self._private_key: PrivateKey = private_key
        self._public_key:  bytes      = private_key.public_key.format(compressed=True)

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def generate(cls) -> "Secp256k1KeyManager":
        """Generate a new random secp256k1 key pair."""
        return cls(PrivateKey())

    @classmethod
    def from_private_bytes(cls, secret: bytes) -> "Secp256k1KeyManager":
        """
        Load a key from a raw 32-byte secret.
        Raises ValidationError if the secret is the wrong size or out of range.
        """
        if len(secret) != _SECRET_SIZE:
            raise ValidationError(
                f"secp256k1 secret must be {_SECRET_SIZE} bytes, got {len(secret)}"
            )
        try:
            return cls(PrivateKey(bytes(secret)))
        except ValueError as exc:
            raise ValidationError(f"invalid secp256k1 secret: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> "Secp256k1KeyManager":
        """
        Load a secp256k1 private key from a PEM file.
        Raises FileNotFoundError if path does not exist.
        Raises KeyFileError if the file is not a secp256k1 PEM key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        try:
            private_key = load_pem_private_key(path.read_bytes(), password=None)
        except (ValueError, TypeError) as exc:
            raise KeyFileError(
                f"Failed to load secp256k1 key from {path}: {exc}"
            ) from exc
        if not isinstance(private_key, ec.EllipticCurvePrivateKey) or not isinstance(
            private_key.curve, ec.SECP256K1
        ):
            raise KeyFileError(f"Key file {path} does not contain a secp256k1 private key")
        secret = private_key.private_numbers().private_value.to_bytes(_SECRET_SIZE, "big")
        return cls(PrivateKey(secret))

    # ── Public Key ────────────────────────────────────────────

    @property
    def public_key(self) -> bytes:
        """33-byte compressed public key. This is what create() binds."""
        return self._public_key

    @property
    def public_key_hex(self) -> str:
        return self._public_key.hex()

    # ── Signing ───────────────────────────────────────────────

    def sign_digest(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte digest. Returns 65 bytes: r (32) || s (32) || v (1), v in 0..3.
        The digest is signed as-is, no further hashing.
        """
        if len(digest) != DIGEST_SIZE:
            raise ValidationError(
                f"digest must be {DIGEST_SIZE} bytes, got {len(digest)}"
            )
        return self._private_key.sign_recoverable(bytes(digest), hasher=None)

    def sign_claim(self, claim_id: str) -> bytes:
        """Produce the signature that redeems claim_id against this key."""
        return self.sign_digest(claim_digest(claim_id))

    # ── Recovery — STATIC ─────────────────────────────────────

    @staticmethod
    def recover_compressed(
        signature:          bytes,
        digest:             bytes,
        strict_recovery_id: bool = False,
    ) -> Optional[bytes]:
        """
        Recover the signer's compressed public key from a recoverable signature.

        Args:
            signature:          65 bytes, r || s || v.
            digest:             32-byte message digest that was signed.
            strict_recovery_id: When False, v of 27..30 is accepted as 0..3.

        Returns:
            33-byte compressed public key, or None for ANY failure. Never raises.
        """
        try:
            if len(signature) != SIGNATURE_SIZE or len(digest) != DIGEST_SIZE:
                return None
            if not strict_recovery_id:
                signature = normalize_recovery_id(signature)
            if signature[-1] > _MAX_RECOVERY_ID:
                return None
            recovered = PublicKey.from_signature_and_message(
                bytes(signature), bytes(digest), hasher=None
            )
            public_key = recovered.format(compressed=True)
            if len(public_key) != PUBLIC_KEY_SIZE:
                return None
            return public_key
        except Exception:
            return None

    # ── Persistence ───────────────────────────────────────────

    def save(self, path: Path) -> None:
        """
        Write the private key to disk as a PEM PKCS8 file.
        Creates parent directories if needed.
        Raises KeyFileError on write failure.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            key = ec.derive_private_key(
                int.from_bytes(self._private_key.secret, "big"), ec.SECP256K1()
            )
            pem = key.private_bytes(
                encoding=             Encoding.PEM,
                format=               PrivateFormat.PKCS8,
                encryption_algorithm= NoEncryption(),
            )
            path.write_bytes(pem)
        except OSError as exc:
            raise KeyFileError(
                f"Failed to save secp256k1 key to {path}: {exc}"
            ) from exc

    def __repr__(self) -> str:
        return f"Secp256k1KeyManager(public_key_hex={self.public_key_hex[:16]}...)"
