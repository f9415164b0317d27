"""
claimpay/__init__.py

ClaimPay: Bearer claims redeemable by secp256k1 signature

A payer deposits value under a claim id bound to a compressed public key.
Whoever presents a recoverable signature over BLAKE2b-256(SCALE(claim_id))
that recovers that key collects the deposit, exactly once.
"""

__version__ = "0.1.0"

from claimpay.core.models import (
    Claim,
    ClaimError,
    ClaimResult,
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
)
from claimpay.core.codec import claim_digest
from claimpay.core.crypto import Secp256k1KeyManager
from claimpay.core.exceptions import (
    ClaimPayError,
    NonPayableError,
    StoreError,
    TransferError,
    ValidationError,
)
from claimpay.contract import ClaimContract
from claimpay.runtime import CallContext, InMemoryCustody
from claimpay.store import InMemoryClaimStore, JsonlClaimStore

__all__ = [
    # Core types
    "Claim",
    "ClaimContract",
    "ClaimResult",
    "CallContext",
    "Secp256k1KeyManager",
    # Stores and custody
    "InMemoryClaimStore",
    "JsonlClaimStore",
    "InMemoryCustody",
    # Errors
    "ClaimError",
    "ClaimPayError",
    "ValidationError",
    "NonPayableError",
    "StoreError",
    "TransferError",
    # Helpers
    "claim_digest",
    # Constants
    "PUBLIC_KEY_SIZE",
    "SIGNATURE_SIZE",
]
