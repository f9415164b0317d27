"""
claimpay/core/models.py

Claim Data Model

═══════════════════════════════════════════════════════════════════
RECORD CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1 — Claim record
    public_key : 33 bytes, compressed secp256k1 point   immutable
    value      : u128, deposit at creation              immutable
    redeemed   : bool                                   write-once False → True

CONTRACT 2 — Persisted layout (SCALE, field order is part of the format)
    Vec<u8> public_key || bool redeemed || u128 value

CONTRACT 3 — Outcomes
    create / redeem return ClaimResult. They never raise for a claim outcome.
    The five ClaimError codes are stable and caller-visible.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from claimpay.core.codec import (
    decode_bool,
    decode_bytes,
    decode_u128,
    encode_bool,
    encode_bytes,
    encode_u128,
)
from claimpay.core.exceptions import CodecError


PUBLIC_KEY_SIZE = 33
SIGNATURE_SIZE  = 65


# ─────────────────────────────────────────────────────────────
# Error Taxonomy
# ─────────────────────────────────────────────────────────────

class ClaimError(Enum):
    """
    Stable failure outcomes of create() and redeem().

    Declaration order is the SCALE variant index. Do not reorder.
    """
    ALREADY_EXISTS    = "AlreadyExists"
    NOT_FOUND         = "NotFound"
    INVALID_SIGNATURE = "InvalidSignature"
    ALREADY_REDEEMED  = "AlreadyRedeemed"
    TRANSFER_FAILED   = "TransferFailed"

    @property
    def category(self) -> str:
        if self is ClaimError.INVALID_SIGNATURE:
            return "authentication"
        if self is ClaimError.TRANSFER_FAILED:
            return "external"
        return "precondition"

    @property
    def retriable(self) -> bool:
        """Only a failed transfer leaves the claim untouched and worth retrying."""
        return self is ClaimError.TRANSFER_FAILED


@dataclass(frozen=True)
class ClaimResult:
    """
    Outcome of a lifecycle call.

    Returned, not raised, so callers decide between hard fail and retry.
    bool(result) is True iff the call succeeded.
    """
    claim_id: str
    error:    Optional[ClaimError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self.ok:
            return f"ClaimResult(OK, claim_id={self.claim_id!r})"
        return f"ClaimResult({self.error.value}, claim_id={self.claim_id!r})"


# ─────────────────────────────────────────────────────────────
# Claim
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Claim:
    """A deposit bound to a public key, redeemable once."""

    public_key: bytes
    value:      int
    redeemed:   bool = False

    def mark_redeemed(self) -> "Claim":
        """Return the redeemed copy. The original record is never mutated."""
        return replace(self, redeemed=True)

    # ── SCALE ─────────────────────────────────────────────────

    def to_scale(self) -> bytes:
        return (
            encode_bytes(self.public_key)
            + encode_bool(self.redeemed)
            + encode_u128(self.value)
        )

    @classmethod
    def from_scale(cls, data: bytes) -> "Claim":
        """
        Decode a persisted record. Trailing bytes are a format violation.
        """
        public_key, offset = decode_bytes(data, 0)
        redeemed, offset   = decode_bool(data, offset)
        value, offset      = decode_u128(data, offset)
        if offset != len(data):
            raise CodecError(
                f"claim record has {len(data) - offset} trailing byte(s)"
            )
        return cls(public_key=public_key, value=value, redeemed=redeemed)

    # ── Display ───────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "public_key": self.public_key.hex(),
            "value":      self.value,
            "redeemed":   self.redeemed,
        }
