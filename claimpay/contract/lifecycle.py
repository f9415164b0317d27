"""
Claim lifecycle: create and redeem.

redeem() MUST, in this exact order:
  1. Look up the claim                         → NotFound
  2. Reject an already redeemed claim          → AlreadyRedeemed
  3. digest = BLAKE2b-256(SCALE(claim_id))
  4. Recover the signer's compressed key       → InvalidSignature on any failure
  5. Compare against the bound key             → InvalidSignature on mismatch
  6. Persist redeemed = True
  7. Transfer the deposit to the caller        → on failure restore the record,
                                                 TransferFailed
Steps 6 and 7 are checks-effects-interactions: the flag is committed before
value leaves custody, so code the recipient runs during the transfer sees the
claim as redeemed.
"""

import logging
import threading
from typing import Optional

from claimpay.core.codec import claim_digest
from claimpay.core.crypto import Secp256k1KeyManager
from claimpay.core.exceptions import NonPayableError, TransferError, ValidationError
from claimpay.core.models import (
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
    Claim,
    ClaimError,
    ClaimResult,
)
from claimpay.runtime.context import CallContext
from claimpay.runtime.custody import Custody, InMemoryCustody
from claimpay.store.store import ClaimStore, InMemoryClaimStore


logger = logging.getLogger(__name__)


def _require_claim_id(claim_id: str) -> None:
    if not isinstance(claim_id, str) or not claim_id:
        raise ValidationError("claim_id must be a non-empty string")
    try:
        claim_id.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(
            "claim_id must be valid UTF-8 text",
            {"position": exc.start},
        ) from exc


def _require_bytes(name: str, value: bytes, size: int) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise ValidationError(
            f"{name} must be bytes, got {type(value).__name__}"
        )
    value = bytes(value)
    if len(value) != size:
        raise ValidationError(
            f"{name} must be exactly {size} bytes",
            {"length": len(value)},
        )
    return value


class ClaimContract:
    """
    Bearer claims redeemable by signature.

    Every call runs under one re-entrant lock, so calls are totally ordered
    and each one completes before the next begins. A call made from inside a
    transfer (same thread) is allowed in and observes the committed flag.
    """

    def __init__(
        self,
        store:              ClaimStore,
        custody:            Custody,
        strict_recovery_id: bool = False,
    ):
        """
        Args:
            store: Claim store. The contract is its only writer.
            custody: Holds deposits and performs payouts.
            strict_recovery_id: Reject v of 27..30 instead of mapping it to 0..3.
        """
        self.store              = store
        self.custody            = custody
        self.strict_recovery_id = strict_recovery_id
        self._lock              = threading.RLock()

    @classmethod
    def new(
        cls,
        store:              Optional[ClaimStore] = None,
        custody:            Optional[Custody]    = None,
        strict_recovery_id: bool                 = False,
    ) -> "ClaimContract":
        """A contract over an empty in-memory store unless one is supplied."""
        return cls(
            store=              store if store is not None else InMemoryClaimStore(),
            custody=            custody if custody is not None else InMemoryCustody(),
            strict_recovery_id= strict_recovery_id,
        )

    # ── Messages ──────────────────────────────────────────────

    def create(
        self,
        ctx:        CallContext,
        claim_id:   str,
        public_key: bytes,
    ) -> ClaimResult:
        """
        Lock ctx.transferred_value under claim_id, redeemable by public_key.

        The key is not checked for curve membership. A claim bound to bytes
        that are not a point can never be redeemed, which locks its value
        but never leaks it.
        """
        _require_claim_id(claim_id)
        public_key = _require_bytes("public_key", public_key, PUBLIC_KEY_SIZE)

        with self._lock:
            if self.store.exists(claim_id):
                logger.info("Create rejected for %r: already exists", claim_id)
                return ClaimResult(claim_id, ClaimError.ALREADY_EXISTS)

            claim = Claim(public_key=public_key, value=ctx.transferred_value)
            self.store.put(claim_id, claim)
            self.custody.receive(claim.value)

            logger.info(
                "Created claim %r: value=%d caller=%s",
                claim_id, claim.value, ctx.caller,
            )
            return ClaimResult(claim_id)

    def redeem(
        self,
        ctx:       CallContext,
        claim_id:  str,
        signature: bytes,
    ) -> ClaimResult:
        """
        Pay the claim's deposit to ctx.caller if signature recovers the bound key.

        Whoever presents the signature is paid, so a relayer can redeem on the
        key holder's behalf. Only TransferFailed leaves the claim redeemable.
        Any other exception from custody restores the claim and propagates.
        """
        _require_claim_id(claim_id)
        signature = _require_bytes("signature", signature, SIGNATURE_SIZE)
        if ctx.transferred_value:
            raise NonPayableError(
                "redeem does not accept value",
                {"transferred_value": ctx.transferred_value},
            )

        with self._lock:
            claim = self.store.get(claim_id)
            if claim is None:
                logger.info("Redeem rejected for %r: not found", claim_id)
                return ClaimResult(claim_id, ClaimError.NOT_FOUND)

            if claim.redeemed:
                logger.info("Redeem rejected for %r: already redeemed", claim_id)
                return ClaimResult(claim_id, ClaimError.ALREADY_REDEEMED)

            if not self._authenticate(claim_id, claim, signature):
                return ClaimResult(claim_id, ClaimError.INVALID_SIGNATURE)

            self.store.put(claim_id, claim.mark_redeemed())
            try:
                self.custody.transfer(ctx.caller, claim.value)
            except TransferError as exc:
                self.store.put(claim_id, claim)
                logger.warning(
                    "Transfer for claim %r to %s failed, claim left open: %s",
                    claim_id, ctx.caller, exc,
                )
                return ClaimResult(claim_id, ClaimError.TRANSFER_FAILED)
            except BaseException:
                self.store.put(claim_id, claim)
                logger.error(
                    "Transfer for claim %r to %s raised, claim left open",
                    claim_id, ctx.caller,
                )
                raise

            logger.info(
                "Redeemed claim %r: value=%d recipient=%s",
                claim_id, claim.value, ctx.caller,
            )
            return ClaimResult(claim_id)

    # ── Queries ───────────────────────────────────────────────

    def get_claim(self, claim_id: str) -> Optional[Claim]:
        """Read-only lookup. Redeemed claims are returned too."""
        with self._lock:
            return self.store.get(claim_id)

    def total_locked(self) -> int:
        """Deposits still owed to unredeemed claims."""
        with self._lock:
            return self.store.total_unredeemed()

    # ── Internals ─────────────────────────────────────────────

    def _authenticate(self, claim_id: str, claim: Claim, signature: bytes) -> bool:
        # Both failure paths surface as the same InvalidSignature outcome.
        digest    = claim_digest(claim_id)
        recovered = Secp256k1KeyManager.recover_compressed(
            signature, digest, strict_recovery_id=self.strict_recovery_id,
        )
        if recovered is None:
            logger.debug("Signature for %r did not recover a public key", claim_id)
            return False
        if recovered != claim.public_key:
            logger.debug("Signature for %r recovered a different public key", claim_id)
            return False
        return True

    def __repr__(self) -> str:
        return f"ClaimContract(store={self.store!r}, custody={self.custody!r})"
