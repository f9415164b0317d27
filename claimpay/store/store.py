"""
Claim store interface and the in-memory stand-in.

The store is the sole source of truth for claim existence and state.
There is no delete: redeemed claims stay as the permanent audit record.
"""

from typing import Dict, Iterator, Optional, Tuple

from claimpay.core.models import Claim


class ClaimStore:
    """
    Mapping from claim id to Claim.

    Subclasses implement get(), put() and items(). A put() is all-or-nothing:
    either the new record is visible afterwards or the call raised and the
    previous record is still in place.
    """

    def get(self, claim_id: str) -> Optional[Claim]:
        raise NotImplementedError

    def put(self, claim_id: str, claim: Claim) -> None:
        raise NotImplementedError

    def items(self) -> Iterator[Tuple[str, Claim]]:
        raise NotImplementedError

    def exists(self, claim_id: str) -> bool:
        return self.get(claim_id) is not None

    def __contains__(self, claim_id: str) -> bool:
        return self.exists(claim_id)

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    def total_unredeemed(self) -> int:
        """Sum of deposits still held for unredeemed claims."""
        return sum(claim.value for _, claim in self.items() if not claim.redeemed)

    def get_stats(self) -> dict:
        """Claim counts and locked value."""
        total    = 0
        redeemed = 0
        for _, claim in self.items():
            total += 1
            if claim.redeemed:
                redeemed += 1
        return {
            "total_claims":    total,
            "redeemed_claims": redeemed,
            "open_claims":     total - redeemed,
            "locked_value":    self.total_unredeemed(),
        }


class InMemoryClaimStore(ClaimStore):
    """Dict-backed store. Nothing survives the process."""

    def __init__(self) -> None:
        self._claims: Dict[str, Claim] = {}

    def get(self, claim_id: str) -> Optional[Claim]:
        return self._claims.get(claim_id)

    def put(self, claim_id: str, claim: Claim) -> None:
        self._claims[claim_id] = claim

    def items(self) -> Iterator[Tuple[str, Claim]]:
        return iter(list(self._claims.items()))

    def __len__(self) -> int:
        return len(self._claims)

    def __repr__(self) -> str:
        return f"InMemoryClaimStore(claims={len(self._claims)})"
