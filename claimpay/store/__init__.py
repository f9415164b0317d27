"""
ClaimPay Store - durable mapping from claim id to Claim

The store is the source of truth for claim existence and state.
"""

from claimpay.store.journal import GENESIS_HASH, JournalEntry, JsonlClaimStore
from claimpay.store.store import ClaimStore, InMemoryClaimStore

__all__ = [
    "ClaimStore",
    "InMemoryClaimStore",
    "JsonlClaimStore",
    "JournalEntry",
    "GENESIS_HASH",
]
