"""
ClaimPay Contract

A payer deposits value under a claim id bound to a public key. Whoever
presents a signature over the claim id that recovers that key collects the
deposit, exactly once.

Critical Invariants:
- public_key and value never change after create
- redeemed goes False → True at most once
- value leaves custody iff the claim becomes redeemed
- custody balance == sum of unredeemed deposits
"""

from claimpay.contract.lifecycle import ClaimContract

__all__ = ["ClaimContract"]
