"""
ClaimPay runtime - the host services a contract call depends on
"""

from claimpay.runtime.context import CallContext
from claimpay.runtime.custody import Custody, InMemoryCustody, Transfer

__all__ = ["CallContext", "Custody", "InMemoryCustody", "Transfer"]
