"""
Custody of deposited value.

Moving value is the host's job. The contract only decides whether and how
much to pay out and calls transfer(). A failed transfer raises TransferError
and must leave every balance exactly as it was.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from claimpay.core.exceptions import TransferError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transfer:
    """One completed payout."""
    recipient: str
    amount:    int


class Custody:
    """Value held on behalf of the contract."""

    @property
    def balance(self) -> int:
        raise NotImplementedError

    def receive(self, amount: int) -> None:
        """Credit a deposit attached to a successful create()."""
        raise NotImplementedError

    def transfer(self, recipient: str, amount: int) -> None:
        """Pay amount to recipient or raise TransferError."""
        raise NotImplementedError


class InMemoryCustody(Custody):
    """
    Process-local custody.

    Args:
        balance:     Opening balance (e.g. the locked value of a reopened store).
        rejecting:   Recipients that refuse incoming funds.
        on_transfer: Called as on_transfer(recipient, amount) after the balance
                     moves, standing in for code the recipient runs on receipt.
                     A TransferError raised there reverts the transfer.
    """

    def __init__(
        self,
        balance:     int                                   = 0,
        rejecting:   Iterable[str]                         = (),
        on_transfer: Optional[Callable[[str, int], None]]  = None,
    ) -> None:
        if balance < 0:
            raise ValueError(f"opening balance must be >= 0, got {balance}")
        self._balance:   int            = balance
        self.rejecting:  set            = set(rejecting)
        self.on_transfer                = on_transfer
        self.payouts:    Dict[str, int] = {}
        self.transfers:  List[Transfer] = []

    @property
    def balance(self) -> int:
        return self._balance

    def receive(self, amount: int) -> None:
        self._balance += amount

    def transfer(self, recipient: str, amount: int) -> None:
        if recipient in self.rejecting:
            raise TransferError(
                "Recipient rejects funds",
                {"recipient": recipient, "amount": amount},
            )
        if amount > self._balance:
            raise TransferError(
                "Insufficient custody balance",
                {"balance": self._balance, "amount": amount},
            )

        self._balance -= amount
        self.payouts[recipient] = self.payouts.get(recipient, 0) + amount

        if self.on_transfer is not None:
            try:
                self.on_transfer(recipient, amount)
            except TransferError:
                self._balance += amount
                self.payouts[recipient] -= amount
                if not self.payouts[recipient]:
                    del self.payouts[recipient]
                raise

        self.transfers.append(Transfer(recipient=recipient, amount=amount))
        logger.debug("Transferred %d to %s", amount, recipient)

    def __repr__(self) -> str:
        return (
            f"InMemoryCustody(balance={self._balance}, "
            f"transfers={len(self.transfers)})"
        )
