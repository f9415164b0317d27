"""
Call context for ClaimPay operations.

The host supplies who is calling and how much value rides along with the
call. The contract reads both and never invents them.
"""

from dataclasses import dataclass

from claimpay.core.codec import U128_MAX
from claimpay.core.exceptions import ValidationError


@dataclass(frozen=True)
class CallContext:
    """Identity and attached value of one invocation."""

    caller:            str
    transferred_value: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.caller, str) or not self.caller:
            raise ValidationError("caller must be a non-empty string")
        value = self.transferred_value
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= U128_MAX:
            raise ValidationError(
                "transferred_value must be an int in [0, 2**128)",
                {"transferred_value": value},
            )

    def __repr__(self) -> str:
        return (
            f"CallContext(caller={self.caller!r}, "
            f"transferred_value={self.transferred_value})"
        )
