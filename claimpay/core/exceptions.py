"""
ClaimPay Exception Hierarchy

All exceptions inherit from ClaimPayError for easy catching.

Claim outcomes (AlreadyExists, NotFound, ...) are NOT exceptions.
They travel back to the caller as ClaimResult values. Exceptions here
cover programming errors and infrastructure faults only.
"""


class ClaimPayError(Exception):
    """Base exception for all ClaimPay errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(ClaimPayError):
    """Raised when call arguments have the wrong type or size"""
    pass


class NonPayableError(ValidationError):
    """Raised when value is attached to a call that does not accept it"""
    pass


class CodecError(ClaimPayError):
    """Raised when SCALE bytes cannot be decoded"""
    pass


class StoreError(ClaimPayError):
    """Raised when the claim store cannot be read or written"""
    pass


class TransferError(ClaimPayError):
    """Raised by custody when value cannot be moved to the recipient"""
    pass


class KeyFileError(ClaimPayError):
    """Raised when a key file cannot be loaded or saved"""
    pass
