"""Errors raised by the Safe helper.

Upstream failures (HTTP errors from the transaction service, web3 and
contract errors) are never wrapped; they reach the caller unchanged.
"""

from __future__ import annotations


class SafeHelperError(Exception):
    """Base class for errors raised by safe_helper itself."""


class NoSignerError(SafeHelperError):
    """No signing key was passed and no default signer is set."""

    def __init__(self, message: str = "Pass a key or set a default signer"):
        super().__init__(message)


class NotFoundError(SafeHelperError):
    """A referenced record does not exist among the known records."""


class DelegateNotFoundError(NotFoundError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No delegate found with address {address}")


class TransactionNotFoundError(NotFoundError):
    def __init__(self, safe_tx_hash: str):
        self.safe_tx_hash = safe_tx_hash
        super().__init__(f"No safe transaction found with hash {safe_tx_hash}")


class InsufficientApprovalsError(SafeHelperError):
    """Fewer owner signatures were collected than the Safe threshold."""

    def __init__(self, safe_tx_hash: str, collected: int, threshold: int):
        self.safe_tx_hash = safe_tx_hash
        self.collected = collected
        self.threshold = threshold
        super().__init__(
            f"Transaction {safe_tx_hash} has {collected} of {threshold} required "
            f"signatures ({threshold - collected} missing)"
        )


class SafeTxHashMismatchError(SafeHelperError):
    """A transaction payload no longer hashes to its recorded safeTxHash."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Safe transaction hash mismatch: expected {expected}, got {actual}"
        )
