"""Client-side helper for Safe multisig transactions."""

from .domain import (
    DelegateConfig,
    DelegateRecord,
    OnChainResult,
    Operation,
    PendingTransaction,
    SafeInfo,
    TransactionDraft,
)
from .exceptions import (
    DelegateNotFoundError,
    InsufficientApprovalsError,
    NoSignerError,
    NotFoundError,
    SafeHelperError,
    SafeTxHashMismatchError,
    TransactionNotFoundError,
)
from .helper import SafeHelper
from .safe.transaction import SafeTransaction
from .settings import SafeHelperSettings

__all__ = [
    "SafeHelper",
    "SafeHelperSettings",
    "SafeTransaction",
    "DelegateConfig",
    "DelegateRecord",
    "OnChainResult",
    "Operation",
    "PendingTransaction",
    "SafeInfo",
    "TransactionDraft",
    "SafeHelperError",
    "NoSignerError",
    "NotFoundError",
    "DelegateNotFoundError",
    "TransactionNotFoundError",
    "InsufficientApprovalsError",
    "SafeTxHashMismatchError",
]
