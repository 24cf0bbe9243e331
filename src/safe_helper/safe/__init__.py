"""Safe transaction construction and API integration."""

from .api_client import TransactionServiceClient
from .contract_client import SafeContractClient
from .transaction import SafeTransaction, pre_validated_signature

__all__ = [
    "TransactionServiceClient",
    "SafeContractClient",
    "SafeTransaction",
    "pre_validated_signature",
]
