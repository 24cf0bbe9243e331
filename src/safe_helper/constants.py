"""Network defaults and shared constants."""

from __future__ import annotations

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
EMPTY_DATA = b""

MAINNET_CHAIN_ID = 1
SEPOLIA_CHAIN_ID = 11155111

DEFAULT_MAINNET_RPC_URL = "https://eth.drpc.org"
DEFAULT_SEPOLIA_RPC_URL = "https://sepolia.drpc.org"

DEFAULT_REQUEST_TIMEOUT = 10
DEFAULT_RECEIPT_TIMEOUT = 120

# Safe contract version assumed when the contract does not report one
DEFAULT_SAFE_VERSION = "1.3.0"
