"""Safe transaction whose payload is frozen once built."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from eth_account.signers.local import LocalAccount
from safe_eth.safe.safe_tx import SafeTx
from web3 import Web3

from ..domain import Operation, TransactionDraft, to_0x_hex
from ..exceptions import SafeTxHashMismatchError
from ..signer import private_key_hex

logger = logging.getLogger(__name__)


def _payload_of(safe_tx: SafeTx) -> TransactionDraft:
    return TransactionDraft(
        to=safe_tx.to,
        value=safe_tx.value,
        data=safe_tx.data,
        operation=safe_tx.operation,
        safe_tx_gas=safe_tx.safe_tx_gas,
        base_gas=safe_tx.base_gas,
        gas_price=safe_tx.gas_price,
        gas_token=safe_tx.gas_token,
        refund_receiver=safe_tx.refund_receiver,
        nonce=safe_tx.safe_nonce,
    )


def pre_validated_signature(owner: str) -> bytes:
    """Signature for an owner that approved on-chain or is the executor.

    Encoded as r = owner address, s = 0, v = 1 (Safe's approved-hash type).
    """
    owner_bytes = bytes.fromhex(Web3.to_checksum_address(owner)[2:])
    return owner_bytes.rjust(32, b"\x00") + b"\x00" * 32 + b"\x01"


class SafeTransaction:
    """A built Safe transaction plus the signatures collected for it.

    The payload and its ``safe_tx_hash`` are fixed at construction. Only
    signatures can be added, and adding one first checks that the wrapped
    ``SafeTx`` still carries the original payload.
    """

    def __init__(self, safe_tx: SafeTx):
        self._safe_tx = safe_tx
        self._payload = _payload_of(safe_tx)
        self._safe_tx_hash = to_0x_hex(safe_tx.safe_tx_hash)
        self._nonce = int(safe_tx.safe_nonce)
        self._signatures: dict[str, bytes] = {}

    def __repr__(self) -> str:
        return (
            f"SafeTransaction(safe_tx_hash={self._safe_tx_hash}, "
            f"nonce={self.nonce}, signatures={len(self._signatures)})"
        )

    @property
    def raw(self) -> SafeTx:
        return self._safe_tx

    @property
    def payload(self) -> TransactionDraft:
        return self._payload

    @property
    def safe_tx_hash(self) -> str:
        return self._safe_tx_hash

    @property
    def to(self) -> str:
        return self._payload.to

    @property
    def value(self) -> int:
        return self._payload.value

    @property
    def data(self) -> bytes:
        return self._payload.data

    @property
    def operation(self) -> Operation:
        return self._payload.operation

    @property
    def nonce(self) -> int:
        return self._nonce

    @property
    def signatures(self) -> Mapping[str, bytes]:
        return MappingProxyType(self._signatures)

    @property
    def encoded_signatures(self) -> bytes:
        """Signatures concatenated in ascending owner order, as the Safe expects."""
        ordered = sorted(self._signatures.items(), key=lambda item: int(item[0], 16))
        return b"".join(signature for _, signature in ordered)

    def verify_payload(self) -> None:
        """Raise if the wrapped SafeTx no longer carries the original payload."""
        if _payload_of(self._safe_tx) != self._payload:
            raise SafeTxHashMismatchError(
                self._safe_tx_hash, to_0x_hex(self._safe_tx.safe_tx_hash)
            )

    def add_signature(self, owner: str, signature: bytes) -> None:
        self.verify_payload()
        owner = Web3.to_checksum_address(owner)
        self._signatures[owner] = bytes(signature)
        self._safe_tx.signatures = self.encoded_signatures
        logger.debug("Added signature from %s to %s", owner, self._safe_tx_hash)

    def sign(self, account: LocalAccount) -> bytes:
        """Sign the safeTxHash with ``account`` and attach the signature."""
        self.verify_payload()
        signature = self._safe_tx.sign(private_key_hex(account))
        self.add_signature(account.address, signature)
        return signature

    def signature_of(self, owner: str) -> bytes | None:
        return self._signatures.get(Web3.to_checksum_address(owner))
