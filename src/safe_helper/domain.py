"""Record shapes exchanged with the Safe Transaction Service and the chain."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Mapping

from hexbytes import HexBytes

from .constants import EMPTY_DATA, ZERO_ADDRESS


class Operation(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


def to_int(value: Any, default: int = 0) -> int:
    """Parse ints that the service may send as decimal strings or nulls."""
    if value is None or value == "":
        return default
    return int(value)


def to_bytes(data: str | bytes | None) -> bytes:
    """Normalize hex strings, bytes and nulls to bytes (empty data is b"")."""
    if not data:
        return EMPTY_DATA
    return bytes(HexBytes(data))


def to_0x_hex(value: bytes | str) -> str:
    """Hex-encode with a 0x prefix regardless of the hexbytes version."""
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return "0x" + bytes(value).hex()


@dataclass(frozen=True)
class DelegateConfig:
    """Delegate to register: its address and a human readable label."""

    delegate: str
    label: str


@dataclass(frozen=True)
class DelegateRecord:
    """Delegate as listed by the transaction service."""

    delegate: str
    delegator: str
    label: str
    safe: str | None = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "DelegateRecord":
        return cls(
            delegate=payload["delegate"],
            delegator=payload.get("delegator", ""),
            label=payload.get("label", ""),
            safe=payload.get("safe"),
        )

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class TransactionDraft:
    """Caller-supplied payload of a Safe transaction.

    Unset gas fields default to zero, and an unset nonce is read from the
    Safe contract when the transaction is built.
    """

    to: str
    value: int = 0
    data: bytes = EMPTY_DATA
    operation: Operation = Operation.CALL
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS
    nonce: int | None = None

    def __post_init__(self):
        # Accept the loose shapes callers and the service use
        object.__setattr__(self, "value", to_int(self.value))
        object.__setattr__(self, "data", to_bytes(self.data))
        object.__setattr__(self, "operation", Operation(to_int(self.operation)))
        object.__setattr__(self, "safe_tx_gas", to_int(self.safe_tx_gas))
        object.__setattr__(self, "base_gas", to_int(self.base_gas))
        object.__setattr__(self, "gas_price", to_int(self.gas_price))
        object.__setattr__(self, "gas_token", self.gas_token or ZERO_ADDRESS)
        object.__setattr__(
            self, "refund_receiver", self.refund_receiver or ZERO_ADDRESS
        )
        if self.nonce is not None:
            object.__setattr__(self, "nonce", to_int(self.nonce))


@dataclass(frozen=True)
class Confirmation:
    """An owner confirmation collected by the service."""

    owner: str
    signature: bytes
    signature_type: str

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Confirmation":
        return cls(
            owner=payload["owner"],
            signature=to_bytes(payload.get("signature")),
            signature_type=payload.get("signatureType", ""),
        )


@dataclass(frozen=True)
class PendingTransaction:
    """Multisig transaction queued on the service and not yet executed."""

    safe_tx_hash: str
    nonce: int
    to: str
    data: bytes
    value: int
    operation: Operation
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS
    confirmations_required: int | None = None
    confirmations: tuple[Confirmation, ...] = field(default_factory=tuple)
    proposer: str | None = None
    origin: str | None = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "PendingTransaction":
        confirmations_required = payload.get("confirmationsRequired")
        return cls(
            safe_tx_hash=payload["safeTxHash"],
            nonce=to_int(payload.get("nonce")),
            to=payload["to"],
            data=to_bytes(payload.get("data")),
            value=to_int(payload.get("value")),
            operation=Operation(to_int(payload.get("operation"))),
            safe_tx_gas=to_int(payload.get("safeTxGas")),
            base_gas=to_int(payload.get("baseGas")),
            gas_price=to_int(payload.get("gasPrice")),
            gas_token=payload.get("gasToken") or ZERO_ADDRESS,
            refund_receiver=payload.get("refundReceiver") or ZERO_ADDRESS,
            confirmations_required=(
                None
                if confirmations_required is None
                else int(confirmations_required)
            ),
            confirmations=tuple(
                Confirmation.from_api(entry)
                for entry in payload.get("confirmations") or []
            ),
            proposer=payload.get("proposer"),
            origin=payload.get("origin"),
        )

    def matches(self, safe_tx_hash: str) -> bool:
        return self.safe_tx_hash.lower() == to_0x_hex(safe_tx_hash).lower()

    def to_draft(self) -> TransactionDraft:
        """Rebuild the payload, pinned to this record's nonce."""
        return TransactionDraft(
            to=self.to,
            value=self.value,
            data=self.data,
            operation=self.operation,
            safe_tx_gas=self.safe_tx_gas,
            base_gas=self.base_gas,
            gas_price=self.gas_price,
            gas_token=self.gas_token,
            refund_receiver=self.refund_receiver,
            nonce=self.nonce,
        )


@dataclass(frozen=True)
class SafeInfo:
    address: str
    owners: list[str]
    threshold: int
    nonce: int
    version: str


@dataclass(frozen=True)
class OnChainResult:
    """Hash and mined receipt of a transaction sent by the helper."""

    tx_hash: str
    receipt: Mapping[str, Any]

    @property
    def succeeded(self) -> bool:
        return self.receipt.get("status") == 1
