from __future__ import annotations

import pytest

from safe_helper.constants import ZERO_ADDRESS
from safe_helper.domain import (
    DelegateRecord,
    Operation,
    PendingTransaction,
    TransactionDraft,
    to_0x_hex,
)


@pytest.fixture
def pending_payload() -> dict:
    """Multisig transaction as returned by the transaction service."""
    return {
        "safe": "0x" + "a" * 40,
        "to": "0xFFfFfFffFFfffFFfFFfFFFFFffFFFffffFfFFFfF",
        "value": "666000000000000",
        "data": None,
        "operation": 0,
        "gasToken": ZERO_ADDRESS,
        "safeTxGas": 0,
        "baseGas": 0,
        "gasPrice": "0",
        "refundReceiver": ZERO_ADDRESS,
        "nonce": 7,
        "safeTxHash": "0x" + "ab" * 32,
        "confirmationsRequired": 2,
        "confirmations": [
            {
                "owner": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
                "signature": "0x" + "11" * 65,
                "signatureType": "EOA",
            }
        ],
        "proposer": "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
        "origin": "Sent via safe-helper",
    }


def test_pending_transaction_from_api(pending_payload):
    pending = PendingTransaction.from_api(pending_payload)

    assert pending.nonce == 7
    assert pending.value == 666000000000000
    assert pending.data == b""
    assert pending.operation is Operation.CALL
    assert pending.confirmations_required == 2
    assert pending.confirmations[0].signature == b"\x11" * 65
    assert pending.confirmations[0].signature_type == "EOA"
    assert pending.origin == "Sent via safe-helper"


def test_pending_transaction_matches_hash_case_insensitively(pending_payload):
    pending = PendingTransaction.from_api(pending_payload)

    assert pending.matches("0x" + "AB" * 32)
    assert not pending.matches("0x" + "cd" * 32)


def test_to_draft_pins_nonce_and_defaults_empty_data(pending_payload):
    draft = PendingTransaction.from_api(pending_payload).to_draft()

    assert draft.nonce == 7
    assert draft.data == b""
    assert draft.value == 666000000000000
    assert draft.gas_token == ZERO_ADDRESS


def test_transaction_draft_normalizes_loose_inputs():
    draft = TransactionDraft(
        to="0x" + "b" * 40, value="10", data="0x1234", operation=1, gas_price="3"
    )

    assert draft.value == 10
    assert draft.data == b"\x12\x34"
    assert draft.operation is Operation.DELEGATE_CALL
    assert draft.gas_price == 3
    assert draft.nonce is None


def test_transaction_draft_is_frozen():
    draft = TransactionDraft(to="0x" + "b" * 40)

    with pytest.raises(AttributeError):
        draft.value = 1  # type: ignore[misc]


def test_delegate_record_from_api():
    record = DelegateRecord.from_api(
        {
            "safe": None,
            "delegate": "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
            "delegator": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
            "label": "Temporary Delegate",
        }
    )

    assert record.label == "Temporary Delegate"
    assert record.safe is None


def test_to_0x_hex():
    assert to_0x_hex(b"\x01\x02") == "0x0102"
    assert to_0x_hex("0102") == "0x0102"
    assert to_0x_hex("0x0102") == "0x0102"
