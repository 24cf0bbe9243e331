from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from safe_eth.safe.safe_tx import SafeTx
from web3 import Web3

from safe_helper.constants import ZERO_ADDRESS
from safe_helper.exceptions import SafeTxHashMismatchError
from safe_helper.safe.transaction import SafeTransaction, pre_validated_signature

SAFE_CHECKSUM = Web3.to_checksum_address("0x" + "a" * 40)
RECIPIENT = Web3.to_checksum_address("0x" + "f" * 40)


def build_safe_tx(value: int = 666, nonce: int = 3, to: str = RECIPIENT) -> SafeTx:
    return SafeTx(
        ethereum_client=MagicMock(),
        safe_address=SAFE_CHECKSUM,
        to=to,
        value=value,
        data=b"",
        operation=0,
        safe_tx_gas=0,
        base_gas=0,
        gas_price=0,
        gas_token=ZERO_ADDRESS,
        refund_receiver=ZERO_ADDRESS,
        safe_nonce=nonce,
        safe_version="1.3.0",
        chain_id=11155111,
    )


def test_payload_snapshot_and_hash():
    transaction = SafeTransaction(build_safe_tx())

    assert transaction.to == RECIPIENT
    assert transaction.value == 666
    assert transaction.data == b""
    assert transaction.nonce == 3
    assert transaction.safe_tx_hash.startswith("0x")
    assert len(transaction.safe_tx_hash) == 66
    assert transaction.signatures == {}


def test_payload_attributes_are_read_only():
    transaction = SafeTransaction(build_safe_tx())

    with pytest.raises(AttributeError):
        transaction.value = 1  # type: ignore[misc]
    with pytest.raises(AttributeError):
        transaction.to = SAFE_CHECKSUM  # type: ignore[misc]
    with pytest.raises(AttributeError):
        transaction.nonce = 4  # type: ignore[misc]


def test_first_nonce_is_kept():
    transaction = SafeTransaction(build_safe_tx(nonce=0))

    assert transaction.nonce == 0
    assert transaction.payload.nonce == 0


def test_different_payloads_hash_differently():
    first = SafeTransaction(build_safe_tx(value=1))
    second = SafeTransaction(build_safe_tx(value=2))

    assert first.safe_tx_hash != second.safe_tx_hash


def test_sign_adds_exactly_one_signature(owner_1):
    transaction = SafeTransaction(build_safe_tx())

    signature = transaction.sign(owner_1)

    assert len(signature) == 65
    assert dict(transaction.signatures) == {owner_1.address: signature}
    assert transaction.raw.signatures == signature
    assert transaction.signature_of(owner_1.address.lower()) == signature


def test_signatures_are_encoded_in_owner_order(owner_1, owner_2):
    transaction = SafeTransaction(build_safe_tx())

    transaction.sign(owner_1)
    transaction.sign(owner_2)

    ordered = sorted([owner_1.address, owner_2.address], key=lambda a: int(a, 16))
    expected = b"".join(transaction.signatures[owner] for owner in ordered)
    assert transaction.encoded_signatures == expected
    assert transaction.raw.signatures == expected


def test_mutated_payload_rejects_new_signatures(owner_1):
    transaction = SafeTransaction(build_safe_tx())
    transaction.raw.value = 10**18

    with pytest.raises(SafeTxHashMismatchError):
        transaction.sign(owner_1)
    with pytest.raises(SafeTxHashMismatchError):
        transaction.add_signature(owner_1.address, b"\x00" * 65)


def test_pre_validated_signature_layout(owner_1):
    signature = pre_validated_signature(owner_1.address.lower())

    assert len(signature) == 65
    assert signature[12:32] == bytes.fromhex(owner_1.address[2:])
    assert signature[32:64] == b"\x00" * 32
    assert signature[64] == 1
