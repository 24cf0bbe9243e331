"""Contract-facing client: builds, approves and executes Safe transactions."""

from __future__ import annotations

import asyncio
import logging

from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from safe_eth.eth import EthereumClient
from safe_eth.safe import Safe
from safe_eth.safe.safe_tx import SafeTx
from web3 import Web3

from ..constants import DEFAULT_SAFE_VERSION, EMPTY_DATA
from ..domain import (
    Operation,
    OnChainResult,
    PendingTransaction,
    SafeInfo,
    TransactionDraft,
    to_0x_hex,
)
from ..exceptions import InsufficientApprovalsError, SafeTxHashMismatchError
from ..signer import private_key_hex
from .constants import ECDSA_SIGNATURE_TYPES
from .transaction import SafeTransaction, pre_validated_signature

logger = logging.getLogger(__name__)


class SafeContractClient:
    """Talks to one Safe contract on behalf of one signer."""

    def __init__(
        self,
        safe_address: str,
        ethereum_client: EthereumClient,
        signer: LocalAccount,
        receipt_timeout: float = 120,
    ):
        self.safe_address = Web3.to_checksum_address(safe_address)
        self.ethereum_client = ethereum_client
        self.signer = signer
        self.receipt_timeout = receipt_timeout
        self._safe: Safe | None = None
        self._safe_version: str | None = None
        self._chain_id: int | None = None

    def _load_safe(self) -> Safe:
        # Safe() picks its class from VERSION(); read it once and pass it in
        version = (
            Safe.detect_version(self.safe_address, self.ethereum_client)
            or DEFAULT_SAFE_VERSION
        )
        self._safe_version = version
        return Safe(  # type: ignore[abstract]
            self.safe_address, self.ethereum_client, version=version
        )

    async def get_safe(self) -> Safe:
        """The bound Safe contract, loaded off the event loop on first use."""
        if self._safe is None:
            self._safe = await asyncio.to_thread(self._load_safe)
        return self._safe

    async def get_info(self) -> SafeInfo:
        safe = await self.get_safe()
        owners, threshold, nonce = await asyncio.gather(
            asyncio.to_thread(safe.retrieve_owners),
            asyncio.to_thread(safe.retrieve_threshold),
            asyncio.to_thread(safe.retrieve_nonce),
        )
        return SafeInfo(
            address=self.safe_address,
            owners=list(owners),
            threshold=threshold,
            nonce=nonce,
            version=await self.get_version(),
        )

    async def get_version(self) -> str:
        await self.get_safe()
        return self._safe_version or DEFAULT_SAFE_VERSION

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await asyncio.to_thread(
                lambda: self.ethereum_client.w3.eth.chain_id
            )
        return self._chain_id

    async def build_transaction(self, draft: TransactionDraft) -> SafeTransaction:
        """Build an unsigned transaction; reads the nonce when the draft has none."""
        nonce = draft.nonce
        if nonce is None:
            safe = await self.get_safe()
            nonce = await asyncio.to_thread(safe.retrieve_nonce)
        safe_version = await self.get_version()
        chain_id = await self.get_chain_id()

        safe_tx = SafeTx(
            ethereum_client=self.ethereum_client,
            safe_address=self.safe_address,
            to=Web3.to_checksum_address(draft.to),
            value=draft.value,
            data=draft.data,
            operation=int(draft.operation),
            safe_tx_gas=draft.safe_tx_gas,
            base_gas=draft.base_gas,
            gas_price=draft.gas_price,
            gas_token=Web3.to_checksum_address(draft.gas_token),
            refund_receiver=Web3.to_checksum_address(draft.refund_receiver),
            safe_nonce=nonce,
            safe_version=safe_version,
            chain_id=chain_id,
        )
        transaction = SafeTransaction(safe_tx)
        logger.debug(
            "Built Safe transaction %s (nonce: %d)", transaction.safe_tx_hash, nonce
        )
        return transaction

    async def build_rejection(self, nonce: int) -> SafeTransaction:
        """Zero-value call from the Safe to itself, replacing ``nonce``."""
        return await self.build_transaction(
            TransactionDraft(
                to=self.safe_address,
                value=0,
                data=EMPTY_DATA,
                operation=Operation.CALL,
                nonce=nonce,
            )
        )

    async def rebuild_pending(self, pending: PendingTransaction) -> SafeTransaction:
        """Rebuild a queued transaction from service state.

        Raises:
            SafeTxHashMismatchError: If the rebuilt payload hashes differently
        """
        transaction = await self.build_transaction(pending.to_draft())
        if not pending.matches(transaction.safe_tx_hash):
            raise SafeTxHashMismatchError(pending.safe_tx_hash, transaction.safe_tx_hash)
        return transaction

    def sign(self, transaction: SafeTransaction) -> bytes:
        return transaction.sign(self.signer)

    async def _send(self, tx: dict) -> OnChainResult:
        tx_hash = await asyncio.to_thread(
            self.ethereum_client.send_unsigned_transaction,
            tx,
            private_key=private_key_hex(self.signer),
        )
        return await self.wait_for_receipt(tx_hash)

    async def wait_for_receipt(self, tx_hash: bytes | str) -> OnChainResult:
        receipt = await asyncio.to_thread(
            self.ethereum_client.w3.eth.wait_for_transaction_receipt,
            HexBytes(tx_hash),
            timeout=self.receipt_timeout,
        )
        return OnChainResult(tx_hash=to_0x_hex(HexBytes(tx_hash)), receipt=receipt)

    async def approve_hash(self, safe_tx_hash: str) -> OnChainResult:
        """Commit ``approveHash`` for the signer and wait for the receipt."""
        safe = await self.get_safe()
        function = safe.contract.functions.approveHash(HexBytes(safe_tx_hash))
        tx = await asyncio.to_thread(
            function.build_transaction, {"from": self.signer.address}
        )
        result = await self._send(tx)
        logger.info(
            "Approved %s as %s in tx %s",
            safe_tx_hash,
            self.signer.address,
            result.tx_hash,
        )
        return result

    async def approved_owners(self, safe_tx_hash: str, owners: list[str]) -> list[str]:
        """Owners that committed ``approveHash`` for ``safe_tx_hash`` on-chain."""
        safe = await self.get_safe()
        hash_bytes = HexBytes(safe_tx_hash)
        approvals = await asyncio.gather(
            *(
                asyncio.to_thread(
                    safe.contract.functions.approvedHashes(owner, hash_bytes).call
                )
                for owner in owners
            )
        )
        return [owner for owner, approved in zip(owners, approvals) if approved]

    async def collect_signatures(
        self,
        transaction: SafeTransaction,
        pending: PendingTransaction | None = None,
    ) -> int:
        """Attach every owner authorization available for ``transaction``.

        Sources: ECDSA confirmations gathered by the service, on-chain
        approved hashes, and the executing signer when it is an owner.

        Returns:
            Number of distinct owner signatures now attached

        Raises:
            InsufficientApprovalsError: If fewer than the threshold
        """
        info = await self.get_info()
        owners = {owner.lower(): owner for owner in info.owners}

        if pending is not None:
            for confirmation in pending.confirmations:
                if (
                    confirmation.signature_type in ECDSA_SIGNATURE_TYPES
                    and confirmation.owner.lower() in owners
                    and confirmation.signature
                ):
                    transaction.add_signature(
                        confirmation.owner, confirmation.signature
                    )

        missing = [
            owner
            for owner in info.owners
            if transaction.signature_of(owner) is None
        ]
        for owner in await self.approved_owners(transaction.safe_tx_hash, missing):
            transaction.add_signature(owner, pre_validated_signature(owner))

        executor = self.signer.address
        if executor.lower() in owners and transaction.signature_of(executor) is None:
            transaction.add_signature(executor, pre_validated_signature(executor))

        collected = len(transaction.signatures)
        if collected < info.threshold:
            raise InsufficientApprovalsError(
                transaction.safe_tx_hash, collected, info.threshold
            )
        return collected

    async def execute(self, transaction: SafeTransaction) -> OnChainResult:
        """Send ``execTransaction`` from the signer and wait for the receipt."""
        transaction.verify_payload()
        tx_hash, _ = await asyncio.to_thread(
            transaction.raw.execute, private_key_hex(self.signer)
        )
        result = await self.wait_for_receipt(tx_hash)
        logger.info(
            "Executed %s in tx %s (status: %s)",
            transaction.safe_tx_hash,
            result.tx_hash,
            result.receipt.get("status"),
        )
        return result
