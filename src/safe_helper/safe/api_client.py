"""Client for the Safe Transaction Service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from eth_account.signers.local import LocalAccount
from safe_eth.eth import EthereumClient, EthereumNetwork
from safe_eth.safe.api import TransactionServiceApi
from web3 import Web3

from ..domain import DelegateRecord, PendingTransaction, to_0x_hex
from .constants import NETWORK_PREFIXES, PENDING_PAGE_LIMIT
from .transaction import SafeTransaction

logger = logging.getLogger(__name__)


class TransactionServiceClient:
    """Delegates, proposals and the pending queue of one Safe.

    Delegate writes go through safe_eth's ``TransactionServiceApi``, which
    builds the EIP-712 delegate signatures. Reads and proposals use a plain
    ``requests`` session so the proposal can carry a sender and an origin.
    """

    def __init__(
        self,
        safe_address: str,
        service_url: str,
        chain_id: int,
        ethereum_client: EthereumClient | None = None,
        api_key: str | None = None,
        request_timeout: int = 10,
    ):
        """Initialize the service client.

        Args:
            safe_address: Gnosis Safe contract address
            service_url: Base URL of the Safe Transaction Service
            chain_id: Network chain ID
            ethereum_client: Client used by safe_eth for signature checks
            api_key: Optional Transaction Service API key
            request_timeout: Per-request timeout in seconds
        """
        self.safe_address = Web3.to_checksum_address(safe_address)
        self.service_url = service_url.rstrip("/")
        self.chain_id = chain_id
        self.request_timeout = request_timeout
        self.session = requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"
        self.api = TransactionServiceApi(
            EthereumNetwork(chain_id),
            ethereum_client,
            base_url=self.service_url,
            request_timeout=request_timeout,
            api_key=api_key,
        )

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self.session.get(url, params=params, timeout=self.request_timeout)
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error("GET %s failed: %s - %s", url, e, response.text)
            raise
        return response.json()

    async def get_safe_nonce(self) -> int:
        """Current Safe nonce as indexed by the service.

        Raises:
            requests.HTTPError: If fetching Safe info fails
        """
        info = await asyncio.to_thread(
            self._get, f"{self.service_url}/api/v1/safes/{self.safe_address}/"
        )
        return int(info.get("nonce", 0))

    async def list_delegates(self) -> list[DelegateRecord]:
        entries = await asyncio.to_thread(self.api.get_delegates, self.safe_address)
        return [DelegateRecord.from_api(entry) for entry in entries]

    def delegate_signature(self, delegate_address: str, signer: LocalAccount) -> bytes:
        """Sign the service's EIP-712 delegate message for ``delegate_address``.

        The message embeds an hourly TOTP, so the signature is only accepted
        for about an hour after it is made.
        """
        message_hash = self.api.create_delegate_message_hash(delegate_address)
        return bytes(signer.unsafe_sign_hash(message_hash).signature)

    def _add_delegate(self, delegate_address: str, label: str, signer: LocalAccount) -> None:
        self.api.add_delegate(
            delegate_address=delegate_address,
            delegator_address=signer.address,
            label=label,
            signature=self.delegate_signature(delegate_address, signer),
            safe_address=self.safe_address,
        )

    def _remove_delegate(self, delegate_address: str, signer: LocalAccount) -> None:
        self.api.remove_delegate(
            delegate_address=delegate_address,
            delegator_address=signer.address,
            signature=self.delegate_signature(delegate_address, signer),
            safe_address=self.safe_address,
        )

    async def add_delegate(
        self, delegate_address: str, label: str, signer: LocalAccount
    ) -> DelegateRecord:
        """Register ``delegate_address`` with ``signer`` as delegator.

        Raises:
            SafeAPIException: If the service rejects the delegate
        """
        delegate_address = Web3.to_checksum_address(delegate_address)
        await asyncio.to_thread(self._add_delegate, delegate_address, label, signer)
        logger.info("Delegate %s added by %s", delegate_address, signer.address)
        return DelegateRecord(
            delegate=delegate_address,
            delegator=signer.address,
            label=label,
            safe=self.safe_address,
        )

    async def remove_delegate(self, delegate_address: str, signer: LocalAccount) -> None:
        delegate_address = Web3.to_checksum_address(delegate_address)
        await asyncio.to_thread(self._remove_delegate, delegate_address, signer)
        logger.info("Delegate %s removed by %s", delegate_address, signer.address)

    def _fetch_pending(self, nonce: int) -> list[dict[str, Any]]:
        url: str | None = (
            f"{self.service_url}/api/v1/safes/{self.safe_address}/multisig-transactions/"
        )
        params: dict[str, Any] | None = {
            "executed": "false",
            "nonce__gte": nonce,
            "ordering": "nonce",
            "limit": PENDING_PAGE_LIMIT,
        }
        results: list[dict[str, Any]] = []
        while url:
            page = self._get(url, params)
            results.extend(page.get("results", []))
            # "next" already carries the query string
            url, params = page.get("next"), None
        return results

    async def list_pending_transactions(self) -> list[PendingTransaction]:
        """Unexecuted multisig transactions at or above the current nonce."""
        nonce = await self.get_safe_nonce()
        entries = await asyncio.to_thread(self._fetch_pending, nonce)
        logger.debug(
            "Found %d pending transaction(s) for %s from nonce %d",
            len(entries),
            self.safe_address,
            nonce,
        )
        return [PendingTransaction.from_api(entry) for entry in entries]

    def build_proposal(
        self,
        safe_tx: SafeTransaction,
        sender: str,
        origin: str | None = None,
    ) -> dict[str, Any]:
        """Request body for proposing ``safe_tx`` with ``sender`` as proposer."""
        payload = safe_tx.payload
        sender = Web3.to_checksum_address(sender)
        body: dict[str, Any] = {
            "to": Web3.to_checksum_address(payload.to),
            "value": str(payload.value),
            "data": to_0x_hex(payload.data) if payload.data else None,
            "operation": int(payload.operation),
            "safeTxGas": str(payload.safe_tx_gas),
            "baseGas": str(payload.base_gas),
            "gasPrice": str(payload.gas_price),
            "gasToken": Web3.to_checksum_address(payload.gas_token),
            "refundReceiver": Web3.to_checksum_address(payload.refund_receiver),
            "nonce": safe_tx.nonce,
            "contractTransactionHash": safe_tx.safe_tx_hash,
            "sender": sender,
        }
        signature = safe_tx.signature_of(sender)
        if signature:
            body["signature"] = to_0x_hex(signature)
        if origin:
            body["origin"] = origin
        return body

    def _post_proposal(self, body: dict[str, Any]) -> None:
        response = self.session.post(
            f"{self.service_url}/api/v1/safes/{self.safe_address}/multisig-transactions/",
            json=body,
            timeout=self.request_timeout,
        )
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error("Failed to propose transaction: %s - %s", e, response.text)
            raise

    async def propose_transaction(
        self,
        safe_tx: SafeTransaction,
        sender: str,
        origin: str | None = None,
    ) -> str:
        """Propose ``safe_tx`` to the service.

        Returns:
            Safe transaction hash

        Raises:
            requests.HTTPError: If proposing transaction fails
        """
        safe_tx.verify_payload()
        body = self.build_proposal(safe_tx, sender, origin)
        await asyncio.to_thread(self._post_proposal, body)
        logger.info("Transaction proposed successfully: %s", safe_tx.safe_tx_hash)
        return safe_tx.safe_tx_hash

    def get_safe_ui_url(self, safe_tx_hash: str) -> str:
        """Generate Safe UI URL for transaction.

        Args:
            safe_tx_hash: Safe transaction hash

        Returns:
            Safe web app URL for the transaction
        """
        network_prefix = NETWORK_PREFIXES.get(self.chain_id, "eth")
        return (
            f"https://app.safe.global/transactions/queue"
            f"?safe={network_prefix}:{self.safe_address}"
            f"#{safe_tx_hash}"
        )
