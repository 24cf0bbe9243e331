"""High-level facade over one Safe: delegates and the transaction lifecycle.

A transaction moves through Drafted -> Signed -> Proposed -> Approved(k) ->
Executed. A rejection is a separate same-nonce transaction that runs the same
lifecycle. Each step takes its own optional key, so an owner and a delegate
can each act under their own identity.
"""

from __future__ import annotations

import logging

from eth_account.signers.local import LocalAccount
from eth_typing import URI
from pydantic import SecretStr
from safe_eth.eth import EthereumClient
from web3 import Web3

from .domain import (
    DelegateConfig,
    DelegateRecord,
    OnChainResult,
    PendingTransaction,
    SafeInfo,
    TransactionDraft,
)
from .exceptions import DelegateNotFoundError, TransactionNotFoundError
from .safe.api_client import TransactionServiceClient
from .safe.contract_client import SafeContractClient
from .safe.transaction import SafeTransaction
from .settings import SafeHelperSettings
from .signer import resolve_signer

logger = logging.getLogger(__name__)


class SafeHelper:
    """Stateful helper bound to one Safe, one RPC provider and one service.

    Collaborators (the ethereum client, the contract client and the service
    client) are built per call; the only mutable state is the default key.
    """

    def __init__(
        self,
        safe_address: str,
        settings: SafeHelperSettings | None = None,
        *,
        testing: bool | None = None,
        provider_url: str | None = None,
        tx_service_url: str | None = None,
    ):
        """Bind the helper to ``safe_address``.

        Args:
            safe_address: Safe contract address
            settings: Base configuration; loaded from env/TOML when omitted
            testing: Select test-network defaults for RPC and service URL
            provider_url: Explicit RPC endpoint, wins over the testing default
            tx_service_url: Explicit service URL, wins over the testing default
        """
        base = settings if settings is not None else SafeHelperSettings()
        overrides: dict[str, object] = {"safe_address": safe_address}
        if testing is not None:
            overrides["testing"] = testing
        if provider_url is not None:
            overrides["provider_url"] = provider_url
        if tx_service_url is not None:
            overrides["tx_service_url"] = tx_service_url
        self.settings = base.model_copy(update=overrides)

        self.safe_address = Web3.to_checksum_address(safe_address)
        self.provider_url = self.settings.resolved_provider_url
        self.tx_service_url = self.settings.resolved_tx_service_url
        self.chain_id = self.settings.resolved_chain_id
        self.default_signer_key: SecretStr | None = self.settings.default_signer_key

    def set_default_signer_key(self, signer_key: str) -> None:
        self.default_signer_key = SecretStr(signer_key)

    def resolve_signer(self, key: str | None = None) -> LocalAccount:
        """Explicit key, then the default key, else ``NoSignerError``."""
        return resolve_signer(key, self.default_signer_key)

    def _ethereum_client(self) -> EthereumClient:
        return EthereumClient(URI(self.provider_url))

    def _service_client(self) -> TransactionServiceClient:
        api_key = self.settings.tx_service_api_key
        return TransactionServiceClient(
            safe_address=self.safe_address,
            service_url=self.tx_service_url,
            chain_id=self.chain_id,
            ethereum_client=self._ethereum_client(),
            api_key=api_key.get_secret_value() if api_key else None,
            request_timeout=self.settings.request_timeout,
        )

    def _contract_client(self, signer: LocalAccount) -> SafeContractClient:
        return SafeContractClient(
            safe_address=self.safe_address,
            ethereum_client=self._ethereum_client(),
            signer=signer,
            receipt_timeout=self.settings.receipt_timeout,
        )

    # --- safe state ---

    async def get_safe_info(self, key: str | None = None) -> SafeInfo:
        signer = self.resolve_signer(key)
        return await self._contract_client(signer).get_info()

    async def get_owners(self, key: str | None = None) -> list[str]:
        info = await self.get_safe_info(key)
        return info.owners

    def get_safe_ui_url(self, safe_tx_hash: str) -> str:
        return self._service_client().get_safe_ui_url(safe_tx_hash)

    # --- delegates ---

    async def list_delegates(self) -> list[DelegateRecord]:
        """Delegates registered for the Safe, read fresh from the service.

        Reading is unauthenticated, so unlike the write operations this does
        not resolve a signer and works without a default key.
        """
        return await self._service_client().list_delegates()

    async def add_delegate(
        self, delegate_config: DelegateConfig, owner_key: str | None = None
    ) -> DelegateRecord:
        signer = self.resolve_signer(owner_key)
        delegate_address = Web3.to_checksum_address(delegate_config.delegate)
        return await self._service_client().add_delegate(
            delegate_address, delegate_config.label, signer
        )

    async def remove_delegate(
        self, delegate_address: str, owner_key: str | None = None
    ) -> bool:
        """Remove a delegate, matching the address case-insensitively.

        Raises:
            DelegateNotFoundError: If no registered delegate matches
        """
        signer = self.resolve_signer(owner_key)
        normalized_address = Web3.to_checksum_address(delegate_address)
        service = self._service_client()
        active_delegates = await service.list_delegates()
        found = next(
            (
                entry
                for entry in active_delegates
                if entry.delegate.lower() == normalized_address.lower()
            ),
            None,
        )
        if found is None:
            raise DelegateNotFoundError(normalized_address)
        await service.remove_delegate(
            Web3.to_checksum_address(found.delegate), signer
        )
        return True

    async def remove_all_delegates(self, owner_key: str | None = None) -> bool:
        signer = self.resolve_signer(owner_key)
        service = self._service_client()
        delegates = await service.list_delegates()
        for entry in delegates:
            await service.remove_delegate(
                Web3.to_checksum_address(entry.delegate), signer
            )
        logger.info("Removed %d delegate(s) from %s", len(delegates), self.safe_address)
        return True

    # --- pending queue ---

    async def list_pending_transactions(
        self, key: str | None = None
    ) -> list[PendingTransaction]:
        self.resolve_signer(key)
        return await self._service_client().list_pending_transactions()

    async def get_pending_transaction(
        self, safe_tx_hash: str, key: str | None = None
    ) -> PendingTransaction:
        """Look up a queued transaction by hash.

        Raises:
            TransactionNotFoundError: If the hash is not in the pending queue
        """
        pending_transactions = await self.list_pending_transactions(key)
        for entry in pending_transactions:
            if entry.matches(safe_tx_hash):
                return entry
        raise TransactionNotFoundError(safe_tx_hash)

    # --- lifecycle ---

    async def create_transaction(
        self, transaction: TransactionDraft, key: str | None = None
    ) -> SafeTransaction:
        signer = self.resolve_signer(key)
        return await self._contract_client(signer).build_transaction(transaction)

    async def create_signed_transaction(
        self, transaction: TransactionDraft, key: str | None = None
    ) -> SafeTransaction:
        signer = self.resolve_signer(key)
        client = self._contract_client(signer)
        safe_tx = await client.build_transaction(transaction)
        client.sign(safe_tx)
        logger.debug("Signed %s as %s", safe_tx.safe_tx_hash, signer.address)
        return safe_tx

    async def propose_transaction(
        self,
        safe_tx: SafeTransaction,
        origin: str | None = None,
        key: str | None = None,
    ) -> str:
        """Propose ``safe_tx`` with the resolved signer as sender.

        Returns:
            The safeTxHash used for every later lookup
        """
        signer = self.resolve_signer(key)
        return await self._service_client().propose_transaction(
            safe_tx, sender=signer.address, origin=origin
        )

    async def create_and_propose_signed_transaction(
        self,
        transaction: TransactionDraft,
        origin: str | None = None,
        creator_key: str | None = None,
        proposer_key: str | None = None,
    ) -> str:
        """Sign with the creator key and propose with the proposer key.

        Falls back to the creator key when no proposer key is given. A failed
        proposal leaves the signed transaction as it is.
        """
        safe_tx = await self.create_signed_transaction(transaction, creator_key)
        return await self.propose_transaction(
            safe_tx, origin=origin, key=proposer_key or creator_key
        )

    async def create_rejection(
        self, safe_tx_hash: str, key: str | None = None
    ) -> SafeTransaction:
        signer = self.resolve_signer(key)
        pending = await self.get_pending_transaction(safe_tx_hash, key)
        rejection = await self._contract_client(signer).build_rejection(pending.nonce)
        logger.info(
            "Built rejection %s for %s (nonce: %d)",
            rejection.safe_tx_hash,
            pending.safe_tx_hash,
            pending.nonce,
        )
        return rejection

    async def create_rejection_transaction(
        self, safe_tx_hash: str, key: str | None = None
    ) -> str:
        """Hash of a same-nonce rejection, to be signed and proposed as usual."""
        rejection = await self.create_rejection(safe_tx_hash, key)
        return rejection.safe_tx_hash

    async def approve_transaction(
        self, safe_tx_hash: str, key: str | None = None
    ) -> OnChainResult:
        signer = self.resolve_signer(key)
        return await self._contract_client(signer).approve_hash(safe_tx_hash)

    async def execute_transaction(
        self, safe_tx_hash: str, key: str | None = None
    ) -> OnChainResult:
        """Execute a queued transaction, rebuilt from the service's record.

        Raises:
            TransactionNotFoundError: If the hash is not pending
            SafeTxHashMismatchError: If the rebuilt payload hashes differently
            InsufficientApprovalsError: If the threshold is not reached
        """
        signer = self.resolve_signer(key)
        pending = await self.get_pending_transaction(safe_tx_hash, key)
        client = self._contract_client(signer)
        safe_tx = await client.rebuild_pending(pending)
        await client.collect_signatures(safe_tx, pending)
        return await client.execute(safe_tx)
