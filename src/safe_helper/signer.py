"""Signer resolution shared by every privileged operation."""

from __future__ import annotations

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

from .exceptions import NoSignerError


def resolve_signer_key(
    key: str | None, default_key: SecretStr | None
) -> str:
    """Pick the explicit key, then the default key.

    Raises:
        NoSignerError: If neither is set (empty strings count as unset)
    """
    if key:
        return key
    if default_key is not None and default_key.get_secret_value():
        return default_key.get_secret_value()
    raise NoSignerError()


def resolve_signer(
    key: str | None, default_key: SecretStr | None
) -> LocalAccount:
    """Build the local account that acts for one call."""
    return Account.from_key(resolve_signer_key(key, default_key))  # pyrefly: ignore


def private_key_hex(account: LocalAccount) -> str:
    """0x-prefixed private key, the form safe_eth signing helpers take."""
    return "0x" + bytes(account.key).hex()
