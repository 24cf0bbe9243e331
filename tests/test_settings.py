"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest

from safe_helper.constants import DEFAULT_MAINNET_RPC_URL, DEFAULT_SEPOLIA_RPC_URL
from safe_helper.settings import Network, SafeHelperSettings


def test_production_defaults():
    settings = SafeHelperSettings()

    assert settings.network is Network.MAINNET
    assert settings.resolved_chain_id == 1
    assert settings.resolved_provider_url == DEFAULT_MAINNET_RPC_URL
    assert (
        settings.resolved_tx_service_url
        == "https://safe-transaction-mainnet.safe.global"
    )


def test_testing_switch_selects_sepolia_defaults():
    settings = SafeHelperSettings(testing=True)

    assert settings.network is Network.SEPOLIA
    assert settings.resolved_chain_id == 11155111
    assert settings.resolved_provider_url == DEFAULT_SEPOLIA_RPC_URL
    assert (
        settings.resolved_tx_service_url
        == "https://safe-transaction-sepolia.safe.global"
    )


def test_explicit_urls_win_over_testing_defaults():
    settings = SafeHelperSettings(
        testing=True,
        provider_url="http://localhost:8545",
        tx_service_url="https://tx.example/",
    )

    assert settings.resolved_provider_url == "http://localhost:8545"
    assert settings.resolved_tx_service_url == "https://tx.example"


def test_unknown_chain_without_service_url_raises():
    settings = SafeHelperSettings(chain_id=424242)

    with pytest.raises(ValueError, match="Unsupported chain_id: 424242"):
        _ = settings.resolved_tx_service_url


def test_env_overrides_config_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [safe_helper]
            testing = true
            provider_url = "https://file.example"
            receipt_timeout = 30
            """
        ).strip()
    )
    monkeypatch.setenv("SAFE_HELPER_CONFIG", str(config_path))
    monkeypatch.setenv("SAFE_HELPER_PROVIDER_URL", "https://env.example")

    settings = SafeHelperSettings()

    assert settings.testing is True
    assert settings.receipt_timeout == 30
    assert settings.resolved_provider_url == "https://env.example"


def test_secrets_in_config_file_are_rejected(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('default_signer_key = "0xabc"\n')
    monkeypatch.setenv("SAFE_HELPER_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="Security violation"):
        SafeHelperSettings()


def test_as_safe_dict_redacts_secrets():
    settings = SafeHelperSettings(
        default_signer_key="0x" + "1" * 64, tx_service_api_key="api-key"
    )

    data = settings.as_safe_dict()

    assert data["default_signer_key"] == "***redacted***"
    assert data["tx_service_api_key"] == "***redacted***"
    assert data["resolved_chain_id"] == 1


def test_log_level_is_normalized():
    assert SafeHelperSettings(log_level="debug").log_level == "DEBUG"
