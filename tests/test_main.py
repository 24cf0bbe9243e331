from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from safe_helper.domain import DelegateRecord, OnChainResult
from safe_helper.exceptions import DelegateNotFoundError
from safe_helper.main import app

from .conftest import OWNER_1_KEY, SAFE_ADDRESS

runner = CliRunner()


def test_show_config_redacts_and_resolves(monkeypatch):
    monkeypatch.setenv("SAFE_HELPER_DEFAULT_SIGNER_KEY", OWNER_1_KEY)

    result = runner.invoke(app, ["--testing", "show-config"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["default_signer_key"] == "***redacted***"
    assert data["resolved_tx_service_url"] == "https://safe-transaction-sepolia.safe.global"
    assert data["resolved_chain_id"] == 11155111


def test_missing_safe_address_is_rejected():
    result = runner.invoke(app, ["delegates", "list"])

    assert result.exit_code != 0


@patch("safe_helper.main.SafeHelper")
def test_delegates_list(MockHelper):
    MockHelper.return_value.list_delegates = AsyncMock(
        return_value=[DelegateRecord("0xD1", "0xO1", "bot")]
    )

    result = runner.invoke(app, ["-s", SAFE_ADDRESS, "delegates", "list"])

    assert result.exit_code == 0
    assert "bot" in result.stdout
    assert MockHelper.call_args.args[0] == SAFE_ADDRESS


@patch("safe_helper.main.SafeHelper")
def test_helper_errors_exit_with_code_one(MockHelper):
    MockHelper.return_value.remove_delegate = AsyncMock(
        side_effect=DelegateNotFoundError("0xD1")
    )

    result = runner.invoke(
        app, ["-s", SAFE_ADDRESS, "-k", OWNER_1_KEY, "delegates", "remove", "0xD1"]
    )

    assert result.exit_code == 1
    MockHelper.return_value.remove_delegate.assert_awaited_once_with("0xD1", OWNER_1_KEY)


@patch("safe_helper.main.SafeHelper")
def test_tx_propose_passes_keys_and_origin(MockHelper):
    helper = MockHelper.return_value
    helper.create_and_propose_signed_transaction = AsyncMock(return_value="0x" + "ab" * 32)
    helper.get_safe_ui_url = MagicMock(return_value="https://app.safe.global/")

    result = runner.invoke(
        app,
        [
            "-s",
            SAFE_ADDRESS,
            "-k",
            OWNER_1_KEY,
            "tx",
            "propose",
            "--to",
            "0x" + "f" * 40,
            "--value",
            "1000",
            "--origin",
            "cli",
        ],
    )

    assert result.exit_code == 0
    assert "0x" + "ab" * 32 in result.stdout
    args, kwargs = helper.create_and_propose_signed_transaction.await_args
    assert args[0].value == 1000
    assert kwargs["origin"] == "cli"
    assert kwargs["creator_key"] == OWNER_1_KEY
    assert kwargs["proposer_key"] is None


@patch("safe_helper.main.SafeHelper")
def test_tx_execute_prints_result(MockHelper):
    MockHelper.return_value.execute_transaction = AsyncMock(
        return_value=OnChainResult(tx_hash="0x" + "ee" * 32, receipt={"status": 1})
    )

    result = runner.invoke(
        app, ["-s", SAFE_ADDRESS, "-k", OWNER_1_KEY, "tx", "execute", "0x01"]
    )

    assert result.exit_code == 0
    assert "0x" + "ee" * 32 in result.stdout
