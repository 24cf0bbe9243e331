from __future__ import annotations

import pytest
from eth_account import Account

# Well-known development keys (never funded on a real network)
OWNER_1_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER_2_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
DELEGATE_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"

SAFE_ADDRESS = "0x" + "a" * 40


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep settings from picking up the developer's env or config files."""
    import os

    for name in list(os.environ):
        if name.startswith("SAFE_HELPER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def owner_1():
    return Account.from_key(OWNER_1_KEY)


@pytest.fixture
def owner_2():
    return Account.from_key(OWNER_2_KEY)


@pytest.fixture
def delegate():
    return Account.from_key(DELEGATE_KEY)
