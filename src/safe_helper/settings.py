"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_MAINNET_RPC_URL,
    DEFAULT_RECEIPT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SEPOLIA_RPC_URL,
    MAINNET_CHAIN_ID,
    SEPOLIA_CHAIN_ID,
)
from .safe.constants import SAFE_SERVICE_URLS

load_dotenv()

SECRET_FIELDS = {"default_signer_key", "tx_service_api_key"}


class Network(str, Enum):
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"


NETWORK_CHAIN_IDS = {
    Network.MAINNET: MAINNET_CHAIN_ID,
    Network.SEPOLIA: SEPOLIA_CHAIN_ID,
}

NETWORK_RPC_DEFAULTS = {
    Network.MAINNET: DEFAULT_MAINNET_RPC_URL,
    Network.SEPOLIA: DEFAULT_SEPOLIA_RPC_URL,
}


class SafeHelperSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI / constructor (init kwargs)
    - ENV / .env (prefixed with SAFE_HELPER_)
    - Config file (TOML), lowest precedence

    Endpoint fields left unset fall back to defaults derived from ``testing``:
    an explicit ``provider_url`` or ``tx_service_url`` always wins.
    """

    # --- target ---
    safe_address: str | None = None

    # --- endpoints ---
    testing: bool = False
    provider_url: str | None = None
    tx_service_url: str | None = None
    chain_id: int | None = None

    # --- signing / auth ---
    default_signer_key: SecretStr | None = None
    tx_service_api_key: SecretStr | None = None

    # --- timeouts (seconds) ---
    request_timeout: int = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    receipt_timeout: float = Field(default=DEFAULT_RECEIPT_TIMEOUT, gt=0)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SAFE_HELPER_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("default_signer_key", "tx_service_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("SAFE_HELPER_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    # Try default locations
                    local_config = Path("safe-helper.toml")
                    user_config = (
                        Path.home() / ".config" / "safe-helper" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [safe_helper]
                body = data.get("safe_helper", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump()
        for key in SECRET_FIELDS:
            if data.get(key) is not None:
                data[key] = "***redacted***"
        data["resolved_provider_url"] = self.resolved_provider_url
        data["resolved_tx_service_url"] = self.resolved_tx_service_url
        data["resolved_chain_id"] = self.resolved_chain_id
        return data

    @property
    def network(self) -> Network:
        """Network selected by the testing switch."""
        return Network.SEPOLIA if self.testing else Network.MAINNET

    @property
    def resolved_chain_id(self) -> int:
        """Explicit chain_id, else the chain of the selected network."""
        if self.chain_id is not None:
            return self.chain_id
        return NETWORK_CHAIN_IDS[self.network]

    @property
    def resolved_provider_url(self) -> str:
        """Explicit provider_url, else the default RPC for the network."""
        if self.provider_url:
            return self.provider_url
        return NETWORK_RPC_DEFAULTS[self.network]

    @property
    def resolved_tx_service_url(self) -> str:
        """Explicit tx_service_url, else the Safe Transaction Service for the chain.

        Raises:
            ValueError: If no service URL is known for the chain
        """
        if self.tx_service_url:
            return self.tx_service_url.rstrip("/")
        if self.resolved_chain_id not in SAFE_SERVICE_URLS:
            raise ValueError(
                f"Unsupported chain_id: {self.resolved_chain_id}. "
                f"Supported chains: {list(SAFE_SERVICE_URLS.keys())}"
            )
        return SAFE_SERVICE_URLS[self.resolved_chain_id]

    @property
    def safe_address_required(self) -> str:
        """Get safe_address, raising ValueError if not set."""
        if self.safe_address is None:
            raise ValueError("safe_address must be configured")
        return self.safe_address
