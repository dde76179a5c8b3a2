"""
Configuration management for the transaction inspector.
"""

from typing import Literal

from itxcore.models import NetworkType
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ITX_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: Literal["mainnet", "testnet", "signet", "regtest"] = "mainnet"

    rpc_url: str = "http://127.0.0.1:8332"
    rpc_user: str = "rpcuser"
    rpc_password: str = "rpcpassword"
    rpc_timeout: float = 30.0

    log_level: str = "INFO"

    @property
    def network_type(self) -> NetworkType:
        return NetworkType(self.network)

    @property
    def is_test(self) -> bool:
        return self.network_type.is_test


def get_settings() -> Settings:
    return Settings()
