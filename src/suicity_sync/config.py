"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

SUICITY_NFT_TYPE = (
    "0x5b9b4cd82aee3d5a942eebe9c2da38f411d82bfdfea1204f2486e45b5868b44f::nft::City"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    records_table: str = "bindings"
    sui_rpc_url: str = "https://fullnode.mainnet.sui.io:443"
    nft_type: str = SUICITY_NFT_TYPE
    max_retries: int = 10
    backoff_seconds: float = 1.5
    concurrency_limit: int = 2
    ref_lower_bound: int = 20000
    ref_upper_bound: int = 100000
    ref_max_attempts: int = 100
    ref_widen_step: int = 100000
    reports_dir: str = "reports"
    telegram_bot_token: str | None = None
    report_chat_id: int | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
