"""Pydantic BaseSettings — signing domain defaults and logging."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .typed_data import Domain


class Settings(BaseSettings):
    """Configuration loaded from env / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # ── Application ─────────────────────────────────────────────
    APP_ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    # ── EIP-712 domain ──────────────────────────────────────────
    PUTTY_DOMAIN_NAME: str = "Putty"
    PUTTY_DOMAIN_VERSION: str = "2.0"
    PUTTY_CHAIN_ID: int = Field(default=31337, ge=0)
    PUTTY_VERIFYING_CONTRACT: str = "0xce71065d4017f316ec606fe4422e11eb2c47c246"

    def domain(self) -> Domain:
        return Domain(
            name=self.PUTTY_DOMAIN_NAME,
            version=self.PUTTY_DOMAIN_VERSION,
            chain_id=self.PUTTY_CHAIN_ID,
            verifying_contract=self.PUTTY_VERIFYING_CONTRACT,
        )


def get_settings() -> Settings:
    return Settings()
