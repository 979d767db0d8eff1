"""
Configuration management for the Genesis Pass registry service.

Loads settings from .env via pydantic-settings.

Security notes:
    - admin_wallet is the single privileged identity for registry admin calls,
      and admin calls are only accepted with a verified Bearer token
    - the legacy X-Wallet-Address header must be switched off in production
    - validate_production_settings() enforces strict CORS and a JWT secret
      in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/genesis_pass.db"

    # ── Registry ────────────────────────────────────────────────────
    # Administrator wallet (owner-gated registry operations)
    admin_wallet: str = ""
    pass_max_supply: int = 1000
    pass_tokens_per_pass: int = 100          # ecosystem tokens granted on claim
    pass_default_mint_price_micro: int = 5_000  # 0.005 ALGO in microAlgos

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "genesis-pass-api"
    jwt_access_ttl_minutes: int = 15
    # Accept the unsigned X-Wallet-Address header on holder routes (dev only)
    allow_legacy_wallet_header: bool = True

    # ── Rate limiting ───────────────────────────────────────────────
    mint_rate_limit_per_minute: int = 10

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. In production a misconfiguration is fatal;
        elsewhere it is only logged.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.admin_wallet:
                raise ValueError(
                    "ADMIN_WALLET must be set in production. "
                    "It is the only identity allowed to administer the registry."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify wallet access tokens."
                )
            if self.allow_legacy_wallet_header:
                raise ValueError(
                    "ALLOW_LEGACY_WALLET_HEADER must be false in production. "
                    "The X-Wallet-Address header is not authenticated."
                )
            logger.info("✅ Production settings validated")
        else:
            warnings = []
            if not self.admin_wallet:
                warnings.append("ADMIN_WALLET not set (admin endpoints will reject every caller)")
            if not self.jwt_secret:
                warnings.append("JWT_SECRET not set (only legacy X-Wallet-Address auth available)")
            if self.allow_legacy_wallet_header:
                warnings.append("Legacy X-Wallet-Address header accepted on holder routes (unauthenticated)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(f"⚠️  {w}")


# Global settings instance
settings = Settings()
