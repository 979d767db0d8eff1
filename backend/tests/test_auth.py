"""
Tests for caller authentication.

Tests: require_caller and require_admin_caller, access tokens, production
settings validation.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import jwt
import pytest
from fastapi import HTTPException

from config import Settings, settings
from domain.errors import UnauthorizedError
from middleware.auth import decode_access_token, issue_access_token, require_admin_caller, require_caller
from tests.conftest import HOLDER_WALLET, OTHER_WALLET


class TestRequireCaller:

    @pytest.mark.unit
    async def test_legacy_header(self):
        result = await require_caller(x_wallet_address=HOLDER_WALLET, authorization=None)
        assert result == HOLDER_WALLET

    @pytest.mark.unit
    async def test_missing_credentials_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_caller(x_wallet_address=None, authorization=None)
        assert exc_info.value.status_code == 401
        assert "Authentication required" in exc_info.value.detail

    @pytest.mark.unit
    async def test_bearer_token_wins_over_header(self):
        token = issue_access_token(wallet_address=HOLDER_WALLET)
        result = await require_caller(
            x_wallet_address=OTHER_WALLET,
            authorization=f"Bearer {token}",
        )
        assert result == HOLDER_WALLET

    @pytest.mark.unit
    async def test_non_bearer_scheme_falls_back_to_header(self):
        result = await require_caller(
            x_wallet_address=OTHER_WALLET,
            authorization="Basic dXNlcjpwYXNz",
        )
        assert result == OTHER_WALLET


class TestAccessTokens:

    @pytest.mark.unit
    def test_round_trip(self):
        payload = decode_access_token(issue_access_token(wallet_address=HOLDER_WALLET))
        assert payload["sub"] == HOLDER_WALLET
        assert payload["iss"] == settings.jwt_issuer

    @pytest.mark.unit
    def test_wrong_secret_rejected(self):
        forged = jwt.encode(
            {"sub": HOLDER_WALLET, "iss": settings.jwt_issuer, "iat": 0, "exp": 9_999_999_999},
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(forged)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    def test_expired_token_rejected(self):
        expired = jwt.encode(
            {"sub": HOLDER_WALLET, "iss": settings.jwt_issuer, "iat": 0, "exp": 1},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(expired)
        assert exc_info.value.detail == "Access token expired."


class TestRequireCallerLegacyHeaderOff:

    @pytest.mark.unit
    async def test_header_ignored(self, monkeypatch):
        monkeypatch.setattr(settings, "allow_legacy_wallet_header", False)
        with pytest.raises(HTTPException) as exc_info:
            await require_caller(x_wallet_address=HOLDER_WALLET, authorization=None)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    async def test_bearer_still_accepted(self, monkeypatch):
        monkeypatch.setattr(settings, "allow_legacy_wallet_header", False)
        token = issue_access_token(wallet_address=HOLDER_WALLET)
        assert await require_caller(x_wallet_address=None, authorization=f"Bearer {token}") == HOLDER_WALLET


class TestRequireAdminCaller:

    @pytest.mark.unit
    async def test_bearer_token_identifies_caller(self):
        token = issue_access_token(wallet_address=HOLDER_WALLET)
        assert await require_admin_caller(x_wallet_address=None, authorization=f"Bearer {token}") == HOLDER_WALLET

    @pytest.mark.unit
    async def test_wallet_header_alone_is_unauthorized(self):
        # Holds even while the legacy header is allowed on holder routes
        assert settings.allow_legacy_wallet_header is True
        with pytest.raises(UnauthorizedError) as exc_info:
            await require_admin_caller(x_wallet_address=HOLDER_WALLET, authorization=None)
        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"caller": HOLDER_WALLET}

    @pytest.mark.unit
    async def test_token_wins_over_header(self):
        token = issue_access_token(wallet_address=HOLDER_WALLET)
        caller = await require_admin_caller(x_wallet_address=OTHER_WALLET, authorization=f"Bearer {token}")
        assert caller == HOLDER_WALLET

    @pytest.mark.unit
    async def test_no_credentials_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_admin_caller(x_wallet_address=None, authorization=None)
        assert exc_info.value.status_code == 401


class TestProductionSettings:

    def _production(self, **overrides):
        params = {
            "environment": "production",
            "admin_wallet": HOLDER_WALLET,
            "jwt_secret": "prod-secret",
            "cors_origins": "https://pass.example",
            "allow_legacy_wallet_header": False,
        }
        params.update(overrides)
        return Settings(**params)

    @pytest.mark.unit
    def test_valid_production_settings(self):
        self._production().validate_production_settings()

    @pytest.mark.unit
    def test_legacy_header_refused_in_production(self):
        with pytest.raises(ValueError, match="ALLOW_LEGACY_WALLET_HEADER"):
            self._production(allow_legacy_wallet_header=True).validate_production_settings()

    @pytest.mark.unit
    def test_admin_wallet_required_in_production(self):
        with pytest.raises(ValueError, match="ADMIN_WALLET"):
            self._production(admin_wallet="").validate_production_settings()

    @pytest.mark.unit
    def test_development_only_warns(self):
        Settings(environment="development", allow_legacy_wallet_header=True).validate_production_settings()
