"""
Wallet authentication helpers.

The caller identity of every registry call is a wallet address, taken from:
  - Authorization: Bearer <jwt> (HS256, ``sub`` = wallet), preferred
  - X-Wallet-Address: <wallet> (legacy; not cryptographically secure,
    holder routes only, switched off by ALLOW_LEGACY_WALLET_HEADER=false)

Admin routes accept the Bearer token only.

Tokens are issued out of band (issue_access_token is used by operator tooling
and tests); this service only verifies them.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import HTTPException, Header
from typing import Optional

import jwt

from config import settings
from domain.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Access token expired.")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid access token.")


def issue_access_token(*, wallet_address: str) -> str:
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": wallet_address,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if not settings.jwt_secret:
        raise HTTPException(
            status_code=500,
            detail="Server auth misconfigured (JWT secret missing).",
        )
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


async def get_authenticated_wallet(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    x_wallet_address: Optional[str] = Header(None, alias="X-Wallet-Address"),
) -> Optional[str]:
    """
    Best-effort authentication:
      - Prefer Authorization Bearer JWT
      - Fall back to legacy X-Wallet-Address header (NOT secure), unless
        ALLOW_LEGACY_WALLET_HEADER is off
    """
    token = _parse_bearer_token(authorization)
    if token:
        payload = decode_access_token(token)
        return payload.get("sub")
    if settings.allow_legacy_wallet_header:
        return x_wallet_address
    return None


async def require_caller(
    x_wallet_address: Optional[str] = Header(None, alias="X-Wallet-Address"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    """Dependency resolving the wallet a holder call is made on behalf of."""
    caller = await get_authenticated_wallet(
        authorization=authorization,
        x_wallet_address=x_wallet_address,
    )
    if not caller:
        if settings.allow_legacy_wallet_header:
            detail = "Authentication required. Provide Authorization: Bearer <token> (preferred) or X-Wallet-Address (legacy)."
        else:
            detail = "Authentication required. Provide Authorization: Bearer <token>."
        raise HTTPException(status_code=401, detail=detail)
    return caller


async def require_admin_caller(
    x_wallet_address: Optional[str] = Header(None, alias="X-Wallet-Address"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    """
    Dependency for admin routes: only a verified Bearer token identifies the caller.

    The legacy header is never trusted here; presenting it without a token is
    rejected as unauthorized, whatever wallet it names.
    """
    token = _parse_bearer_token(authorization)
    if not token:
        if x_wallet_address:
            logger.warning(f"🚫 Admin call with unsigned wallet header {x_wallet_address[:8]}... rejected")
            raise UnauthorizedError(x_wallet_address)
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Admin routes need Authorization: Bearer <token>.",
        )
    caller = decode_access_token(token).get("sub")
    if not caller:
        raise HTTPException(status_code=401, detail="Invalid access token.")
    return caller
