"""
Shared FastAPI dependencies.

Routers import the registry, the caller identity and pagination from here.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from fastapi import Query

from config import settings
from middleware.auth import require_admin_caller, require_caller  # noqa: F401  (re-exported for routers)
from services.custody_service import SqlCustody
from services.ledger_service import SqlOwnershipLedger
from services.pass_registry import PassRegistry


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


_registry: Optional[PassRegistry] = None


def build_registry() -> PassRegistry:
    """Construct a registry wired to the database-backed ledger and custody."""
    return PassRegistry(
        SqlOwnershipLedger(),
        SqlCustody(),
        admin_wallet=settings.admin_wallet,
        max_supply=settings.pass_max_supply,
        tokens_per_pass=settings.pass_tokens_per_pass,
        default_mint_price_micro=settings.pass_default_mint_price_micro,
    )


def get_registry() -> PassRegistry:
    """
    FastAPI dependency — the process-wide registry.

    One instance per process so its mutation lock covers every request.
    """
    global _registry
    if _registry is None:
        _registry = build_registry()
    return _registry
