"""
Administrator endpoints — registry switches, pricing, pass metadata, funds.

Every endpoint needs a verified Bearer token; the unsigned X-Wallet-Address
header is refused here. The registry itself rejects anyone but the configured
administrator with 403 ``unauthorized``.

Endpoints:
    POST /admin/minting               — Enable/disable minting
    POST /admin/claiming              — Enable/disable token claims
    POST /admin/price                 — Set mint price (microAlgos)
    POST /admin/points                — Award points to one pass
    POST /admin/points/batch          — Award points to many passes (all-or-nothing)
    POST /admin/access-level          — Set a pass's access level
    POST /admin/airdrop               — Set a pass's airdrop eligibility
    POST /admin/airdrop/batch         — Same, for many passes (all-or-nothing)
    POST /admin/reset-mint/{wallet}   — Let a wallet mint again
    POST /admin/withdraw              — Withdraw custody balance to the admin
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import get_registry, require_admin_caller
from domain.responses import success_response
from models import (
    AccessLevelRequest,
    AirdropRequest,
    AwardPointsRequest,
    BatchAirdropRequest,
    BatchAwardPointsRequest,
    MintPriceRequest,
    ToggleRequest,
)
from services.pass_registry import PassRegistry
from utils.validators import validated_wallet

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/minting")
async def set_minting(
    body: ToggleRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.set_minting_enabled(db, caller, body.enabled)
    await db.commit()
    return success_response({"mintingEnabled": body.enabled})


@router.post("/claiming")
async def set_claiming(
    body: ToggleRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.set_token_claim_enabled(db, caller, body.enabled)
    await db.commit()
    return success_response({"tokenClaimEnabled": body.enabled})


@router.post("/price")
async def set_price(
    body: MintPriceRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.set_mint_price(db, caller, body.price_micro)
    await db.commit()
    return success_response({"mintPriceMicro": body.price_micro})


# ── Points ──────────────────────────────────────────────────────────

@router.post("/points")
async def award_points(
    body: AwardPointsRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    total = await registry.award_points(db, caller, body.token_id, body.points)
    await db.commit()
    return success_response({"tokenId": body.token_id, "points": body.points, "totalPoints": total})


@router.post("/points/batch")
async def batch_award_points(
    body: BatchAwardPointsRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    totals = await registry.batch_award_points(db, caller, body.token_ids, body.points)
    await db.commit()
    return success_response([
        {"tokenId": token_id, "totalPoints": total}
        for token_id, total in zip(body.token_ids, totals)
    ])


# ── Access level ────────────────────────────────────────────────────

@router.post("/access-level")
async def set_access_level(
    body: AccessLevelRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.set_access_level(db, caller, body.token_id, body.level)
    await db.commit()
    return success_response({"tokenId": body.token_id, "level": body.level})


# ── Airdrop ─────────────────────────────────────────────────────────

@router.post("/airdrop")
async def set_airdrop(
    body: AirdropRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.set_airdrop_eligibility(db, caller, body.token_id, body.eligible, body.multiplier)
    await db.commit()
    return success_response({
        "tokenId": body.token_id,
        "eligible": body.eligible,
        "multiplier": body.multiplier,
    })


@router.post("/airdrop/batch")
async def batch_set_airdrop(
    body: BatchAirdropRequest,
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.batch_set_airdrop_eligibility(
        db, caller, body.token_ids, body.eligible, body.multipliers,
    )
    await db.commit()
    return success_response({"updated": len(body.token_ids)})


# ── Wallets & funds ─────────────────────────────────────────────────

@router.post("/reset-mint/{wallet}")
async def reset_mint_restriction(
    wallet: str = Depends(validated_wallet),
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    await registry.reset_mint_restriction(db, caller, wallet)
    await db.commit()
    return success_response({"wallet": wallet, "hasMinted": False})


@router.post("/withdraw")
async def withdraw(
    caller: str = Depends(require_admin_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    amount = await registry.withdraw(db, caller)
    await db.commit()
    logger.info(f"Admin withdrew {amount} µA")
    return success_response({"withdrawnMicro": amount, "to": caller})
