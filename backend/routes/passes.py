"""
Genesis Pass endpoints — mint, claim, transfer and read pass data.

Endpoints:
    GET  /passes/info                   — Supply, price and feature switches
    GET  /passes/events                 — Registry event history (paginated)
    GET  /passes/wallet/{wallet}        — Mint status, points total and held passes
    GET  /passes/{token_id}             — Full pass data
    GET  /passes/{token_id}/points      — Points on a pass
    GET  /passes/{token_id}/access      — Access level (tier)
    GET  /passes/{token_id}/airdrop     — Airdrop eligibility and multiplier
    POST /passes/mint                   — Mint a pass (payment attached)
    POST /passes/{token_id}/claim       — Claim the ecosystem token grant
    POST /passes/{token_id}/transfer    — Hand a pass to another wallet
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, get_registry, pagination_params, require_caller
from domain.constants import ACCESS_LEVEL_NAMES, MICROALGOS_PER_ALGO
from domain.enums import RegistryEventType
from domain.responses import paginated_response, success_response
from middleware.rate_limit import mint_rate_limit
from models import MintRequest, PassDataResponse, RegistryInfoResponse, TransferRequest
from services import event_service
from services.pass_registry import PassRegistry
from utils.validators import validate_algorand_address, validated_wallet

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/passes", tags=["passes"])


def access_level_name(level: int) -> str:
    return ACCESS_LEVEL_NAMES.get(level, "Unknown")


# ── GET /passes/info ────────────────────────────────────────────────
@router.get("/info")
async def get_registry_info(
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    """Collection info: max/total supply, remaining, price, switches."""
    info = await registry.get_registry_info(db)
    await db.commit()
    return success_response(RegistryInfoResponse(
        max_supply=info["max_supply"],
        total_supply=info["total_supply"],
        remaining=info["remaining"],
        mint_price_micro=info["mint_price_micro"],
        mint_price_algo=info["mint_price_micro"] / MICROALGOS_PER_ALGO,
        minting_enabled=info["minting_enabled"],
        token_claim_enabled=info["token_claim_enabled"],
        tokens_per_pass=info["tokens_per_pass"],
    ))


# ── GET /passes/events ──────────────────────────────────────────────
@router.get("/events")
async def get_events(
    token_id: Optional[int] = Query(None, alias="tokenId", ge=1),
    event_type: Optional[RegistryEventType] = Query(None, alias="event"),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    """Registry notifications, newest first."""
    events, total = await event_service.list_events(
        db,
        limit=page["limit"],
        offset=page["offset"],
        token_id=token_id,
        event_type=event_type,
    )
    return paginated_response(
        [event_service.event_to_dict(e) for e in events],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


# ── GET /passes/wallet/{wallet} ─────────────────────────────────────
@router.get("/wallet/{wallet}")
async def get_wallet_summary(
    wallet: str = Depends(validated_wallet),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    """Whether a wallet has minted, its awarded points, and the passes it holds."""
    token_ids = await registry.ledger.tokens_of(db, wallet)
    return success_response({
        "wallet": wallet,
        "hasMinted": await registry.has_minted(db, wallet),
        "walletPoints": await registry.get_wallet_points(db, wallet),
        "tokenIds": token_ids,
    })


# ── GET /passes/{token_id} ──────────────────────────────────────────
@router.get("/{token_id}")
async def get_pass(
    token_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    data = await registry.get_pass_data(db, token_id)
    holder = await registry.ledger.current_holder(db, token_id)
    return success_response(PassDataResponse(
        token_id=token_id,
        holder=holder,
        points=data.points,
        tokens_claimed=data.tokens_claimed,
        access_level=data.access_level,
        access_level_name=access_level_name(data.access_level),
        airdrop_eligible=data.airdrop_eligible,
        airdrop_multiplier=data.airdrop_multiplier,
    ))


@router.get("/{token_id}/points")
async def get_pass_points(
    token_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    points = await registry.get_points(db, token_id)
    return success_response({"tokenId": token_id, "points": points})


@router.get("/{token_id}/access")
async def get_pass_access(
    token_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    level = await registry.check_access(db, token_id)
    return success_response({
        "tokenId": token_id,
        "level": level,
        "name": access_level_name(level),
    })


@router.get("/{token_id}/airdrop")
async def get_pass_airdrop(
    token_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    eligible, multiplier = await registry.is_airdrop_eligible(db, token_id)
    return success_response({
        "tokenId": token_id,
        "eligible": eligible,
        "multiplier": multiplier,
        "multiplierX": f"{multiplier / 100:.1f}x",
    })


# ── POST /passes/mint ───────────────────────────────────────────────
@router.post("/mint", dependencies=[Depends(mint_rate_limit())])
async def mint_pass(
    body: MintRequest,
    caller: str = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    """
    Mint the next pass.

    The caller pays ``amountMicro``; anything above the current mint price is
    refunded to the caller. The recipient defaults to the caller.
    """
    validate_algorand_address(caller)
    recipient = validate_algorand_address(body.recipient or caller)

    result = await registry.mint(db, caller, recipient, body.amount_micro)
    await db.commit()

    return success_response({
        "tokenId": result["token_id"],
        "recipient": recipient,
        "priceMicro": result["price_micro"],
        "refundMicro": result["refund_micro"],
    })


# ── POST /passes/{token_id}/claim ───────────────────────────────────
@router.post("/{token_id}/claim")
async def claim_pass_tokens(
    token_id: int = Path(..., ge=1),
    caller: str = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    """Claim the ecosystem tokens attached to a pass (holder only, once)."""
    validate_algorand_address(caller)
    result = await registry.claim_tokens(db, caller, token_id)
    await db.commit()
    return success_response({"tokenId": token_id, "tokensClaimed": result["tokens"]})


# ── POST /passes/{token_id}/transfer ────────────────────────────────
@router.post("/{token_id}/transfer")
async def transfer_pass(
    body: TransferRequest,
    token_id: int = Path(..., ge=1),
    caller: str = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    registry: PassRegistry = Depends(get_registry),
):
    validate_algorand_address(caller)
    to_wallet = validate_algorand_address(body.to_wallet)
    await registry.transfer_pass(db, caller, token_id, to_wallet)
    await db.commit()
    return success_response({"tokenId": token_id, "holder": to_wallet})
