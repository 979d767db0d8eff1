"""
Pydantic models for request/response validation.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class PassBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Holder requests ─────────────────────────────────────────────────

class MintRequest(PassBase):
    """Mint a pass; the caller pays ``amount_micro`` and receives any excess back."""
    recipient: Optional[str] = Field(
        default=None,
        description="Wallet to receive the pass (defaults to the caller)",
    )
    amount_micro: int = Field(
        ...,
        alias="amountMicro",
        ge=0,
        description="Payment attached to the mint, in microAlgos",
    )


class TransferRequest(PassBase):
    to_wallet: str = Field(..., alias="toWallet", description="Receiving wallet")


# ── Admin requests ──────────────────────────────────────────────────

class ToggleRequest(PassBase):
    enabled: bool


class MintPriceRequest(PassBase):
    price_micro: int = Field(..., alias="priceMicro", ge=0)


class AwardPointsRequest(PassBase):
    token_id: int = Field(..., alias="tokenId", ge=1)
    points: int = Field(..., ge=0)


class BatchAwardPointsRequest(PassBase):
    token_ids: List[int] = Field(..., alias="tokenIds")
    points: List[int]


class AccessLevelRequest(PassBase):
    token_id: int = Field(..., alias="tokenId", ge=1)
    level: int = Field(..., ge=0)


class AirdropRequest(PassBase):
    token_id: int = Field(..., alias="tokenId", ge=1)
    eligible: bool
    multiplier: int = Field(..., ge=0, description="100 = 1.0x")


class BatchAirdropRequest(PassBase):
    token_ids: List[int] = Field(..., alias="tokenIds")
    eligible: List[bool]
    multipliers: List[int]


# ── Responses ───────────────────────────────────────────────────────

class PassDataResponse(PassBase):
    token_id: int = Field(..., alias="tokenId")
    holder: str
    points: int
    tokens_claimed: bool = Field(..., alias="tokensClaimed")
    access_level: int = Field(..., alias="accessLevel")
    access_level_name: str = Field(..., alias="accessLevelName")
    airdrop_eligible: bool = Field(..., alias="airdropEligible")
    airdrop_multiplier: int = Field(..., alias="airdropMultiplier")


class RegistryInfoResponse(PassBase):
    max_supply: int = Field(..., alias="maxSupply")
    total_supply: int = Field(..., alias="totalSupply")
    remaining: int
    mint_price_micro: int = Field(..., alias="mintPriceMicro")
    mint_price_algo: float = Field(..., alias="mintPriceAlgo")
    minting_enabled: bool = Field(..., alias="mintingEnabled")
    token_claim_enabled: bool = Field(..., alias="tokenClaimEnabled")
    tokens_per_pass: int = Field(..., alias="tokensPerPass")
