"""
Domain enums (minimal set used for clarity in services).
"""

from enum import Enum


class RegistryEventType(str, Enum):
    MINTED = "Minted"
    POINTS_AWARDED = "PointsAwarded"
    TOKENS_CLAIMED = "TokensClaimed"
    ACCESS_LEVEL_UPDATED = "AccessLevelUpdated"
    AIRDROP_ELIGIBILITY_UPDATED = "AirdropEligibilityUpdated"
    MINT_PRICE_UPDATED = "MintPriceUpdated"
    MINTING_TOGGLED = "MintingToggled"
    CLAIM_TOGGLED = "ClaimToggled"


class CustodyMovementKind(str, Enum):
    DEPOSIT = "deposit"
    REFUND = "refund"
    WITHDRAWAL = "withdrawal"
