"""
SQLAlchemy ORM models for the Genesis Pass registry.

Tables:
    registry_config    — singleton row: admin wallet, feature switches, price, id counter
    passes             — per-token pass metadata (points, claim, access, airdrop)
    pass_ownership     — ownership ledger: current holder of each token id
    wallet_mint_flags  — per-wallet one-mint restriction
    wallet_points      — per-wallet historical points award totals
    custody_movements  — native-value deposits, refunds and withdrawals
    registry_events    — notifications emitted by successful mutating calls
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, DateTime, Text, Index,
)

from database import Base

# Singleton primary key for registry_config
REGISTRY_CONFIG_ID = 1


class RegistryConfig(Base):
    """Process-wide registry configuration (exactly one row)."""
    __tablename__ = "registry_config"

    id = Column(Integer, primary_key=True, default=REGISTRY_CONFIG_ID)
    admin_wallet = Column(String(58), nullable=False)
    minting_enabled = Column(Boolean, nullable=False, default=False)
    token_claim_enabled = Column(Boolean, nullable=False, default=False)
    mint_price_micro = Column(BigInteger, nullable=False)
    next_token_id = Column(Integer, nullable=False, default=1)
    max_supply = Column(Integer, nullable=False)
    tokens_per_pass = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)


class PassRecord(Base):
    """Metadata attached to one minted pass. Never deleted."""
    __tablename__ = "passes"

    token_id = Column(Integer, primary_key=True, autoincrement=False)
    points = Column(BigInteger, nullable=False, default=0)
    tokens_claimed = Column(Boolean, nullable=False, default=False)
    access_level = Column(Integer, nullable=False, default=0)
    airdrop_eligible = Column(Boolean, nullable=False, default=False)
    airdrop_multiplier = Column(Integer, nullable=False, default=100)  # 100 = 1.0x
    minted_at = Column(DateTime, default=datetime.utcnow, index=True)
    claimed_at = Column(DateTime, nullable=True)


class PassOwnership(Base):
    """Ownership ledger — one holder per token id."""
    __tablename__ = "pass_ownership"

    token_id = Column(Integer, primary_key=True, autoincrement=False)
    holder_wallet = Column(String(58), nullable=False, index=True)
    bound_at = Column(DateTime, default=datetime.utcnow)
    transferred_at = Column(DateTime, nullable=True)


class WalletMintFlag(Base):
    """Set once a wallet has minted; an absent row means "not minted"."""
    __tablename__ = "wallet_mint_flags"

    wallet_address = Column(String(58), primary_key=True)
    has_minted = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=datetime.utcnow)


class WalletPoints(Base):
    """
    Aggregate points awarded to a wallet while it held the awarded pass.

    Not recomputed on transfer; an absent row means 0.
    """
    __tablename__ = "wallet_points"

    wallet_address = Column(String(58), primary_key=True)
    total_points = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow)


class CustodyMovement(Base):
    """Native-value flow in and out of registry custody (microAlgos)."""
    __tablename__ = "custody_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(20), nullable=False)  # "deposit" | "refund" | "withdrawal"
    counterparty = Column(String(58), nullable=False, index=True)
    amount_micro = Column(BigInteger, nullable=False)  # always positive; kind gives direction
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class RegistryEvent(Base):
    """Notification emitted by a successful mutating registry call."""
    __tablename__ = "registry_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(40), nullable=False, index=True)
    token_id = Column(Integer, nullable=True, index=True)
    wallet_address = Column(String(58), nullable=True, index=True)
    payload = Column(Text, nullable=False, default="{}")  # JSON-encoded event fields
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        # For per-token history: filter by token_id, order by id
        Index("ix_registry_events_token_id_id", "token_id", "id"),
    )
